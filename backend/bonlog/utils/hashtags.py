"""
Hashtag extraction for post content.
"""

import re
from typing import List

# Word characters plus hiragana, katakana and CJK ideographs
HASHTAG_PATTERN = re.compile(r"#([\w\u3040-\u309f\u30a0-\u30ff\u4e00-\u9faf]+)")


def extract_hashtags(text: str) -> List[str]:
    """Return the hashtags in ``text``, lower-cased and without the leading ``#``."""
    if not text:
        return []
    return [match.lower() for match in HASHTAG_PATTERN.findall(text)]


def normalize_tag(tag: str) -> str:
    """Strip whitespace and a leading ``#`` from a user-supplied tag."""
    return (tag or "").strip().lstrip("#")
