"""
Search mode resolution.
"""

from enum import Enum
from typing import Optional


class SearchMode(str, Enum):
    """Full-text search strategy backed by the PostgreSQL instance."""

    BIGM = "bigm"  # pg_bigm 2-gram index, best for Japanese text
    TRGM = "trgm"  # pg_trgm similarity, available on most managed databases
    LIKE = "like"  # plain ILIKE scan, needs no extension


class SearchExtension(str, Enum):
    """Database extensions the indexed modes rely on."""

    PG_BIGM = "pg_bigm"
    PG_TRGM = "pg_trgm"


MODE_EXTENSIONS = {
    SearchMode.BIGM: SearchExtension.PG_BIGM,
    SearchMode.TRGM: SearchExtension.PG_TRGM,
}


def resolve_mode(value: Optional[str] = None) -> SearchMode:
    """
    Map a configured mode string to a SearchMode.

    Only ``bigm`` and ``trgm`` (any case) select an indexed mode; anything else,
    including an unset or empty value, falls back to LIKE.

    Args:
        value: Raw configuration value. Reads ``settings.SEARCH_MODE`` when None.
    """
    if value is None:
        from bonlog.core.config import settings
        value = settings.SEARCH_MODE

    normalized = (value or "").strip().lower()
    if normalized == SearchMode.BIGM.value:
        return SearchMode.BIGM
    if normalized == SearchMode.TRGM.value:
        return SearchMode.TRGM
    return SearchMode.LIKE


def required_extension(mode: SearchMode) -> Optional[SearchExtension]:
    """Extension that must be installed for ``mode``, or None for LIKE."""
    return MODE_EXTENSIONS.get(mode)
