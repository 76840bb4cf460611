"""
Full-text search over posts and users with pg_bigm, pg_trgm or plain LIKE.
"""

from .mode import SearchMode, SearchExtension, resolve_mode, required_extension
from .strategies import (
    MatchClause,
    SearchStrategy,
    NgramIndexStrategy,
    TrigramSimilarityStrategy,
    PatternMatchStrategy,
    escape_search_term,
)
from .extensions import IndexProvisionResult, SearchIndexInfo, SearchExtensionManager
from .service import (
    FulltextSearchService,
    SearchOptions,
    UserSearchOptions,
    SearchStatus,
    fulltext_search_service,
)

__all__ = [
    "SearchMode",
    "SearchExtension",
    "resolve_mode",
    "required_extension",
    "MatchClause",
    "SearchStrategy",
    "NgramIndexStrategy",
    "TrigramSimilarityStrategy",
    "PatternMatchStrategy",
    "escape_search_term",
    "IndexProvisionResult",
    "SearchIndexInfo",
    "SearchExtensionManager",
    "FulltextSearchService",
    "SearchOptions",
    "UserSearchOptions",
    "SearchStatus",
    "fulltext_search_service",
]
