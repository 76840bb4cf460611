"""
Full-text search over posts and users.

The mode is resolved once, when the service is built at startup. Every search
call runs as a two-step pipeline: the configured strategy first, then the
LIKE strategy exactly once if the first step raised. Only a failure of the
second step reaches the caller.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional

from loguru import logger
from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from bonlog.core.logging import log_search_call
from bonlog.models.post import Post, PostGenre
from bonlog.models.user import User
from bonlog.services.fulltext.extensions import (
    IndexProvisionResult,
    SearchExtensionManager,
    SearchIndexInfo,
)
from bonlog.services.fulltext.mode import SearchExtension, SearchMode, resolve_mode
from bonlog.services.fulltext.strategies import SearchStrategy, build_strategies
from bonlog.utils.exceptions import SearchUnavailableError, ValidationError
from bonlog.utils.formatters import truncate_query

DEFAULT_LIMIT = 20


def _as_id_set(ids: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(str(i) for i in ids) if ids else frozenset()


@dataclass(frozen=True)
class SearchOptions:
    """Options for post search."""

    excluded_ids: FrozenSet[str] = field(default_factory=frozenset)  # author ids
    filter_ids: FrozenSet[str] = field(default_factory=frozenset)  # genre ids
    cursor: Optional[str] = None
    limit: int = DEFAULT_LIMIT
    include_hidden: bool = False

    def __post_init__(self):
        object.__setattr__(self, "excluded_ids", _as_id_set(self.excluded_ids))
        object.__setattr__(self, "filter_ids", _as_id_set(self.filter_ids))
        if self.limit < 1:
            raise ValidationError("must be a positive integer", field="limit")


@dataclass(frozen=True)
class UserSearchOptions:
    """Options for user search."""

    excluded_ids: FrozenSet[str] = field(default_factory=frozenset)
    current_user_id: Optional[str] = None
    cursor: Optional[str] = None
    limit: int = DEFAULT_LIMIT

    def __post_init__(self):
        object.__setattr__(self, "excluded_ids", _as_id_set(self.excluded_ids))
        if self.limit < 1:
            raise ValidationError("must be a positive integer", field="limit")


@dataclass
class SearchStatus:
    mode: SearchMode
    bigm_available: bool
    trgm_available: bool


class FulltextSearchService:
    """Post and user search with per-mode strategies and LIKE fallback."""

    def __init__(
        self,
        mode: Optional[SearchMode] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
        similarity_threshold: Optional[float] = None,
        extension_manager: Optional[SearchExtensionManager] = None,
    ):
        if session_factory is None:
            from bonlog.core.database import AsyncSessionLocal
            session_factory = AsyncSessionLocal

        self.mode = mode if mode is not None else resolve_mode()
        self.session_factory = session_factory
        self.strategies = build_strategies(similarity_threshold)
        self.extensions = extension_manager or SearchExtensionManager(session_factory)

    @property
    def strategy(self) -> SearchStrategy:
        return self.strategies[self.mode]

    @property
    def fallback_strategy(self) -> SearchStrategy:
        return self.strategies[SearchMode.LIKE]

    # Query builders

    def build_post_query(self, strategy: SearchStrategy, query: str, options: SearchOptions) -> Select:
        """Post search statement: strategy match plus the shared filters."""
        clause = strategy.match_posts(query)
        stmt = select(Post.id).where(clause.predicate)

        if not options.include_hidden:
            stmt = stmt.where(Post.is_hidden.is_(False))
        if options.excluded_ids:
            stmt = stmt.where(Post.user_id.not_in(sorted(options.excluded_ids)))
        if options.filter_ids:
            # EXISTS rather than a join so a post in several genres appears once
            stmt = stmt.where(
                exists().where(
                    PostGenre.post_id == Post.id,
                    PostGenre.genre_id.in_(sorted(options.filter_ids)),
                )
            )
        if options.cursor:
            stmt = stmt.where(Post.id < options.cursor)

        return stmt.order_by(*clause.order_by).limit(options.limit)

    def build_user_query(self, strategy: SearchStrategy, query: str, options: UserSearchOptions) -> Select:
        """User search statement: strategy match plus exclusions and pagination."""
        clause = strategy.match_users(query)
        stmt = select(User.id).where(clause.predicate)

        if options.excluded_ids:
            stmt = stmt.where(User.id.not_in(sorted(options.excluded_ids)))
        if options.current_user_id:
            stmt = stmt.where(User.id != options.current_user_id)
        if options.cursor:
            stmt = stmt.where(User.id < options.cursor)

        return stmt.order_by(*clause.order_by).limit(options.limit)

    # Execution

    async def _run(self, strategy: SearchStrategy, stmt: Select) -> List[str]:
        async with self.session_factory() as db:
            await strategy.prepare(db)
            result = await db.execute(stmt)
            return [str(row_id) for row_id in result.scalars().all()]

    async def _search(self, target: str, query: str, build: Callable[[SearchStrategy], Select]) -> List[str]:
        start = time.perf_counter()
        primary = self.strategy

        try:
            ids = await self._run(primary, build(primary))
        except Exception as first_error:
            logger.warning(
                f"{target} search failed in {primary.mode.value} mode for "
                f"'{truncate_query(query)}', falling back to like: {first_error}"
            )
        else:
            log_search_call(target, primary.mode.value, (time.perf_counter() - start) * 1000, results=len(ids))
            return ids

        fallback = self.fallback_strategy
        try:
            ids = await self._run(fallback, build(fallback))
        except Exception as second_error:
            # The cause stays in the server log; clients only see the target
            log_search_call(
                target,
                fallback.mode.value,
                (time.perf_counter() - start) * 1000,
                fallback=True,
                error=str(second_error),
            )
            raise SearchUnavailableError(target) from second_error

        log_search_call(
            target, fallback.mode.value, (time.perf_counter() - start) * 1000, results=len(ids), fallback=True
        )
        return ids

    async def search_posts(self, query: str, options: Optional[SearchOptions] = None) -> List[str]:
        """
        Search post content.

        Args:
            query: Raw user input. Blank input returns [] without a query.
            options: Exclusions, genre filter, cursor and page size

        Returns:
            Post ids in the active mode's order; a full page means more may follow.
        """
        if not query or not query.strip():
            return []
        options = options or SearchOptions()
        return await self._search(
            "posts", query, lambda strategy: self.build_post_query(strategy, query, options)
        )

    async def search_users(self, query: str, options: Optional[UserSearchOptions] = None) -> List[str]:
        """Search nicknames and bios. Same contract as search_posts, minus genres."""
        if not query or not query.strip():
            return []
        options = options or UserSearchOptions()
        return await self._search(
            "users", query, lambda strategy: self.build_user_query(strategy, query, options)
        )

    # Operations

    async def is_extension_available(self, extension: SearchExtension) -> bool:
        return await self.extensions.is_extension_available(extension)

    async def enable_extension(self, extension: SearchExtension) -> bool:
        return await self.extensions.enable_extension(extension)

    async def create_search_indexes(self) -> IndexProvisionResult:
        return await self.extensions.create_search_indexes(self.mode)

    async def list_search_indexes(self) -> List[SearchIndexInfo]:
        return await self.extensions.list_search_indexes()

    async def get_search_status(self) -> SearchStatus:
        """Live snapshot of the mode and installed extensions; never cached."""
        bigm_available, trgm_available = await asyncio.gather(
            self.extensions.is_extension_available(SearchExtension.PG_BIGM),
            self.extensions.is_extension_available(SearchExtension.PG_TRGM),
        )
        return SearchStatus(
            mode=self.mode,
            bigm_available=bigm_available,
            trgm_available=trgm_available,
        )


def create_fulltext_search_service() -> FulltextSearchService:
    """Build the service from settings; called once at import."""
    from bonlog.core.config import settings

    return FulltextSearchService(
        mode=resolve_mode(settings.SEARCH_MODE),
        similarity_threshold=settings.SEARCH_TRGM_SIMILARITY_THRESHOLD,
    )


# Singleton instance
fulltext_search_service = create_fulltext_search_service()
