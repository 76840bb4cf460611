"""
Viewer-facing search operations: post, user and hashtag search, popular tags.

Wraps the full-text service with the viewer's block/mute exclusions, the
result cache and next-cursor computation. Results are ids only; hydrating
posts and profiles is the main application's job.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from bonlog.core.cache import CacheService, cache_service
from bonlog.core.config import settings
from bonlog.models.post import Post
from bonlog.services.exclusion_service import get_excluded_user_ids
from bonlog.services.fulltext import (
    FulltextSearchService,
    SearchMode,
    SearchOptions,
    UserSearchOptions,
    fulltext_search_service,
)
from bonlog.services.search_cache import cached_search, generate_search_cache_key
from bonlog.utils.hashtags import extract_hashtags, normalize_tag


@dataclass
class SearchPage:
    ids: List[str]
    next_cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None

    @classmethod
    def from_ids(cls, ids: List[str], limit: int) -> "SearchPage":
        # A full page is the signal that another page may follow
        next_cursor = ids[-1] if ids and len(ids) == limit else None
        return cls(ids=list(ids), next_cursor=next_cursor)


@dataclass
class PopularTag:
    tag: str
    count: int


class SearchService:
    """Search operations for the API layer."""

    def __init__(
        self,
        fulltext: Optional[FulltextSearchService] = None,
        cache: Optional[CacheService] = None,
        cache_enabled: Optional[bool] = None,
    ):
        self.fulltext = fulltext or fulltext_search_service
        self.cache = cache or cache_service
        self.cache_enabled = settings.SEARCH_CACHE_ENABLED if cache_enabled is None else cache_enabled

    @property
    def case_sensitive(self) -> bool:
        """bigm matches with plain LIKE, so "Pine" and "pine" are different searches."""
        return self.fulltext.mode == SearchMode.BIGM

    async def _maybe_cached(self, key: str, search_fn) -> List[str]:
        if not self.cache_enabled:
            return await search_fn()
        return await cached_search(key, search_fn, ttl=settings.SEARCH_CACHE_TTL, cache=self.cache)

    async def search_posts(
        self,
        query: str,
        db: AsyncSession,
        viewer_id: Optional[str] = None,
        genre_ids: Optional[Iterable[str]] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> SearchPage:
        """
        Full-text post search for a viewer.

        Args:
            query: Search text; blank returns an empty page
            db: Database session used for the exclusion lookups
            viewer_id: Current user; their blocks and mutes are hidden
            genre_ids: Only posts tagged with one of these genres
            cursor: Last post id of the previous page
            limit: Page size

        Returns:
            SearchPage of post ids
        """
        limit = limit or settings.SEARCH_DEFAULT_LIMIT
        if not query or not query.strip():
            return SearchPage(ids=[])
        query = query.strip()

        genre_ids = sorted(set(genre_ids or []))
        excluded = await get_excluded_user_ids(viewer_id, db, include_mutes=True)
        options = SearchOptions(
            excluded_ids=excluded,
            filter_ids=genre_ids,
            cursor=cursor,
            limit=limit,
        )
        key = generate_search_cache_key(
            "posts",
            query=query,
            genre_ids=genre_ids,
            cursor=cursor,
            limit=limit,
            viewer_id=viewer_id,
            case_sensitive=self.case_sensitive,
        )

        async def run() -> List[str]:
            return await self.fulltext.search_posts(query, options)

        return SearchPage.from_ids(await self._maybe_cached(key, run), limit)

    async def search_users(
        self,
        query: str,
        db: AsyncSession,
        viewer_id: Optional[str] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> SearchPage:
        """Full-text user search; hides the viewer and block relations."""
        limit = limit or settings.SEARCH_DEFAULT_LIMIT
        if not query or not query.strip():
            return SearchPage(ids=[])
        query = query.strip()

        excluded = await get_excluded_user_ids(viewer_id, db, include_mutes=False)
        options = UserSearchOptions(
            excluded_ids=excluded,
            current_user_id=viewer_id,
            cursor=cursor,
            limit=limit,
        )
        key = generate_search_cache_key(
            "users",
            query=query,
            cursor=cursor,
            limit=limit,
            viewer_id=viewer_id,
            case_sensitive=self.case_sensitive,
        )

        async def run() -> List[str]:
            return await self.fulltext.search_users(query, options)

        return SearchPage.from_ids(await self._maybe_cached(key, run), limit)

    def build_tag_query(
        self,
        tag: str,
        excluded_ids: Iterable[str] = (),
        cursor: Optional[str] = None,
        limit: int = 20,
    ) -> Select:
        """Visible posts containing ``#tag`` in any letter case; wildcards in the tag are literal."""
        stmt = select(Post.id).where(
            Post.content.icontains(f"#{tag}", autoescape=True),
            Post.is_hidden.is_(False),
        )
        if excluded_ids:
            stmt = stmt.where(Post.user_id.not_in(sorted(excluded_ids)))
        if cursor:
            stmt = stmt.where(Post.id < cursor)
        return stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit)

    async def search_by_tag(
        self,
        tag: str,
        db: AsyncSession,
        viewer_id: Optional[str] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> SearchPage:
        """Posts containing ``#tag``, newest first."""
        limit = limit or settings.SEARCH_DEFAULT_LIMIT
        tag = normalize_tag(tag)
        if not tag:
            return SearchPage(ids=[])

        excluded = await get_excluded_user_ids(viewer_id, db, include_mutes=True)

        result = await db.execute(self.build_tag_query(tag, excluded, cursor, limit))
        return SearchPage.from_ids([str(i) for i in result.scalars().all()], limit)

    async def get_popular_tags(
        self,
        db: AsyncSession,
        limit: int = 10,
        days: Optional[int] = None,
    ) -> List[PopularTag]:
        """Most used hashtags over the last ``days`` days, most used first."""
        days = days or settings.POPULAR_TAGS_DAYS
        since = datetime.utcnow() - timedelta(days=days)

        result = await db.execute(
            select(Post.content).where(
                Post.created_at >= since,
                Post.content.contains("#"),
                Post.is_hidden.is_(False),
            )
        )

        counts: Counter = Counter()
        for content in result.scalars().all():
            # A tag counts once per post
            counts.update(set(extract_hashtags(content)))

        logger.debug(f"Popular tags: {len(counts)} distinct tags since {since.isoformat()}")
        return [PopularTag(tag=tag, count=count) for tag, count in counts.most_common(limit)]


# Singleton instance
search_service = SearchService()
