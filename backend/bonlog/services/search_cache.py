"""
Search result caching.

Identical searches within the TTL are answered from the cache instead of the
database. Cache failures are treated as misses and never fail a search.
"""

from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar
from urllib.parse import quote

from loguru import logger

from bonlog.core.cache import CacheService, cache_service
from bonlog.core.config import settings

T = TypeVar("T")

CACHE_PREFIX = "search:"


def _key_part(value: str) -> str:
    # Percent-encode so ":" and "," inside user input cannot forge another key's layout
    return quote(value, safe="")


def generate_search_cache_key(
    type: str,
    query: Optional[str] = None,
    genre_ids: Optional[Iterable[str]] = None,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    viewer_id: Optional[str] = None,
    case_sensitive: bool = False,
) -> str:
    """
    Build a deterministic cache key.

    The query is stripped and genre ids are sorted, so equivalent searches
    share a key. The query is lower-cased unless ``case_sensitive`` is set,
    which callers pass when the active search mode distinguishes case. The
    viewer is part of the key because block and mute exclusions differ per
    viewer.
    """
    parts = [type]
    if query:
        normalized = query.strip() if case_sensitive else query.strip().lower()
        parts.append(f"q:{_key_part(normalized)}")
    if genre_ids:
        parts.append(f"g:{','.join(_key_part(g) for g in sorted(genre_ids))}")
    if cursor:
        parts.append(f"c:{_key_part(cursor)}")
    if limit:
        parts.append(f"l:{limit}")
    if viewer_id:
        parts.append(f"v:{_key_part(viewer_id)}")
    return ":".join(parts)


async def get_cached_search_result(key: str, cache: CacheService = cache_service) -> Optional[Any]:
    return await cache.get(f"{CACHE_PREFIX}{key}")


async def cache_search_result(
    key: str,
    data: Any,
    ttl: Optional[int] = None,
    cache: CacheService = cache_service,
) -> None:
    stored = await cache.set(f"{CACHE_PREFIX}{key}", data, ttl=ttl or settings.SEARCH_CACHE_TTL)
    if not stored:
        logger.debug(f"Search result not cached: {key}")


async def invalidate_search_cache(pattern: Optional[str] = None, cache: CacheService = cache_service) -> int:
    """Drop cached results matching ``pattern`` (e.g. ``posts:*``); no pattern drops nothing."""
    if not pattern:
        return 0
    return await cache.delete_pattern(f"{CACHE_PREFIX}{pattern}")


async def cached_search(
    key: str,
    search_fn: Callable[[], Awaitable[T]],
    ttl: Optional[int] = None,
    cache: CacheService = cache_service,
) -> T:
    """Return the cached result for ``key`` or run ``search_fn`` and cache it."""
    cached = await get_cached_search_result(key, cache=cache)
    if cached is not None:
        return cached

    result = await search_fn()
    await cache_search_result(key, result, ttl=ttl, cache=cache)
    return result
