"""
Tests for search result caching with the in-process cache backend.
"""

import pytest

from bonlog.core.cache import CacheService
from bonlog.services.search_cache import (
    CACHE_PREFIX,
    cache_search_result,
    cached_search,
    generate_search_cache_key,
    get_cached_search_result,
    invalidate_search_cache,
)


@pytest.fixture
def memory_cache() -> CacheService:
    return CacheService(redis_url=None, default_ttl=60)


def test_memory_backend(memory_cache):
    assert memory_cache.backend == "memory"
    assert CacheService(redis_url="redis://localhost:6379/0").backend == "redis"


def test_cache_key_is_normalized():
    key = generate_search_cache_key(
        "posts", query="  Kuromatsu ", genre_ids=["g2", "g1"], cursor="p9", limit=20, viewer_id="u1"
    )

    assert key == "posts:q:kuromatsu:g:g1,g2:c:p9:l:20:v:u1"
    assert key == generate_search_cache_key(
        "posts", query="kuromatsu", genre_ids=["g1", "g2"], cursor="p9", limit=20, viewer_id="u1"
    )


def test_cache_key_differs_per_viewer():
    anonymous = generate_search_cache_key("users", query="taro", limit=20)
    viewer = generate_search_cache_key("users", query="taro", limit=20, viewer_id="u1")

    assert anonymous == "users:q:taro:l:20"
    assert anonymous != viewer


def test_query_cannot_imitate_other_key_parts():
    tricky = generate_search_cache_key("posts", query="matsu:g:g-pine", limit=20)
    filtered = generate_search_cache_key("posts", query="matsu", genre_ids=["g-pine"], limit=20)

    assert tricky != filtered
    assert tricky == "posts:q:matsu%3Ag%3Ag-pine:l:20"


def test_genre_ids_with_separators_stay_distinct():
    joined = generate_search_cache_key("posts", query="a", genre_ids=["g1,g2"])
    split = generate_search_cache_key("posts", query="a", genre_ids=["g1", "g2"])

    assert joined != split


def test_case_sensitive_key_keeps_case():
    upper = generate_search_cache_key("posts", query="Pine", case_sensitive=True)
    lower = generate_search_cache_key("posts", query="pine", case_sensitive=True)

    assert upper != lower
    assert generate_search_cache_key("posts", query="Pine") == generate_search_cache_key("posts", query="pine")


@pytest.mark.asyncio
async def test_store_and_read(memory_cache):
    await cache_search_result("posts:q:松", ["p2", "p1"], cache=memory_cache)

    assert await get_cached_search_result("posts:q:松", cache=memory_cache) == ["p2", "p1"]
    assert await memory_cache.get(f"{CACHE_PREFIX}posts:q:松") == ["p2", "p1"]


@pytest.mark.asyncio
async def test_cached_search_runs_once(memory_cache):
    calls = []

    async def search():
        calls.append(1)
        return ["p1"]

    assert await cached_search("posts:q:a", search, cache=memory_cache) == ["p1"]
    assert await cached_search("posts:q:a", search, cache=memory_cache) == ["p1"]
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_empty_result_is_cached(memory_cache):
    calls = []

    async def search():
        calls.append(1)
        return []

    await cached_search("posts:q:none", search, cache=memory_cache)
    await cached_search("posts:q:none", search, cache=memory_cache)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_invalidate_by_pattern(memory_cache):
    await cache_search_result("posts:q:a", ["p1"], cache=memory_cache)
    await cache_search_result("posts:q:b", ["p2"], cache=memory_cache)
    await cache_search_result("users:q:a", ["u1"], cache=memory_cache)

    assert await invalidate_search_cache(cache=memory_cache) == 0
    assert await invalidate_search_cache("posts:*", cache=memory_cache) == 2
    assert await get_cached_search_result("posts:q:a", cache=memory_cache) is None
    assert await get_cached_search_result("users:q:a", cache=memory_cache) == ["u1"]


@pytest.mark.asyncio
async def test_delete(memory_cache):
    await memory_cache.set("k", {"a": 1})
    assert await memory_cache.delete("k") is True
    assert await memory_cache.get("k") is None
