"""
Tests for the viewer-facing search service.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.dialects import postgresql

from bonlog.core.cache import CacheService
from bonlog.services.exclusion_service import get_excluded_user_ids
from bonlog.services.fulltext import FulltextSearchService, SearchMode
from bonlog.services.search_service import SearchPage, SearchService
from tests.factories import (
    create_test_block,
    create_test_mute,
    create_test_post,
    create_test_user,
)


@pytest.fixture
async def community(db_session):
    """
    viewer follows nobody, blocks "blocked", is blocked by "blocker" and mutes "muted".
    """
    for user_id, nickname in [
        ("u-viewer", "viewer_bonsai"),
        ("u-author", "author_bonsai"),
        ("u-blocked", "blocked_bonsai"),
        ("u-blocker", "blocker_bonsai"),
        ("u-muted", "muted_bonsai"),
    ]:
        await create_test_user(db_session, user_id, nickname=nickname)

    await create_test_block(db_session, "u-viewer", "u-blocked")
    await create_test_block(db_session, "u-blocker", "u-viewer")
    await create_test_mute(db_session, "u-viewer", "u-muted")

    await create_test_post(db_session, "p1", "u-author", "黒松 #黒松 #bonsai", minutes=1)
    await create_test_post(db_session, "p2", "u-blocked", "黒松 #黒松", minutes=2)
    await create_test_post(db_session, "p3", "u-blocker", "黒松 #黒松", minutes=3)
    await create_test_post(db_session, "p4", "u-muted", "黒松 #黒松", minutes=4)
    await create_test_post(db_session, "p5", "u-viewer", "黒松 #Bonsai", minutes=5)


def make_service(session_factory, cache_enabled=False, cache=None) -> SearchService:
    fulltext = FulltextSearchService(mode=SearchMode.LIKE, session_factory=session_factory)
    return SearchService(fulltext=fulltext, cache=cache or CacheService(), cache_enabled=cache_enabled)


class TestExclusions:

    @pytest.mark.asyncio
    async def test_anonymous_excludes_nobody(self, db_session, community):
        assert await get_excluded_user_ids(None, db_session) == set()

    @pytest.mark.asyncio
    async def test_blocks_work_both_ways(self, db_session, community):
        excluded = await get_excluded_user_ids("u-viewer", db_session, include_mutes=False)

        assert excluded == {"u-blocked", "u-blocker"}

    @pytest.mark.asyncio
    async def test_mutes_are_optional(self, db_session, community):
        excluded = await get_excluded_user_ids("u-viewer", db_session)

        assert excluded == {"u-blocked", "u-blocker", "u-muted"}


class TestSearchPosts:

    @pytest.mark.asyncio
    async def test_anonymous(self, session_factory, db_session, community):
        page = await make_service(session_factory).search_posts("黒松", db_session)

        assert page.ids == ["p5", "p4", "p3", "p2", "p1"]
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_viewer_exclusions(self, session_factory, db_session, community):
        page = await make_service(session_factory).search_posts("黒松", db_session, viewer_id="u-viewer")

        assert page.ids == ["p5", "p1"]

    @pytest.mark.asyncio
    async def test_next_cursor_on_full_page(self, session_factory, db_session, community):
        service = make_service(session_factory)

        first = await service.search_posts("黒松", db_session, limit=2)
        second = await service.search_posts("黒松", db_session, cursor=first.next_cursor, limit=2)
        third = await service.search_posts("黒松", db_session, cursor=second.next_cursor, limit=2)

        assert (first.ids, first.next_cursor) == (["p5", "p4"], "p4")
        assert (second.ids, second.next_cursor) == (["p3", "p2"], "p2")
        assert (third.ids, third.next_cursor) == (["p1"], None)

    @pytest.mark.asyncio
    async def test_blank_query(self, session_factory, db_session):
        page = await make_service(session_factory).search_posts("  ", db_session)

        assert page == SearchPage(ids=[])


class TestSearchUsers:

    @pytest.mark.asyncio
    async def test_viewer_sees_muted_but_not_blocked(self, session_factory, db_session, community):
        page = await make_service(session_factory).search_users("bonsai", db_session, viewer_id="u-viewer")

        assert page.ids == ["u-muted", "u-author"]

    @pytest.mark.asyncio
    async def test_anonymous(self, session_factory, db_session, community):
        page = await make_service(session_factory).search_users("bonsai", db_session)

        assert page.ids == ["u-viewer", "u-muted", "u-blocker", "u-blocked", "u-author"]


class TestSearchByTag:

    @pytest.mark.asyncio
    async def test_tag(self, session_factory, db_session, community):
        page = await make_service(session_factory).search_by_tag("#黒松", db_session, viewer_id="u-viewer")

        assert page.ids == ["p1"]

    @pytest.mark.asyncio
    async def test_tag_matches_any_case(self, session_factory, db_session, community):
        page = await make_service(session_factory).search_by_tag("bonsai", db_session)

        assert page.ids == ["p5", "p1"]

    def test_tag_query_ignores_case_on_postgresql(self):
        stmt = SearchService(fulltext=FulltextSearchService(mode=SearchMode.BIGM)).build_tag_query(
            "bonsai", excluded_ids={"u-blocked"}, cursor="p9", limit=5
        )
        sql = str(stmt.compile(dialect=postgresql.dialect()))

        assert "lower(posts.content)" in sql or "ILIKE" in sql
        assert "u-blocked" not in sql

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, session_factory, db_session, community):
        await create_test_post(db_session, "p9", "u-author", "#100%_growth", minutes=9)
        service = make_service(session_factory)

        assert (await service.search_by_tag("%", db_session)).ids == []
        assert (await service.search_by_tag("100%_growth", db_session)).ids == ["p9"]

    @pytest.mark.asyncio
    async def test_empty_tag(self, session_factory, db_session):
        assert (await make_service(session_factory).search_by_tag(" # ", db_session)).ids == []


class TestPopularTags:

    @pytest.mark.asyncio
    async def test_counts_recent_visible_posts(self, session_factory, db_session):
        await create_test_user(db_session, "u1")
        now = datetime.utcnow()
        await create_test_post(db_session, "p1", "u1", "#黒松 #剪定", created_at=now - timedelta(hours=1))
        await create_test_post(db_session, "p2", "u1", "#黒松 #bonsai", created_at=now - timedelta(hours=2))
        await create_test_post(db_session, "p3", "u1", "#Bonsai #黒松", created_at=now - timedelta(hours=3))
        await create_test_post(db_session, "p4", "u1", "#old", created_at=now - timedelta(days=30))
        await create_test_post(db_session, "p5", "u1", "#hidden", created_at=now, is_hidden=True)
        await create_test_post(db_session, "p6", "u1", "no tags here", created_at=now)

        tags = await make_service(session_factory).get_popular_tags(db_session, limit=2, days=7)

        assert [(t.tag, t.count) for t in tags] == [("黒松", 3), ("bonsai", 2)]

    @pytest.mark.asyncio
    async def test_tag_counts_once_per_post(self, session_factory, db_session):
        await create_test_user(db_session, "u1")
        now = datetime.utcnow()
        await create_test_post(db_session, "p1", "u1", "#松 #松 #松", created_at=now)
        await create_test_post(db_session, "p2", "u1", "#剪定", created_at=now)
        await create_test_post(db_session, "p3", "u1", "#剪定 #Bonsai", created_at=now)

        tags = await make_service(session_factory).get_popular_tags(db_session, limit=5, days=7)

        assert tags[0].tag == "剪定"
        assert {t.tag: t.count for t in tags} == {"剪定": 2, "松": 1, "bonsai": 1}


class TestCaching:

    @pytest.mark.asyncio
    async def test_repeat_search_hits_cache(self, session_factory, db_session, community):
        class CountingFulltext:
            mode = SearchMode.LIKE
            calls = 0

            async def search_posts(self, query, options):
                CountingFulltext.calls += 1
                return ["p1"]

        service = SearchService(fulltext=CountingFulltext(), cache=CacheService(), cache_enabled=True)

        first = await service.search_posts("黒松", db_session, viewer_id="u-viewer")
        second = await service.search_posts("黒松 ", db_session, viewer_id="u-viewer")
        await service.search_posts("黒松", db_session, viewer_id="u-author")

        assert first == second
        assert CountingFulltext.calls == 2

    @pytest.mark.asyncio
    async def test_case_sensitive_mode_caches_each_case(self, db_session):
        class CaseSensitiveFulltext:
            mode = SearchMode.BIGM

            async def search_posts(self, query, options):
                return ["p-upper"] if query == "Pine" else ["p-lower"]

        service = SearchService(fulltext=CaseSensitiveFulltext(), cache=CacheService(), cache_enabled=True)

        upper = await service.search_posts("Pine", db_session)
        lower = await service.search_posts("pine", db_session)

        assert upper.ids == ["p-upper"]
        assert lower.ids == ["p-lower"]

    @pytest.mark.asyncio
    async def test_query_with_key_separators_is_not_served_from_another_entry(self, db_session):
        class EchoFulltext:
            mode = SearchMode.LIKE

            async def search_posts(self, query, options):
                return [f"{query}|{','.join(sorted(options.filter_ids))}"]

        service = SearchService(fulltext=EchoFulltext(), cache=CacheService(), cache_enabled=True)

        filtered = await service.search_posts("matsu", db_session, genre_ids=["g-pine"])
        tricky = await service.search_posts("matsu:g:g-pine", db_session)

        assert filtered.ids == ["matsu|g-pine"]
        assert tricky.ids == ["matsu:g:g-pine|"]
