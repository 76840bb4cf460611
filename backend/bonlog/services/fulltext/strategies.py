"""
Per-mode SQL for post and user search.

Each strategy only decides how a search term matches and how matches are
ordered. Filtering, pagination and execution are shared by
FulltextSearchService so the three SQL dialects stay side by side here.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from sqlalchemy import String, func, literal_column, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from bonlog.models.post import Post
from bonlog.models.user import User
from bonlog.services.fulltext.mode import SearchMode


def escape_search_term(query: str) -> str:
    """Double single quotes so the term can sit inside a SQL string literal."""
    return query.replace("'", "''")


def quoted_term(query: str) -> ColumnElement:
    """The raw term as an inline SQL string literal: ``'term'``."""
    return literal_column(f"'{escape_search_term(query)}'", type_=String)


def contains_pattern(query: str) -> ColumnElement:
    """The term wrapped for substring matching: ``'%term%'``."""
    return literal_column(f"'%{escape_search_term(query)}%'", type_=String)


@dataclass(frozen=True)
class MatchClause:
    """Predicate and ordering produced by a strategy for one search term."""

    predicate: ColumnElement
    order_by: Tuple[ColumnElement, ...]


class SearchStrategy:
    """Base class: one implementation per SearchMode."""

    mode: SearchMode

    async def prepare(self, db: AsyncSession) -> None:
        """Hook run in the query's transaction before the search statement."""
        return None

    def match_posts(self, query: str) -> MatchClause:
        raise NotImplementedError

    def match_users(self, query: str) -> MatchClause:
        raise NotImplementedError


class PatternMatchStrategy(SearchStrategy):
    """Case-insensitive substring scan. Works on any database; also the fallback."""

    mode = SearchMode.LIKE

    def match_posts(self, query: str) -> MatchClause:
        return MatchClause(
            predicate=Post.content.ilike(contains_pattern(query)),
            order_by=(Post.created_at.desc(), Post.id.desc()),
        )

    def match_users(self, query: str) -> MatchClause:
        pattern = contains_pattern(query)
        return MatchClause(
            predicate=or_(User.nickname.ilike(pattern), User.bio.ilike(pattern)),
            order_by=(User.id.desc(),),
        )


class NgramIndexStrategy(SearchStrategy):
    """pg_bigm: LIKE '%term%' is answered from the gin_bigm_ops index."""

    mode = SearchMode.BIGM

    def match_posts(self, query: str) -> MatchClause:
        return MatchClause(
            predicate=Post.content.like(contains_pattern(query)),
            order_by=(Post.created_at.desc(), Post.id.desc()),
        )

    def match_users(self, query: str) -> MatchClause:
        pattern = contains_pattern(query)
        return MatchClause(
            predicate=or_(User.nickname.like(pattern), User.bio.like(pattern)),
            order_by=(User.id.desc(),),
        )


class TrigramSimilarityStrategy(SearchStrategy):
    """
    pg_trgm: similar strings (``%`` operator) or exact substrings, best match first.

    ``similarity_threshold`` is applied with ``set_config`` for the current
    transaction only; None leaves the server's ``pg_trgm.similarity_threshold``.
    """

    mode = SearchMode.TRGM

    def __init__(self, similarity_threshold: Optional[float] = None):
        self.similarity_threshold = similarity_threshold

    async def prepare(self, db: AsyncSession) -> None:
        if self.similarity_threshold is None:
            return
        await db.execute(
            select(
                func.set_config(
                    "pg_trgm.similarity_threshold",
                    str(self.similarity_threshold),
                    True,
                )
            )
        )

    def match_posts(self, query: str) -> MatchClause:
        term = quoted_term(query)
        return MatchClause(
            predicate=or_(
                Post.content.op("%")(term),
                Post.content.ilike(contains_pattern(query)),
            ),
            order_by=(
                func.similarity(Post.content, term).desc(),
                Post.created_at.desc(),
                Post.id.desc(),
            ),
        )

    def match_users(self, query: str) -> MatchClause:
        term = quoted_term(query)
        pattern = contains_pattern(query)
        # A NULL bio scores 0 so GREATEST still ranks by nickname
        score = func.greatest(
            func.similarity(User.nickname, term),
            func.coalesce(func.similarity(User.bio, term), 0),
        )
        return MatchClause(
            predicate=or_(
                User.nickname.op("%")(term),
                User.nickname.ilike(pattern),
                User.bio.op("%")(term),
                User.bio.ilike(pattern),
            ),
            order_by=(score.desc(), User.id.desc()),
        )


def build_strategies(similarity_threshold: Optional[float] = None) -> Dict[SearchMode, SearchStrategy]:
    """One strategy instance per mode."""
    return {
        SearchMode.BIGM: NgramIndexStrategy(),
        SearchMode.TRGM: TrigramSimilarityStrategy(similarity_threshold),
        SearchMode.LIKE: PatternMatchStrategy(),
    }
