"""
Database extension probing and search index provisioning.

These are operational helpers (admin endpoints, setup script). None of them
raise: failures come back as False or as an unsuccessful IndexProvisionResult.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple, Union

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from bonlog.services.fulltext.mode import SearchExtension, SearchMode

# (index name, table, column) per mode; the operator class comes from INDEX_OPCLASSES
SEARCH_INDEXES: Dict[SearchMode, List[Tuple[str, str, str]]] = {
    SearchMode.BIGM: [
        ("posts_content_bigm_idx", "posts", "content"),
        ("users_nickname_bigm_idx", "users", "nickname"),
        ("users_bio_bigm_idx", "users", "bio"),
    ],
    SearchMode.TRGM: [
        ("posts_content_trgm_idx", "posts", "content"),
        ("users_nickname_trgm_idx", "users", "nickname"),
        ("users_bio_trgm_idx", "users", "bio"),
    ],
}

INDEX_OPCLASSES = {
    SearchMode.BIGM: "gin_bigm_ops",
    SearchMode.TRGM: "gin_trgm_ops",
}

EXTENSION_EXISTS_SQL = text(
    "SELECT EXISTS(SELECT 1 FROM pg_extension WHERE extname = :extname) AS available"
)

LIST_INDEXES_SQL = text(
    "SELECT tablename, indexname FROM pg_indexes "
    "WHERE tablename IN ('posts', 'users') "
    "AND (indexname LIKE '%trgm%' OR indexname LIKE '%bigm%') "
    "ORDER BY tablename, indexname"
)


@dataclass
class IndexProvisionResult:
    success: bool
    message: str


@dataclass
class SearchIndexInfo:
    table: str
    index: str


def create_index_statement(mode: SearchMode, index_name: str, table: str, column: str) -> str:
    """DDL for one GIN index. Every part comes from SEARCH_INDEXES, never from input."""
    return (
        f"CREATE INDEX IF NOT EXISTS {index_name} "
        f"ON {table} USING gin ({column} {INDEX_OPCLASSES[mode]})"
    )


class SearchExtensionManager:
    """Checks and installs pg_bigm / pg_trgm and creates their GIN indexes."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def is_extension_available(self, extension: Union[SearchExtension, str]) -> bool:
        """
        Check whether an extension is installed.

        Any failure (no connection, no permission, not PostgreSQL) counts as
        "not available".
        """
        name = extension.value if isinstance(extension, SearchExtension) else str(extension)
        try:
            async with self.session_factory() as db:
                result = await db.execute(EXTENSION_EXISTS_SQL, {"extname": name})
                return bool(result.scalar())
        except Exception as e:
            logger.warning(f"Extension check for {name} failed: {e}")
            return False

    async def enable_extension(self, extension: Union[SearchExtension, str]) -> bool:
        """
        Run CREATE EXTENSION IF NOT EXISTS for a known search extension.

        Returns False when the name is not a SearchExtension or the statement
        fails, which on managed databases usually means missing privileges.
        """
        try:
            ext = SearchExtension(extension)
        except ValueError:
            logger.error(f"Refusing to enable unknown extension: {extension!r}")
            return False

        try:
            async with self.session_factory() as db:
                await db.execute(text(f'CREATE EXTENSION IF NOT EXISTS "{ext.value}"'))
                await db.commit()
            logger.info(f"Extension {ext.value} enabled")
            return True
        except Exception as e:
            logger.error(f"Failed to enable {ext.value}: {e}")
            return False

    async def create_search_indexes(self, mode: SearchMode) -> IndexProvisionResult:
        """Create the GIN indexes ``mode`` needs. Safe to run on every deploy."""
        indexes = SEARCH_INDEXES.get(mode)
        if not indexes:
            return IndexProvisionResult(
                success=True,
                message="LIKE search mode: no full-text indexes required",
            )

        try:
            async with self.session_factory() as db:
                for index_name, table, column in indexes:
                    await db.execute(text(create_index_statement(mode, index_name, table, column)))
                    logger.info(f"Search index ready: {index_name}")
                await db.commit()
        except Exception as e:
            logger.error(f"Failed to create search indexes for mode {mode.value}: {e}")
            return IndexProvisionResult(success=False, message=f"Index creation failed: {e}")

        extension = "pg_bigm" if mode == SearchMode.BIGM else "pg_trgm"
        return IndexProvisionResult(success=True, message=f"{extension} indexes created")

    async def list_search_indexes(self) -> List[SearchIndexInfo]:
        """Full-text indexes currently present on posts and users."""
        try:
            async with self.session_factory() as db:
                result = await db.execute(LIST_INDEXES_SQL)
                return [SearchIndexInfo(table=row[0], index=row[1]) for row in result.all()]
        except Exception as e:
            logger.warning(f"Could not list search indexes: {e}")
            return []
