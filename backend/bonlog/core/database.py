"""
Database configuration and connection management.

The posts, users, genres and relationship tables belong to the main BON-LOG
application; this service only reads them and adds search indexes.
"""

from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from loguru import logger

from .config import settings

# Convert sync database URL to async for async operations
async_database_url = settings.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

# Create async engine
engine = create_async_engine(
    async_database_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_recycle=300,
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Create declarative base
Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    Get database session.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            # Don't log HTTPException as database errors - they're expected API responses
            from fastapi import HTTPException
            if not isinstance(e, HTTPException):
                logger.error("Database session error: {}", str(e))
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine():
    """Close pooled connections on shutdown."""
    await engine.dispose()
    logger.info("Database engine disposed")
