"""
Search endpoints: posts, users and hashtags.

Responses carry ids only; clients hydrate them through the main API.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bonlog.core.config import settings
from bonlog.core.database import get_db
from bonlog.core.rate_limit import limiter, SEARCH_LIMIT
from bonlog.schemas.search import (
    PopularTag,
    PopularTagsResponse,
    PostSearchResponse,
    UserSearchResponse,
)
from bonlog.services.auth_service import get_viewer_id
from bonlog.services.search_service import search_service

router = APIRouter()

MAX_QUERY_LENGTH = 200


@router.get("/posts", response_model=PostSearchResponse)
@limiter.limit(SEARCH_LIMIT)
async def search_posts(
    request: Request,
    q: str = Query("", max_length=MAX_QUERY_LENGTH),
    genre_ids: Optional[List[str]] = Query(None),
    cursor: Optional[str] = None,
    limit: int = Query(settings.SEARCH_DEFAULT_LIMIT, ge=1, le=settings.SEARCH_MAX_LIMIT),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    """Search post content."""
    page = await search_service.search_posts(
        q, db, viewer_id=viewer_id, genre_ids=genre_ids, cursor=cursor, limit=limit
    )
    return PostSearchResponse(post_ids=page.ids, next_cursor=page.next_cursor, has_more=page.has_more)


@router.get("/users", response_model=UserSearchResponse)
@limiter.limit(SEARCH_LIMIT)
async def search_users(
    request: Request,
    q: str = Query("", max_length=MAX_QUERY_LENGTH),
    cursor: Optional[str] = None,
    limit: int = Query(settings.SEARCH_DEFAULT_LIMIT, ge=1, le=settings.SEARCH_MAX_LIMIT),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    """Search nicknames and bios."""
    page = await search_service.search_users(q, db, viewer_id=viewer_id, cursor=cursor, limit=limit)
    return UserSearchResponse(user_ids=page.ids, next_cursor=page.next_cursor, has_more=page.has_more)


# Declared before /tags/{tag} so "popular" is not read as a tag
@router.get("/tags/popular", response_model=PopularTagsResponse)
@limiter.limit(SEARCH_LIMIT)
async def popular_tags(
    request: Request,
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """Hashtags most used in recent posts."""
    tags = await search_service.get_popular_tags(db, limit=limit)
    return PopularTagsResponse(tags=[PopularTag(tag=t.tag, count=t.count) for t in tags])


@router.get("/tags/{tag}", response_model=PostSearchResponse)
@limiter.limit(SEARCH_LIMIT)
async def search_by_tag(
    request: Request,
    tag: str,
    cursor: Optional[str] = None,
    limit: int = Query(settings.SEARCH_DEFAULT_LIMIT, ge=1, le=settings.SEARCH_MAX_LIMIT),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    """Posts containing #tag, newest first."""
    page = await search_service.search_by_tag(tag, db, viewer_id=viewer_id, cursor=cursor, limit=limit)
    return PostSearchResponse(post_ids=page.ids, next_cursor=page.next_cursor, has_more=page.has_more)
