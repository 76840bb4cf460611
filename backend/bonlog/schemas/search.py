"""
Search schemas for request/response models.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class PostSearchResponse(BaseModel):
    """A page of post ids."""
    post_ids: List[str]
    next_cursor: Optional[str] = None
    has_more: bool = False


class UserSearchResponse(BaseModel):
    """A page of user ids."""
    user_ids: List[str]
    next_cursor: Optional[str] = None
    has_more: bool = False


class PopularTag(BaseModel):
    tag: str
    count: int = Field(ge=1)


class PopularTagsResponse(BaseModel):
    tags: List[PopularTag]


class SearchStatusResponse(BaseModel):
    """Configured mode and live extension availability."""
    mode: str
    bigm_available: bool
    trgm_available: bool


class IndexProvisionResponse(BaseModel):
    success: bool
    message: str
    mode: str


class SearchIndexInfo(BaseModel):
    table: str
    index: str


class ExtensionEnableResponse(BaseModel):
    extension: str
    enabled: bool
