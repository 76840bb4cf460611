"""
Admin endpoints for the full-text search setup.
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from loguru import logger

from bonlog.core.rate_limit import limiter, ADMIN_LIMIT
from bonlog.schemas.search import (
    ExtensionEnableResponse,
    IndexProvisionResponse,
    SearchIndexInfo,
    SearchStatusResponse,
)
from bonlog.services.auth_service import TokenPrincipal, require_admin
from bonlog.services.fulltext import SearchExtension, fulltext_search_service

router = APIRouter()


@router.get("/search/status", response_model=SearchStatusResponse)
@limiter.limit(ADMIN_LIMIT)
async def get_search_status(
    request: Request,
    admin: TokenPrincipal = Depends(require_admin),
):
    """Configured search mode and which extensions are installed right now."""
    status = await fulltext_search_service.get_search_status()
    return SearchStatusResponse(
        mode=status.mode.value,
        bigm_available=status.bigm_available,
        trgm_available=status.trgm_available,
    )


@router.post("/search/indexes", response_model=IndexProvisionResponse)
@limiter.limit(ADMIN_LIMIT)
async def create_search_indexes(
    request: Request,
    admin: TokenPrincipal = Depends(require_admin),
):
    """Create the GIN indexes for the configured mode (idempotent)."""
    logger.info(f"Search index provisioning requested by {admin.user_id}")
    result = await fulltext_search_service.create_search_indexes()
    return IndexProvisionResponse(
        success=result.success,
        message=result.message,
        mode=fulltext_search_service.mode.value,
    )


@router.get("/search/indexes", response_model=List[SearchIndexInfo])
@limiter.limit(ADMIN_LIMIT)
async def list_search_indexes(
    request: Request,
    admin: TokenPrincipal = Depends(require_admin),
):
    """Full-text indexes currently present on posts and users."""
    indexes = await fulltext_search_service.list_search_indexes()
    return [SearchIndexInfo(table=i.table, index=i.index) for i in indexes]


@router.post("/search/extensions/{extension}", response_model=ExtensionEnableResponse)
@limiter.limit(ADMIN_LIMIT)
async def enable_search_extension(
    request: Request,
    extension: SearchExtension,
    admin: TokenPrincipal = Depends(require_admin),
):
    """Install pg_bigm or pg_trgm. Fails softly when the role lacks privileges."""
    logger.info(f"Enabling {extension.value} requested by {admin.user_id}")
    enabled = await fulltext_search_service.enable_extension(extension)
    return ExtensionEnableResponse(extension=extension.value, enabled=enabled)
