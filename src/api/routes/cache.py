"""
Cache Routes
============

FastAPI routes for result cache management.
"""

from fastapi import APIRouter, Depends

from src.api.deps import get_context
from src.core.context import ServiceContext
from src.models.schemas import CacheClearResponse

router = APIRouter(tags=["Cache"])


@router.post("/cache-clear", response_model=CacheClearResponse)
async def cache_clear(context: ServiceContext = Depends(get_context)) -> CacheClearResponse:
    """Drop every cached image."""
    return CacheClearResponse(cleared_entries=context.cache.clear())
