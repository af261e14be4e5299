"""
Status Routes
=============

FastAPI route for liveness and service metrics.
"""

from fastapi import APIRouter, Depends

from src.api.deps import get_context
from src.core.context import ServiceContext
from src.core.lifecycle import process_memory
from src.models.schemas import MemoryUsage, ServiceStatus, StatusResponse

router = APIRouter(tags=["Status"])

ENDPOINTS = {
    "html-to-image": "POST /html-to-image - Convert HTML to Image (cached)",
    "test": "GET /test-image - Generate test image",
    "health": "GET / - Health check and status",
    "cache-clear": "POST /cache-clear - Clear image cache",
}


@router.get("/", response_model=StatusResponse)
async def status(context: ServiceContext = Depends(get_context)) -> StatusResponse:
    """Health check with active request count, cache size and uptime."""
    settings = context.settings
    return StatusResponse(
        message=settings.app_name,
        version=settings.app_version,
        status=ServiceStatus(
            active_requests=context.admission.active,
            max_concurrent=context.admission.max_concurrent,
            cache_size=context.cache.size,
            uptime=context.uptime,
            engine_state=context.engine.state.value,
            lifecycle_state=context.lifecycle.state.value,
            memory=MemoryUsage(**process_memory()),
            counters=context.orchestrator.stats(),
        ),
        endpoints=ENDPOINTS,
    )
