"""
FastAPI Application
==================

Main FastAPI application serving HTML to image conversion.
Wires the service context into the application lifespan so the browser is
pre-warmed on startup and shut down gracefully when uvicorn receives
SIGTERM/SIGINT.
"""

from contextlib import asynccontextmanager
import math
import uuid
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
import uvicorn

from src.config.settings import get_settings, Settings
from src.config.logging import get_logger, setup_logging
from src.api.routes.cache import router as cache_router
from src.api.routes.render import router as render_router
from src.api.routes.status import router as status_router
from src.core.context import build_context
from src.core.errors import CapacityExceededError, RenderServiceError, ServiceUnavailableError
from src.core.rendering.engine import BrowserEngine
from src.models.schemas import ErrorResponse

logger = get_logger(__name__)

SECURITY_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}

RENDER_PATHS = {"/html-to-image", "/test-image"}


def error_response(
    request: Request, status_code: int, error: str, error_code: str, details: Optional[dict] = None
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        error_code=error_code,
        details=details or None,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_app(settings: Optional[Settings] = None, engine: Optional[BrowserEngine] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use, defaults to the environment settings
        engine: Browser engine override, used by tests

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        context = build_context(settings, engine=engine)
        app.state.context = context
        await context.lifecycle.start()
        try:
            yield
        finally:
            await context.lifecycle.shutdown(reason="application shutdown")

    app = FastAPI(
        title=settings.app_name,
        description="Render HTML markup into PNG, JPEG or WebP images",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next) -> Response:  # type: ignore
        """Attach a request ID and security headers; refuse new renders while draining."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        context = getattr(request.app.state, "context", None)
        if (
            context is not None
            and not context.lifecycle.accepting
            and request.url.path in RENDER_PATHS
        ):
            exc = ServiceUnavailableError("Server is shutting down")
            response: Response = error_response(request, exc.status_code, exc.message, exc.error_code)
        else:
            try:
                response = await call_next(request)
            except Exception as e:
                response = internal_error_response(request, e)

        response.headers["X-Request-ID"] = request_id
        response.headers.update(SECURITY_HEADERS)
        return response

    @app.exception_handler(RenderServiceError)
    async def render_service_exception_handler(
        request: Request, exc: RenderServiceError
    ) -> JSONResponse:
        """Map render pipeline errors to structured responses."""
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Request failed",
            error_code=exc.error_code,
            error=exc.message,
            status_code=exc.status_code,
            request_id=getattr(request.state, "request_id", None),
        )

        response = error_response(request, exc.status_code, exc.message, exc.error_code, exc.details)
        if isinstance(exc, CapacityExceededError):
            response.headers["Retry-After"] = str(exc.retry_after)
        return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies are client errors."""
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return error_response(
            request, 400, "Invalid request body", "VALIDATION_ERROR", {"errors": errors}
        )

    def internal_error_response(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            exception=str(exc),
            request_id=getattr(request.state, "request_id", None),
            exc_info=exc,
        )
        return error_response(
            request,
            500,
            "Internal server error",
            "INTERNAL_ERROR",
            {"exception": str(exc)} if settings.debug else None,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """General exception handler for errors raised outside the request middleware."""
        return internal_error_response(request, exc)

    app.include_router(status_router)
    app.include_router(render_router)
    app.include_router(cache_router)
    return app


app = create_app()


def graceful_shutdown_timeout(drain_timeout: float) -> int:
    """Whole seconds uvicorn waits for in-flight requests, never unbounded."""
    return max(1, math.ceil(drain_timeout))


def run_server() -> None:
    """Run the server; uvicorn drives graceful shutdown on SIGTERM/SIGINT."""
    settings = get_settings()
    setup_logging(settings)
    uvicorn.run(
        "src.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
        timeout_keep_alive=settings.keep_alive_timeout,
        timeout_graceful_shutdown=graceful_shutdown_timeout(settings.drain_timeout),
        access_log=not settings.is_production,
    )


if __name__ == "__main__":
    run_server()
