"""
Request Orchestrator
====================

Composes the result cache, admission gate and browser engine into the
per-request render flow:

1. validate the markup size
2. serve from cache when possible (cache hits skip admission)
3. otherwise take an admission slot, render, store, release the slot
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Protocol

from src.config.logging import get_logger
from src.core.admission import AdmissionController
from src.core.cache import ResultCache, compute_cache_key
from src.core.errors import (
    EngineLaunchError,
    PayloadTooLargeError,
    RenderFailedError,
    ValidationError,
)
from src.models.schemas import ImageFormat, RenderRequest

logger = get_logger(__name__)


class RenderEngine(Protocol):
    async def render(self, request: RenderRequest) -> bytes: ...


@dataclass(frozen=True)
class RenderResult:
    image_bytes: bytes
    format: ImageFormat
    cache_hit: bool
    elapsed_ms: int


class RenderOrchestrator:
    """Handles render requests on behalf of the HTTP layer."""

    def __init__(
        self,
        engine: RenderEngine,
        cache: ResultCache,
        admission: AdmissionController,
        max_html_bytes: int,
    ):
        self.engine = engine
        self.cache = cache
        self.admission = admission
        self.max_html_bytes = max_html_bytes
        self.hits = 0
        self.misses = 0
        self.renders = 0
        self.failures = 0
        self.logger: Any = logger.bind(component="orchestrator")  # structlog.BoundLoggerBase

    def validate(self, request: RenderRequest) -> None:
        """
        Reject requests that must never reach admission or the engine.

        Raises:
            ValidationError: If html is missing
            PayloadTooLargeError: If html exceeds ``max_html_bytes``
        """
        if not request.html:
            raise ValidationError(
                "HTML content is required",
                details={"usage": "Send JSON with 'html' field containing HTML content"},
            )

        size = len(request.html.encode("utf-8"))
        if size > self.max_html_bytes:
            raise PayloadTooLargeError(
                "HTML content too large",
                details={"max_bytes": self.max_html_bytes, "received_bytes": size},
            )

    async def handle(self, request: RenderRequest) -> RenderResult:
        """
        Produce image bytes for a request, from cache or by rendering.

        Raises:
            ValidationError: Missing or oversized html
            CapacityExceededError: Admission rejected
            EngineLaunchError: Browser could not be started
            RenderFailedError: Rendering failed (``RenderTimeoutError`` on timeout)
        """
        start = time.perf_counter()
        self.validate(request)

        key = compute_cache_key(request.html, request.options)
        cached = self.cache.get(key)
        if cached is not None:
            self.hits += 1
            elapsed_ms = _elapsed_ms(start)
            self.logger.info("Image served from cache", elapsed_ms=elapsed_ms, size=len(cached))
            return RenderResult(cached, request.options.format, True, elapsed_ms)

        self.misses += 1
        async with self.admission.slot():
            self.logger.info(
                "Processing image request",
                html_length=len(request.html),
                active=self.admission.active,
            )
            try:
                self.renders += 1
                image_bytes = await self.engine.render(request)
            except (EngineLaunchError, RenderFailedError) as e:
                self.failures += 1
                self.logger.error(
                    "Image generation failed",
                    error=str(e),
                    error_code=e.error_code,
                    elapsed_ms=_elapsed_ms(start),
                )
                raise
            except Exception as e:
                self.failures += 1
                self.logger.error(
                    "Image generation failed", error=str(e), elapsed_ms=_elapsed_ms(start)
                )
                raise RenderFailedError(f"Failed to generate image: {e}", cause=e) from e

            self.cache.put(key, image_bytes)

        elapsed_ms = _elapsed_ms(start)
        self.logger.info("Image generated and cached", elapsed_ms=elapsed_ms, size=len(image_bytes))
        return RenderResult(image_bytes, request.options.format, False, elapsed_ms)

    def stats(self) -> Dict[str, int]:
        return {
            "cache_hits": self.hits,
            "cache_misses": self.misses,
            "renders": self.renders,
            "failures": self.failures,
            "rejections": self.admission.rejected_total,
        }


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
