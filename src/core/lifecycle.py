"""
Lifecycle Manager
=================

Startup pre-warm, periodic background maintenance and graceful shutdown
for the render service.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional
import asyncio
import time

import psutil  # type: ignore

from src.config.logging import get_logger
from src.config.settings import Settings
from src.core.admission import AdmissionController
from src.core.cache import ResultCache
from src.core.errors import EngineLaunchError
from src.core.rendering.engine import BrowserEngine

logger = get_logger(__name__)


class LifecycleState(str, Enum):
    STARTING = "starting"
    READY = "ready"
    DRAINING = "draining"
    STOPPED = "stopped"


def process_memory() -> Dict[str, Any]:
    """Resident memory of this process."""
    process = psutil.Process()
    return {
        "rss_mb": round(process.memory_info().rss / 1024 / 1024),
        "percent": round(process.memory_percent(), 2),
    }


class LifecycleManager:
    """Drives the service through startup, steady state and shutdown."""

    def __init__(
        self,
        settings: Settings,
        engine: BrowserEngine,
        cache: ResultCache,
        admission: AdmissionController,
    ):
        self.settings = settings
        self.engine = engine
        self.cache = cache
        self.admission = admission
        self.state = LifecycleState.STARTING
        self._tasks: List["asyncio.Task[None]"] = []
        self.logger: Any = logger.bind(component="lifecycle")  # structlog.BoundLoggerBase

    @property
    def accepting(self) -> bool:
        return self.state in (LifecycleState.STARTING, LifecycleState.READY)

    async def start(self) -> None:
        """Pre-warm the browser and schedule background tasks."""
        self.state = LifecycleState.STARTING
        self.logger.info(
            "Starting render service",
            port=self.settings.port,
            max_concurrent=self.settings.max_concurrent,
            cache_ttl=self.settings.cache_ttl,
            environment=self.settings.environment,
        )

        try:
            await self.engine.ensure_ready()
        except EngineLaunchError as e:
            self.logger.error("Failed to initialize browser on startup", error=str(e))
            self.logger.warning("Browser will be initialized on first request")

        self._tasks.append(
            self._schedule("cache_sweep", self.settings.cache_sweep_interval, self._sweep)
        )
        if self.settings.is_production:
            self._tasks.append(
                self._schedule("stats_log", self.settings.stats_log_interval, self._log_stats)
            )

        self.state = LifecycleState.READY
        self.logger.info("Render service ready")

    def _schedule(
        self, name: str, interval: float, action: Callable[[], Awaitable[None]]
    ) -> "asyncio.Task[None]":
        async def runner() -> None:
            while True:
                await asyncio.sleep(interval)
                try:
                    await action()
                except Exception as e:
                    self.logger.error("Background task failed", task=name, error=str(e))

        return asyncio.create_task(runner(), name=name)

    async def _sweep(self) -> None:
        self.cache.sweep()

    async def _log_stats(self) -> None:
        self.logger.info(
            "Stats",
            active=self.admission.active,
            cache_size=self.cache.size,
            memory_mb=process_memory()["rss_mb"],
        )

    async def wait_for_drain(self, timeout: float) -> bool:
        """Wait until no renders are in flight. Returns False on timeout."""
        deadline = time.monotonic() + timeout
        while self.admission.active > 0:
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(0.05)
        return True

    async def shutdown(self, reason: Optional[str] = None) -> None:
        """Drain in-flight work, clear the cache and close the browser."""
        if self.state in (LifecycleState.DRAINING, LifecycleState.STOPPED):
            return

        self.state = LifecycleState.DRAINING
        self.logger.info("Shutting down gracefully", reason=reason)

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if not await self.wait_for_drain(self.settings.drain_timeout):
            self.logger.warning(
                "Drain timeout reached with renders in flight", active=self.admission.active
            )

        cleared = self.cache.clear()
        self.logger.info("Cache cleared", cleared_entries=cleared)

        await self.engine.close()

        self.state = LifecycleState.STOPPED
        self.logger.info("Render service stopped")
