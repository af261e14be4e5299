"""
Service Context
===============

Per-process container for the shared render components. Built once at
startup and torn down by the lifecycle manager at shutdown.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from src.config.settings import Settings
from src.core.admission import AdmissionController
from src.core.cache import ResultCache
from src.core.lifecycle import LifecycleManager
from src.core.orchestrator import RenderOrchestrator
from src.core.rendering.engine import BrowserEngine


@dataclass
class ServiceContext:
    settings: Settings
    engine: BrowserEngine
    cache: ResultCache
    admission: AdmissionController
    orchestrator: RenderOrchestrator
    lifecycle: LifecycleManager
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime(self) -> int:
        return round(time.monotonic() - self.started_at)


def build_context(settings: Settings, engine: Optional[BrowserEngine] = None) -> ServiceContext:
    """Wire up the render components from settings."""
    engine = engine or BrowserEngine(settings)
    cache = ResultCache(ttl=settings.cache_ttl)
    admission = AdmissionController(
        settings.max_concurrent, retry_after=settings.retry_after_seconds
    )
    orchestrator = RenderOrchestrator(
        engine=engine,
        cache=cache,
        admission=admission,
        max_html_bytes=settings.max_html_bytes,
    )
    lifecycle = LifecycleManager(settings, engine, cache, admission)
    return ServiceContext(
        settings=settings,
        engine=engine,
        cache=cache,
        admission=admission,
        orchestrator=orchestrator,
        lifecycle=lifecycle,
    )
