"""
Test Configuration
==================

Pytest configuration with fixtures shared by unit and integration tests.
"""

import pytest

from src.config.settings import Settings
from src.core.admission import AdmissionController
from src.core.cache import ResultCache
from src.core.orchestrator import RenderOrchestrator
from src.models.schemas import RenderOptions, RenderRequest

from tests.utils.mocks import FakeEngine, ManualClock


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    debug: bool = True
    max_concurrent: int = 2
    cache_ttl: float = 60.0
    max_html_bytes: int = 4096
    browser_launch_timeout: float = 1.0
    browser_close_timeout: float = 0.1
    drain_timeout: float = 0.2
    log_level: str = "DEBUG"


@pytest.fixture
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings()


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def cache(test_settings: TestSettings, manual_clock: ManualClock) -> ResultCache:
    return ResultCache(ttl=test_settings.cache_ttl, clock=manual_clock)


@pytest.fixture
def admission(test_settings: TestSettings) -> AdmissionController:
    return AdmissionController(test_settings.max_concurrent, retry_after=3)


@pytest.fixture
def orchestrator(
    fake_engine: FakeEngine,
    cache: ResultCache,
    admission: AdmissionController,
    test_settings: TestSettings,
) -> RenderOrchestrator:
    return RenderOrchestrator(
        engine=fake_engine,
        cache=cache,
        admission=admission,
        max_html_bytes=test_settings.max_html_bytes,
    )


@pytest.fixture
def sample_request() -> RenderRequest:
    return RenderRequest(html="<h1>x</h1>", options=RenderOptions())
