"""
Unit Tests for Lifecycle Manager
================================

Startup pre-warm, background sweeping and graceful shutdown.
"""

import asyncio

import pytest

from src.core.admission import AdmissionController
from src.core.cache import ResultCache
from src.core.errors import EngineLaunchError
from src.core.lifecycle import LifecycleManager, LifecycleState, process_memory

from tests.utils.mocks import FakeEngine, ManualClock


@pytest.fixture
def lifecycle(test_settings, fake_engine, cache, admission) -> LifecycleManager:
    return LifecycleManager(test_settings, fake_engine, cache, admission)


class TestStartup:
    @pytest.mark.asyncio
    async def test_start_prewarms_engine(self, lifecycle, fake_engine):
        assert lifecycle.state is LifecycleState.STARTING

        await lifecycle.start()

        assert fake_engine.ensure_ready_calls == 1
        assert lifecycle.state is LifecycleState.READY
        assert lifecycle.accepting is True
        await lifecycle.shutdown()

    @pytest.mark.asyncio
    async def test_prewarm_failure_is_not_fatal(self, test_settings, cache, admission):
        engine = FakeEngine(launch_error=EngineLaunchError("no chromium"))
        lifecycle = LifecycleManager(test_settings, engine, cache, admission)

        await lifecycle.start()

        assert lifecycle.state is LifecycleState.READY
        await lifecycle.shutdown()

    @pytest.mark.asyncio
    async def test_stats_logging_only_in_production(self, test_settings, fake_engine, cache, admission):
        lifecycle = LifecycleManager(test_settings, fake_engine, cache, admission)
        await lifecycle.start()
        assert [t.get_name() for t in lifecycle._tasks] == ["cache_sweep"]
        await lifecycle.shutdown()

        test_settings.environment = "production"
        lifecycle = LifecycleManager(test_settings, FakeEngine(), cache, admission)
        await lifecycle.start()
        assert [t.get_name() for t in lifecycle._tasks] == ["cache_sweep", "stats_log"]
        await lifecycle.shutdown()

    @pytest.mark.asyncio
    async def test_periodic_sweep_removes_expired_entries(self, test_settings, fake_engine, admission):
        clock = ManualClock()
        cache = ResultCache(ttl=10, clock=clock)
        test_settings.cache_sweep_interval = 0.01
        lifecycle = LifecycleManager(test_settings, fake_engine, cache, admission)

        cache.put("old", b"1")
        clock.advance(11)
        await lifecycle.start()
        await asyncio.sleep(0.05)

        assert "old" not in cache._entries
        await lifecycle.shutdown()


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_clears_cache_and_closes_engine(self, lifecycle, fake_engine, cache):
        await lifecycle.start()
        cache.put("k", b"1")

        await lifecycle.shutdown(reason="SIGTERM")

        assert cache.size == 0
        assert fake_engine.closed is True
        assert lifecycle.state is LifecycleState.STOPPED
        assert lifecycle.accepting is False
        assert lifecycle._tasks == []

    @pytest.mark.asyncio
    async def test_shutdown_without_start(self, lifecycle, fake_engine):
        await lifecycle.shutdown()
        assert fake_engine.closed is True
        assert lifecycle.state is LifecycleState.STOPPED

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self, lifecycle, fake_engine):
        await lifecycle.start()
        await lifecycle.shutdown()
        fake_engine.closed = False

        await lifecycle.shutdown()

        assert fake_engine.closed is False

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_in_flight_renders(self, lifecycle, admission, fake_engine):
        await lifecycle.start()
        admission.try_enter()
        observed = {}

        async def finish_render() -> None:
            await asyncio.sleep(0.05)
            observed["engine_closed_before_exit"] = fake_engine.closed
            admission.exit()

        finisher = asyncio.create_task(finish_render())
        await lifecycle.shutdown()
        await finisher

        assert observed["engine_closed_before_exit"] is False
        assert fake_engine.closed is True

    @pytest.mark.asyncio
    async def test_shutdown_completes_after_drain_timeout(self, lifecycle, admission, fake_engine):
        admission.try_enter()

        await asyncio.wait_for(lifecycle.shutdown(), timeout=2)

        assert lifecycle.state is LifecycleState.STOPPED
        assert fake_engine.closed is True

    @pytest.mark.asyncio
    async def test_wait_for_drain_reports_timeout(self, lifecycle, admission):
        admission.try_enter()
        assert await lifecycle.wait_for_drain(0.05) is False
        admission.exit()
        assert await lifecycle.wait_for_drain(0.05) is True


def test_process_memory_reports_rss():
    memory = process_memory()
    assert memory["rss_mb"] > 0
    assert memory["percent"] >= 0
