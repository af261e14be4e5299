"""
Test Mocks
===========

Test doubles for the browser engine and the cache clock.
"""

import asyncio
import hashlib
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

from src.core.rendering.engine import EngineState
from src.models.schemas import RenderRequest

__all__ = ["FakeEngine", "ManualClock", "make_page", "make_browser", "make_playwright"]


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEngine:
    """In-process stand-in for BrowserEngine.

    Produces deterministic bytes per (html, options) and counts render calls.
    An optional gate holds renders open until it is set.
    """

    def __init__(
        self,
        fail_with: Optional[BaseException] = None,
        launch_error: Optional[BaseException] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.fail_with = fail_with
        self.launch_error = launch_error
        self.gate = gate
        self.state = EngineState.UNINITIALIZED
        self.render_count = 0
        self.ensure_ready_calls = 0
        self.closed = False

    async def ensure_ready(self) -> "FakeEngine":
        self.ensure_ready_calls += 1
        if self.launch_error is not None:
            self.state = EngineState.FAILED
            raise self.launch_error
        self.state = EngineState.READY
        return self

    async def render(self, request: RenderRequest) -> bytes:
        await self.ensure_ready()
        self.render_count += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        digest = hashlib.sha256(
            (request.html + request.options.canonical_json()).encode("utf-8")
        ).hexdigest()
        return f"{request.options.format.value}:{digest}".encode("ascii")

    async def close(self) -> None:
        self.closed = True
        self.state = EngineState.CLOSED


def make_page(screenshot: bytes = b"\x89PNG fake") -> MagicMock:
    page = MagicMock()
    page.set_content = AsyncMock()
    page.screenshot = AsyncMock(return_value=screenshot)
    page.close = AsyncMock()
    return page


def make_browser(page: Optional[MagicMock] = None) -> MagicMock:
    browser = MagicMock()
    browser.is_connected.return_value = True
    browser.new_page = AsyncMock(return_value=page if page is not None else make_page())
    browser.close = AsyncMock()
    return browser


def make_playwright(browser: Optional[MagicMock] = None, launch_side_effect=None):
    """Build a patched ``async_playwright`` callable.

    Returns:
        (async_playwright replacement, playwright instance, browser)
    """
    browser = browser if browser is not None else make_browser()
    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser, side_effect=launch_side_effect)
    playwright.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)
    factory = MagicMock(return_value=starter)
    return factory, playwright, browser
