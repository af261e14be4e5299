"""
Admission Control
=================

Non-blocking concurrency gate for render operations. Requests over the
ceiling are rejected immediately rather than queued.

Usage::

    async with admission.slot():
        image = await engine.render(request)
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from src.config.logging import get_logger
from src.core.errors import CapacityExceededError

logger = get_logger(__name__)


class AdmissionController:
    """Tracks in-flight renders against a fixed ceiling."""

    def __init__(self, max_concurrent: int, retry_after: int = 3):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._max_concurrent = max_concurrent
        self._retry_after = retry_after
        self._active = 0
        self.rejected_total = 0
        self.logger = logger.bind(component="admission")

    @property
    def active(self) -> int:
        return self._active

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    def try_enter(self) -> bool:
        """Grant a slot if one is free. Never blocks."""
        if self._active >= self._max_concurrent:
            self.rejected_total += 1
            self.logger.warning(
                "Admission rejected",
                active=self._active,
                max_concurrent=self._max_concurrent,
            )
            return False

        self._active += 1
        return True

    def exit(self) -> None:
        self._active = max(0, self._active - 1)

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold a slot for the duration of the block.

        Raises:
            CapacityExceededError: If the ceiling has been reached.
        """
        if not self.try_enter():
            raise CapacityExceededError(retry_after=self._retry_after)
        try:
            yield
        finally:
            self.exit()
