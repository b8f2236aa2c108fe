"""Debounce scheduler for edit-driven compiles."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from compilepad.core.logging import get_logger

_logger = get_logger(__name__)


class DebounceScheduler:
    """Single-shot, coalescing timer.

    ``schedule()`` replaces any pending timer, so only the last scheduled
    delay fires. There is never more than one pending timer.

    Example:
        scheduler = DebounceScheduler(lambda: print("compile"))
        scheduler.schedule(800)
        scheduler.schedule(800)  # first timer is dropped
    """

    def __init__(
        self,
        callback: Callable[[], None],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Initialize scheduler.

        Args:
            callback: Invoked exactly once per expired timer
            loop: Event loop to arm timers on (defaults to the running loop)
        """
        self._callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay_ms: int = 5000) -> None:
        """Arm the timer, cancelling and replacing any pending one.

        Args:
            delay_ms: Quiet period in milliseconds
        """
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(max(delay_ms, 0) / 1000.0, self._fire)
        _logger.debug(f"compile scheduled in {delay_ms} ms")

    def cancel(self) -> None:
        """Clear the pending timer, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()
