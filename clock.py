"""
Tick sources for the game timer
A Clock delivers one callback per period on the cooperative context
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import structlog

logger = structlog.get_logger(__name__)

TICK_PERIOD_SECONDS = 1.0


class TickHandle:
    """Handle for one installed tick source. Cancelling it is idempotent."""

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.active = True
        self._task: Optional[asyncio.Task] = None

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()


class Clock(ABC):
    """Periodic tick source."""

    period: float = TICK_PERIOD_SECONDS

    @abstractmethod
    def schedule(self, callback: Callable[[], None]) -> TickHandle:
        """Install a tick source calling `callback` once per period."""


class AsyncioClock(Clock):
    """
    Ticks from a background task on the running event loop.
    The callback runs on the loop itself, so it may mutate game state.
    """

    def __init__(self, period: float = TICK_PERIOD_SECONDS):
        self.period = period

    def schedule(self, callback: Callable[[], None]) -> TickHandle:
        """Must be called on a running event loop; raises RuntimeError otherwise."""
        loop = asyncio.get_running_loop()
        handle = TickHandle(callback)
        handle._task = loop.create_task(self._run(handle))
        return handle

    async def _run(self, handle: TickHandle) -> None:
        try:
            while handle.active:
                await asyncio.sleep(self.period)
                if not handle.active:
                    break
                try:
                    handle.callback()
                except Exception as e:
                    logger.error("tick_callback_failed", error=str(e), exc_info=True)
        except asyncio.CancelledError:
            pass


class ManualClock(Clock):
    """Clock advanced explicitly by the caller. Used by tests and the UI shell."""

    def __init__(self):
        self._handles: List[TickHandle] = []

    def schedule(self, callback: Callable[[], None]) -> TickHandle:
        handle = TickHandle(callback)
        self._handles.append(handle)
        return handle

    @property
    def active_sources(self) -> int:
        self._handles = [h for h in self._handles if h.active]
        return len(self._handles)

    def advance(self, seconds: int = 1) -> None:
        """Deliver `seconds` ticks to every active tick source."""
        for _ in range(seconds):
            for handle in list(self._handles):
                if handle.active:
                    handle.callback()


class WallClock(ManualClock):
    """Manual clock that catches up with elapsed wall time when pumped."""

    def __init__(self, now: Callable[[], float] = time.monotonic):
        super().__init__()
        self._now = now
        self._last = now()

    def schedule(self, callback: Callable[[], None]) -> TickHandle:
        if not self.active_sources:
            self._last = self._now()
        return super().schedule(callback)

    def catch_up(self) -> int:
        """Deliver one tick per whole second elapsed since the last catch-up."""
        elapsed = int(self._now() - self._last)
        if elapsed <= 0:
            return 0
        self._last += elapsed
        self.advance(elapsed)
        return elapsed
