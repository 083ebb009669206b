"""
Round and verdict countdown
PhaseTimer drives IDLE -> ROUND -> VERDICT -> EXPIRED from clock ticks
"""

from typing import Callable, Optional

import structlog

from clock import Clock, TickHandle
from config import ROUND_DURATION, VERDICT_DURATION
from schemas import Phase

logger = structlog.get_logger(__name__)

PhaseCallback = Callable[[], None]


def format_timer_text(phase: Phase, remaining_seconds: int) -> str:
    """Label shown by every scene's timer widget."""
    if phase == Phase.EXPIRED:
        return "Time's Up!"
    minutes, seconds = divmod(max(0, remaining_seconds), 60)
    return f"Time Left: {minutes}:{seconds:02d}"


class PhaseTimer:
    """
    State machine for the session countdown.

    Every method is defined for every phase; calls that make no sense in the
    current phase are no-ops. At most one tick source is installed at a time.
    """

    def __init__(
        self,
        clock: Clock,
        round_seconds: int = ROUND_DURATION,
        verdict_seconds: int = VERDICT_DURATION,
    ):
        self.clock = clock
        self.round_seconds = round_seconds
        self.verdict_seconds = verdict_seconds
        self._phase = Phase.IDLE
        self._remaining = 0
        self._handle: Optional[TickHandle] = None
        self._on_round_end: Optional[PhaseCallback] = None
        self._on_verdict_end: Optional[PhaseCallback] = None
        self._tick_listeners: list[Callable[[Phase, int], None]] = []

    # ─── queries ───────────────────────────────────────────
    def current_phase(self) -> Phase:
        return self._phase

    def remaining_seconds(self) -> int:
        return self._remaining

    def is_running(self) -> bool:
        return self._handle is not None and self._handle.active

    def timer_text(self) -> str:
        return format_timer_text(self._phase, self._remaining)

    def add_tick_listener(self, listener: Callable[[Phase, int], None]) -> None:
        """Listener receives (phase, remaining_seconds) after every applied tick."""
        self._tick_listeners.append(listener)

    # ─── transitions ───────────────────────────────────────
    def start(self, on_round_end: Optional[PhaseCallback] = None,
              on_verdict_end: Optional[PhaseCallback] = None) -> None:
        """Begin a fresh ROUND, replacing any running countdown."""
        self._cancel_ticking()
        self._on_round_end = on_round_end
        self._on_verdict_end = on_verdict_end
        self._phase = Phase.ROUND
        self._remaining = self.round_seconds
        self._handle = self.clock.schedule(self.tick)
        logger.info("timer_started", phase=self._phase.value, remaining=self._remaining)

    def switch_to_verdict_phase(self) -> None:
        """Skip straight to the verdict countdown."""
        if self._phase in (Phase.VERDICT, Phase.EXPIRED):
            return
        self._phase = Phase.VERDICT
        self._remaining = self.verdict_seconds
        if not self.is_running():
            self._handle = self.clock.schedule(self.tick)
        logger.info("timer_switched_to_verdict", remaining=self._remaining)

    def stop(self) -> None:
        """Halt ticking, leaving phase and remaining time untouched."""
        if self.is_running():
            logger.info("timer_stopped", phase=self._phase.value, remaining=self._remaining)
        self._cancel_ticking()

    def reset(self) -> None:
        """Return to IDLE and forget the phase callbacks."""
        self._cancel_ticking()
        self._phase = Phase.IDLE
        self._remaining = 0
        self._on_round_end = None
        self._on_verdict_end = None

    def tick(self) -> None:
        if not self.is_running() or self._phase not in (Phase.ROUND, Phase.VERDICT):
            return

        self._remaining = max(0, self._remaining - 1)
        callback: Optional[PhaseCallback] = None

        if self._remaining == 0:
            if self._phase == Phase.ROUND:
                self._phase = Phase.VERDICT
                self._remaining = self.verdict_seconds
                callback = self._on_round_end
                logger.info("round_ended", remaining=self._remaining)
            else:
                self._phase = Phase.EXPIRED
                self._cancel_ticking()
                callback = self._on_verdict_end
                logger.info("verdict_time_expired")

        # listeners and callbacks see the post-transition state;
        # the phase callback runs even if a listener raises
        try:
            for listener in list(self._tick_listeners):
                listener(self._phase, self._remaining)
        finally:
            if callback is not None:
                callback()

    def _cancel_ticking(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
