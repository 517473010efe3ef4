"""
Workout timer with duration confirmation.

States: IDLE -> RUNNING -> {AWAITING_CONFIRMATION, COMPLETED}

On stop, elapsed minutes inside [0.5x, 2x] of the estimate complete the
workout directly. Anything outside that range waits for the user to pick
the actual time, the estimate, or an edited value (at least 1 minute).

XP is awarded at a fixed rate per *estimated* minute, whatever final
duration is confirmed.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from application.exceptions import TimerStateError
from backend.core.clock import Clock, system_clock_ms
from backend.core.stat_allocation import round_half_up

logger = logging.getLogger(__name__)

XP_PER_ESTIMATED_MINUTE = 5
MIN_OK_RATIO = 0.5
MAX_OK_RATIO = 2.0
MIN_RECORDED_MINUTES = 0.1
MIN_EDITED_MINUTES = 1


class TimerState(str, Enum):
    """States of a workout timer."""

    IDLE = "idle"
    RUNNING = "running"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMPLETED = "completed"


class DurationChoice(str, Enum):
    """How a user resolves an out-of-range duration."""

    ACTUAL = "actual"
    ESTIMATED = "estimated"
    EDITED = "edited"


@dataclass
class TimerOutcome:
    """Final duration and XP of a completed timer."""

    final_minutes: float
    xp: int
    confirmed_by: Optional[DurationChoice] = None


def requires_time_confirmation(actual_minutes: float, estimated_minutes: float) -> bool:
    """True when actual minutes fall outside [0.5x, 2x] of the estimate (bounds inclusive)."""
    return (
        actual_minutes < estimated_minutes * MIN_OK_RATIO
        or actual_minutes > estimated_minutes * MAX_OK_RATIO
    )


def calculate_timer_xp(estimated_minutes: float) -> int:
    """XP awarded for a timed workout: 5 per estimated minute."""
    return round_half_up(estimated_minutes * XP_PER_ESTIMATED_MINUTE)


class WorkoutTimer:
    """
    Tracks a single workout's elapsed time against an estimate.

    Elapsed time is whole seconds since start on the injected clock, the
    same count a one-second tick would produce.
    """

    def __init__(
        self,
        estimated_minutes: float = 15,
        *,
        clock: Clock = system_clock_ms,
        on_complete: Optional[Callable[[TimerOutcome], None]] = None,
    ):
        if estimated_minutes <= 0:
            raise ValueError("estimated_minutes must be positive")
        self.estimated_minutes = estimated_minutes
        self._clock = clock
        self._on_complete = on_complete
        self.state = TimerState.IDLE
        self.started_at_ms: Optional[int] = None
        self.actual_minutes: Optional[float] = None
        self.outcome: Optional[TimerOutcome] = None
        self._stopped_elapsed: Optional[int] = None

    @property
    def elapsed_seconds(self) -> int:
        if self._stopped_elapsed is not None:
            return self._stopped_elapsed
        if self.started_at_ms is None:
            return 0
        return max(0, (self._clock() - self.started_at_ms) // 1000)

    def start(self) -> None:
        if self.state != TimerState.IDLE:
            raise TimerStateError(f"Cannot start a timer in state {self.state.value}")
        self.started_at_ms = self._clock()
        self.state = TimerState.RUNNING

    def stop(self) -> TimerState:
        """
        Stop the timer and either complete it or wait for confirmation.

        Returns:
            The new state
        """
        if self.state != TimerState.RUNNING:
            raise TimerStateError(f"Cannot stop a timer in state {self.state.value}")

        self._stopped_elapsed = self.elapsed_seconds
        self.actual_minutes = max(MIN_RECORDED_MINUTES, self._stopped_elapsed / 60)

        if requires_time_confirmation(self.actual_minutes, self.estimated_minutes):
            logger.info(
                "Timer needs confirmation: %.1f min recorded vs %s min estimated",
                self.actual_minutes,
                self.estimated_minutes,
            )
            self.state = TimerState.AWAITING_CONFIRMATION
        else:
            self._complete(self.actual_minutes, None)
        return self.state

    def confirm(
        self,
        choice: DurationChoice,
        edited_minutes: Optional[float] = None,
    ) -> TimerOutcome:
        """Resolve an out-of-range duration."""
        if self.state != TimerState.AWAITING_CONFIRMATION:
            raise TimerStateError(f"Nothing to confirm in state {self.state.value}")

        choice = DurationChoice(choice)
        if choice == DurationChoice.ACTUAL:
            final_minutes = self.actual_minutes
        elif choice == DurationChoice.ESTIMATED:
            final_minutes = self.estimated_minutes
        else:
            if edited_minutes is None or not math.isfinite(edited_minutes):
                raise ValueError("edited_minutes is required when choosing an edited duration")
            final_minutes = max(MIN_EDITED_MINUTES, edited_minutes)

        return self._complete(final_minutes, choice)

    def _complete(self, final_minutes: float, choice: Optional[DurationChoice]) -> TimerOutcome:
        self.outcome = TimerOutcome(
            final_minutes=final_minutes,
            xp=calculate_timer_xp(self.estimated_minutes),
            confirmed_by=choice,
        )
        self.state = TimerState.COMPLETED
        if self._on_complete is not None:
            self._on_complete(self.outcome)
        return self.outcome

    def snapshot(self) -> Dict[str, Any]:
        """Serializable backup of an in-progress timer for crash recovery."""
        return {
            "estimated_minutes": self.estimated_minutes,
            "state": self.state.value,
            "started_at_ms": self.started_at_ms,
            "stopped_elapsed": self._stopped_elapsed,
            "actual_minutes": self.actual_minutes,
            "final_minutes": self.outcome.final_minutes if self.outcome else None,
            "confirmed_by": (
                self.outcome.confirmed_by.value
                if self.outcome and self.outcome.confirmed_by
                else None
            ),
        }

    @classmethod
    def restore(
        cls,
        data: Dict[str, Any],
        *,
        clock: Clock = system_clock_ms,
        on_complete: Optional[Callable[[TimerOutcome], None]] = None,
    ) -> "WorkoutTimer":
        """
        Rebuild a timer from `snapshot()` output.

        A running timer keeps counting from its original start time. A
        completed snapshot restores as completed without firing `on_complete`.
        """
        timer = cls(data["estimated_minutes"], clock=clock, on_complete=on_complete)
        timer.state = TimerState(data.get("state", TimerState.IDLE.value))
        timer.started_at_ms = data.get("started_at_ms")
        timer._stopped_elapsed = data.get("stopped_elapsed")
        timer.actual_minutes = data.get("actual_minutes")

        if timer.state == TimerState.RUNNING and timer.started_at_ms is None:
            raise TimerStateError("Running timer snapshot has no start time")
        if timer.state == TimerState.COMPLETED:
            confirmed_by = data.get("confirmed_by")
            timer.outcome = TimerOutcome(
                final_minutes=data.get("final_minutes") or timer.actual_minutes,
                xp=calculate_timer_xp(timer.estimated_minutes),
                confirmed_by=DurationChoice(confirmed_by) if confirmed_by else None,
            )
        return timer
