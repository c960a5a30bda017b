"""Countdown timer for time-limited quiz sessions."""

from __future__ import annotations

from typing import Callable

from lecture_quiz.constants.quiz_constants import COUNTDOWN_TICK_SECONDS
from lecture_quiz.core.scheduling import Scheduler, TimerHandle


class Countdown:
    """Decrements once per tick and stops itself when it reaches zero.

    The countdown does not decide what a tick means. Each scheduled tick is
    forwarded to ``on_tick``, which is expected to call :meth:`tick` from
    inside the owner's event handling so that ticks are ordered with every
    other event.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_tick: Callable[[], None],
        interval_seconds: float = COUNTDOWN_TICK_SECONDS,
    ) -> None:
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._interval_seconds = interval_seconds
        self._handle: TimerHandle | None = None
        self._remaining_seconds: int | None = None
        self._expired: bool = False

    def start(self, total_seconds: int) -> None:
        if total_seconds <= 0:
            raise ValueError("Countdown duration must be a positive number of seconds.")
        self.cancel()
        self._remaining_seconds = total_seconds
        self._expired = False
        self._handle = self._scheduler.call_every(self._interval_seconds, self._on_tick)

    def tick(self) -> int:
        """Consume one tick and return the seconds left."""
        if not self.running or self._remaining_seconds is None:
            raise RuntimeError("Countdown is not running.")
        self._remaining_seconds = max(0, self._remaining_seconds - 1)
        if self._remaining_seconds == 0:
            self._expired = True
            self.cancel()
        return self._remaining_seconds

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def remaining_seconds(self) -> int | None:
        return self._remaining_seconds
