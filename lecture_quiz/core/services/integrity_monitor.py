"""Heuristic detection of a student leaving the quiz window."""

from __future__ import annotations

from typing import Callable

from lecture_quiz.constants.quiz_constants import INTEGRITY_GRACE_PERIOD_SECONDS
from lecture_quiz.core.scheduling import Scheduler, TimerHandle


class IntegrityMonitor:
    """Grace timer armed when the quiz is hidden and cancelled when it returns.

    Every arm gets a new generation number. The expiry callback receives the
    generation it was armed with, and :meth:`confirm` only accepts the
    generation that is still armed, so a callback that outlives its grace
    period is ignored.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_expired: Callable[[int], None],
        grace_seconds: float = INTEGRITY_GRACE_PERIOD_SECONDS,
    ) -> None:
        self._scheduler = scheduler
        self._on_expired = on_expired
        self._grace_seconds = grace_seconds
        self._handle: TimerHandle | None = None
        self._generation: int = 0

    def arm(self) -> bool:
        """Start a grace period. Returns False if one is already running."""
        if self.armed:
            return False
        self._generation += 1
        generation = self._generation
        self._handle = self._scheduler.call_later(
            self._grace_seconds, lambda: self._on_expired(generation)
        )
        return True

    def disarm(self) -> bool:
        """Cancel the pending grace period, if any."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def confirm(self, generation: int) -> bool:
        """Accept an expiry for the currently armed grace period."""
        if self._handle is None or generation != self._generation:
            return False
        self._handle = None
        return True

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def grace_seconds(self) -> float:
        return self._grace_seconds
