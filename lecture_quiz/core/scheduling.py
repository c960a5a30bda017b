"""Timer abstraction used by the session controller.

The controller never sleeps or spawns threads; it asks a scheduler for
callbacks and relies on the scheduler delivering them on the same thread that
delivers user intents. The Qt student window provides a QTimer-backed
scheduler; tests drive a virtual clock.
"""

from __future__ import annotations

from typing import Callable, Protocol


class TimerHandle(Protocol):
    """Cancellable reference to a scheduled callback."""

    def cancel(self) -> None:
        ...

    @property
    def active(self) -> bool:
        ...


class Scheduler(Protocol):
    """Source of one-shot and repeating callbacks."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        ...

    def call_every(self, interval_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        ...
