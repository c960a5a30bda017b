"""QTimer-backed scheduler for running quiz sessions on the Qt event loop."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QTimer


class QtTimerHandle:
    """Wraps a QTimer so the session controller can cancel it."""

    def __init__(self, timer: QTimer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()


class QtScheduler:
    """Creates timers parented to ``owner`` so they die with the window."""

    def __init__(self, owner: QObject) -> None:
        self._owner = owner

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer(self._owner)
        timer.setSingleShot(True)
        timer.setInterval(int(delay_seconds * 1000))
        handle = QtTimerHandle(timer)

        def fire() -> None:
            handle.cancel()
            callback()

        timer.timeout.connect(fire)
        timer.start()
        return handle

    def call_every(self, interval_seconds: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer(self._owner)
        timer.setInterval(int(interval_seconds * 1000))
        timer.timeout.connect(callback)
        timer.start()
        return QtTimerHandle(timer)
