"""QTimer-backed Scheduler so the core throttle runs on the Qt event loop."""
from __future__ import annotations

from typing import Callable, Optional

from PySide6 import QtCore

from core.throttle import monotonic_ms


class _QtTimerHandle:
    def __init__(self, timer: QtCore.QTimer) -> None:
        self._timer: Optional[QtCore.QTimer] = timer

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
            timer.deleteLater()


class QtScheduler(QtCore.QObject):
    """Single-shot timers parented to this object; all callbacks run on the GUI thread."""

    def now_ms(self) -> float:
        return monotonic_ms()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _QtTimerHandle:
        timer = QtCore.QTimer(self)
        timer.setSingleShot(True)
        timer.setTimerType(QtCore.Qt.PreciseTimer)
        handle = _QtTimerHandle(timer)

        def fire() -> None:
            handle.cancel()
            callback()

        timer.timeout.connect(fire)
        timer.start(max(0, int(round(delay_ms))))
        return handle
