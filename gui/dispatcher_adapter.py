"""Re-emit FeedDispatcher stats as a Qt signal for the status bar.

Tick callbacks run on the GUI thread already (the throttle is driven by
QtScheduler); the signal only keeps core free of PySide6.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from PySide6 import QtCore

if TYPE_CHECKING:
    from core.controller import PipelineController


class DispatcherSignals(QtCore.QObject):
    tick = QtCore.Signal(dict)


def connect_dispatcher_signals(controller: "PipelineController") -> tuple[DispatcherSignals, Callable[[], None]]:
    """Return ``(signals, unsubscribe)``; ``signals.tick`` carries a stats snapshot per dispatched line."""
    signals = DispatcherSignals()
    unsubscribe = controller.add_tick_callback(signals.tick.emit)
    return signals, unsubscribe
