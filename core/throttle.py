"""Leading and trailing edge throttle with a pluggable timer.

The first call in a quiet period runs at once. After that the throttle holds a
single pending-call slot: calls made while a window is open overwrite it, and
when the window closes the most recent arguments are delivered. Downstream
invocations therefore happen at most once per interval.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Generic, Optional, Protocol, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Event-loop timer facility used by Throttle."""

    def now_ms(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class Throttle(Generic[T]):
    """Rate-limit calls to `func` to one per `interval_ms`."""

    def __init__(
        self,
        func: Callable[..., T],
        interval_ms: float,
        scheduler: Scheduler,
        *,
        leading: bool = True,
        trailing: bool = True,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if not leading and not trailing:
            raise ValueError("at least one of leading/trailing must be enabled")
        self._func = func
        self._interval_ms = float(interval_ms)
        self._scheduler = scheduler
        self._leading = leading
        self._trailing = trailing

        self._pending: Optional[Tuple[tuple, dict]] = None
        self._timer: Optional[TimerHandle] = None
        self.invocations = 0

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self._timer is None:
            self._timer = self._scheduler.call_later(self._interval_ms, self._on_timer)
            if self._leading:
                self._invoke(args, kwargs)
                return
        if self._trailing:
            self._pending = (args, kwargs)

    def flush(self) -> None:
        """Deliver the pending call immediately, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._deliver_pending()

    def cancel(self) -> None:
        """Drop the pending call and close the current window."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._pending is None:
            return
        # a trailing delivery opens the next window
        self._timer = self._scheduler.call_later(self._interval_ms, self._on_timer)
        self._deliver_pending()

    def _deliver_pending(self) -> None:
        pending, self._pending = self._pending, None
        if pending is not None:
            self._invoke(*pending)

    def _invoke(self, args: tuple, kwargs: dict) -> None:
        self.invocations += 1
        self._func(*args, **kwargs)


__all__ = ["Scheduler", "Throttle", "TimerHandle", "monotonic_ms"]
