"""Deterministic stand-ins for the event loop, clocks and render targets."""
from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Optional, Tuple

from shared.models import AppearanceProfile
from shared.sample_window import SampleWindow


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when the test says so."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._counter = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self._now + delay_ms, next(self._counter), handle, callback))
        return handle

    @property
    def pending_timers(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, delta_ms: float) -> None:
        """Move time forward, firing due timers in order."""
        target = self._now + delta_ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if not handle.cancelled:
                callback()
        self._now = target


class FakeClock:
    """Wall clock in integer ms, tied to a ManualScheduler when given one."""

    def __init__(self, start_ms: int = 1_700_000_000_000, scheduler: Optional[ManualScheduler] = None) -> None:
        self._start = int(start_ms)
        self._scheduler = scheduler
        self.offset = 0

    def __call__(self) -> int:
        base = int(self._scheduler.now_ms()) if self._scheduler is not None else 0
        return self._start + base + self.offset


class FakeRenderTarget:
    """Records every call the pipeline makes on a render surface."""

    def __init__(self) -> None:
        self.window: Optional[SampleWindow] = None
        self.running = False
        self.starts = 0
        self.stops = 0
        self.profiles: List[AppearanceProfile] = []

    def attach_window(self, window: SampleWindow) -> None:
        self.window = window

    def start(self) -> None:
        self.running = True
        self.starts += 1

    def stop(self) -> None:
        self.running = False
        self.stops += 1

    def apply_appearance(self, profile: AppearanceProfile) -> None:
        self.profiles.append(profile)

    @property
    def profile(self) -> Optional[AppearanceProfile]:
        return self.profiles[-1] if self.profiles else None


class RecordingSink:
    """Spectral sink that keeps every forwarded frame."""

    def __init__(self) -> None:
        self.frames: List[Tuple[str, float]] = []

    def on_frame(self, frame: str, max_freq_hz: float) -> None:
        self.frames.append((frame, max_freq_hz))
