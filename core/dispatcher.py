from __future__ import annotations

import logging
import math
import time
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Protocol

from .channel_registry import ChannelRegistry
from .line_parser import is_blank, parse_line, split_frame, value_at
from .pause_controller import PauseController
from .throttle import Scheduler, Throttle
from shared.models import DispatcherStats, Sample
from shared.sample_window import SampleWindow

logger = logging.getLogger(__name__)

TickCallback = Callable[[Dict[str, object]], None]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class SpectralSink(Protocol):
    """Companion view that receives every raw frame untouched."""

    def on_frame(self, frame: str, max_freq_hz: float) -> None: ...


class FeedDispatcher:
    """Splits raw frames into lines and routes parsed values to channel windows.

    Lines go through a Throttle, so under bursts only the latest line of each
    interval reaches the router. Channels without a bound render target, paused
    channels and NaN fields produce no samples; nothing on this path raises.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        windows: Mapping[int, SampleWindow],
        pause_controller: PauseController,
        scheduler: Scheduler,
        *,
        throttle_ms: float = 100.0,
        max_freq_hz: float = 100.0,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        missing = [idx for idx in registry.enabled_indices if idx not in windows]
        if missing:
            raise ValueError(f"no window for enabled channels {missing}")
        self._registry = registry
        self._windows = dict(windows)
        self._pause = pause_controller
        self._clock = clock or wall_clock_ms
        self._max_freq_hz = float(max_freq_hz)
        self._throttle: Throttle[None] = Throttle(self.dispatch_line, throttle_ms, scheduler)
        self._bound: frozenset[int] = frozenset()
        self._stats = DispatcherStats()
        self._tick_callbacks: Dict[int, TickCallback] = {}
        self._spectral_sinks: List[SpectralSink] = []
        self._next_token = 0

    @property
    def throttle(self) -> Throttle[None]:
        return self._throttle

    @property
    def max_freq_hz(self) -> float:
        return self._max_freq_hz

    def bind_channels(self, indices: Iterable[int]) -> None:
        """Declare which enabled channels have a resolved render target."""
        self._bound = frozenset(idx for idx in indices if self._registry.is_enabled(idx))

    def add_spectral_sink(self, sink: SpectralSink) -> None:
        self._spectral_sinks.append(sink)

    def add_tick_callback(self, callback: TickCallback) -> Callable[[], None]:
        token = self._next_token
        self._next_token += 1
        self._tick_callbacks[token] = callback

        def unsubscribe() -> None:
            self._tick_callbacks.pop(token, None)

        return unsubscribe

    def snapshot(self) -> Dict[str, object]:
        return self._stats.snapshot()

    # Feed ---------------------------------------------------------------

    def ingest(self, frame: str) -> None:
        """Consume one raw frame: forward it, then queue its lines in order."""
        self._stats.frames += 1
        for sink in list(self._spectral_sinks):
            try:
                sink.on_frame(frame, self._max_freq_hz)
            except Exception as exc:
                logger.warning("Spectral sink failed: %s", exc)
        for line in split_frame(frame):
            self._stats.lines += 1
            if is_blank(line):
                self._stats.blank_lines += 1
                continue
            self._throttle(line)

    def flush(self) -> None:
        self._throttle.flush()

    def cancel_pending(self) -> None:
        self._throttle.cancel()

    def dispatch_line(self, line: str) -> None:
        """Parse one record and append its values to every eligible channel."""
        try:
            values = parse_line(line)
            if values is None:
                self._stats.blank_lines += 1
                return
            self._stats.dispatched += 1
            now = self._clock()
            for index in self._registry.enabled_indices:
                self._route(index, value_at(values, index), now)
        except Exception as exc:
            self._stats.errors += 1
            logger.warning("Dispatcher skipped bad line %r: %s", line, exc)
            return
        self._notify_tick()

    def _route(self, index: int, value: float, now: int) -> None:
        if self._pause.is_paused(index):
            self._stats.paused_drops[index] += 1
            return
        if not math.isfinite(value):
            self._stats.invalid[index] += 1
            return
        if index not in self._bound:
            self._stats.missing_target[index] += 1
            return
        self._windows[index].append(Sample(now, value))
        self._stats.appended[index] += 1

    def _notify_tick(self) -> None:
        if not self._tick_callbacks:
            return
        payload = self._stats.snapshot()
        for callback in list(self._tick_callbacks.values()):
            try:
                callback(payload)
            except Exception as exc:
                logger.error("Dispatcher tick error: %s", exc)


__all__ = ["FeedDispatcher", "SpectralSink", "TickCallback", "wall_clock_ms"]
