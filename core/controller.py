from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional, Protocol

from .appearance import AppearanceAdapter
from .channel_registry import ChannelRegistry, surface_id
from .dispatcher import FeedDispatcher, SpectralSink, TickCallback
from .pause_controller import PauseController
from .throttle import Scheduler
from shared.app_settings import AppSettings
from shared.models import AppearanceProfile
from shared.sample_window import SampleWindow

logger = logging.getLogger(__name__)


class RenderTarget(Protocol):
    """Drawable surface bound to one channel (e.g. a strip chart widget)."""

    def attach_window(self, window: SampleWindow) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def apply_appearance(self, profile: AppearanceProfile) -> None: ...


class PipelineController:
    """Builds and owns the streaming pipeline for one view.

    Channels, windows and the dispatcher are created once from AppSettings and
    live until ``shutdown``. Render targets are injected once through
    ``bind_targets``; the GUI talks to nothing else.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        *,
        scheduler: Scheduler,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self.registry = ChannelRegistry(self._settings.channels)
        self._windows: Dict[int, SampleWindow] = {
            idx: SampleWindow(
                retention_ms=self._settings.retention_ms,
                capacity=self._settings.window_capacity,
            )
            for idx in self.registry.enabled_indices
        }
        self.pause_controller = PauseController(self.registry)
        self.appearance = AppearanceAdapter(self._settings.theme)
        self.dispatcher = FeedDispatcher(
            self.registry,
            self._windows,
            self.pause_controller,
            scheduler,
            throttle_ms=self._settings.throttle_ms,
            max_freq_hz=self._settings.max_freq_hz,
            clock=clock,
        )
        self._targets: Dict[int, RenderTarget] = {}
        self._unsubscribe_pause = self.pause_controller.add_listener(self._on_pause_changed)
        self._running = True

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def targets(self) -> Dict[int, RenderTarget]:
        return dict(self._targets)

    @property
    def running(self) -> bool:
        return self._running

    # Binding --------------------------------------------------------------

    def bind_targets(self, targets: Mapping[int, Optional[RenderTarget]]) -> None:
        """Resolve the render target for every enabled channel, once."""
        if self._targets:
            raise RuntimeError("render targets are already bound")
        for index in self.registry.enabled_indices:
            target = targets.get(index)
            if target is None:
                logger.warning(
                    "No render surface %s for channel %d; its samples will be skipped",
                    surface_id(index),
                    index,
                )
                continue
            target.attach_window(self._windows[index])
            self.appearance.register(index, target)
            if self.pause_controller.is_paused(index):
                target.stop()
            else:
                target.start()
            self._targets[index] = target
        for index in targets:
            if not self.registry.is_enabled(index):
                logger.debug("Ignoring render target for disabled channel %r", index)
        self.dispatcher.bind_channels(self._targets)

    # Commands ---------------------------------------------------------------

    def feed(self, frame: str) -> None:
        if not self._running:
            return
        self.dispatcher.ingest(frame)

    def toggle_pause(self, index: int) -> Optional[bool]:
        return self.pause_controller.toggle(index)

    def is_paused(self, index: int) -> bool:
        return self.pause_controller.is_paused(index)

    def set_theme(self, theme: Optional[str]) -> AppearanceProfile:
        return self.appearance.set_theme(theme)

    def window(self, index: int) -> Optional[SampleWindow]:
        return self._windows.get(index)

    def surface_id(self, index: int) -> str:
        return surface_id(index)

    def add_spectral_sink(self, sink: SpectralSink) -> None:
        self.dispatcher.add_spectral_sink(sink)

    def add_tick_callback(self, callback: TickCallback) -> Callable[[], None]:
        return self.dispatcher.add_tick_callback(callback)

    def shutdown(self) -> None:
        if not self._running:
            return
        self._running = False
        self.dispatcher.cancel_pending()
        self._unsubscribe_pause()
        for index, target in self._targets.items():
            try:
                target.stop()
            except Exception as exc:
                logger.warning("Failed to stop render target for channel %d: %s", index, exc)
        logger.info("Pipeline shut down: %s", self.dispatcher.snapshot())

    # Internals --------------------------------------------------------------

    def _on_pause_changed(self, index: int, paused: bool) -> None:
        target = self._targets.get(index)
        if target is None:
            return
        if paused:
            target.stop()
        else:
            target.start()


__all__ = ["PipelineController", "RenderTarget"]
