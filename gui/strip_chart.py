from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

import numpy as np
import pyqtgraph as pg
from PySide6 import QtCore

from core.channel_registry import surface_id
from core.dispatcher import wall_clock_ms
from shared.models import AppearanceProfile
from shared.sample_window import SampleWindow

from .theme_manager import ThemeManager, to_qcolor

logger = logging.getLogger(__name__)


class StripChart(pg.PlotWidget):
    """
    Scrolling time-series for a single channel.

    Draws the attached SampleWindow on its own refresh timer, lagging wall time
    by ``render_delay_ms`` so the newest segment is drawn once its data has
    arrived. ``stop`` freezes the scroll; ``start`` resumes it from "now".
    """

    def __init__(
        self,
        index: int,
        *,
        span_ms: int = 12_000,
        render_delay_ms: int = 500,
        refresh_hz: float = 25.0,
        millis_per_line: int = 250,
        clock: Optional[Callable[[], int]] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setObjectName(surface_id(index))
        self._index = index
        self._span_ms = max(1, int(span_ms))
        self._render_delay_ms = max(0, int(render_delay_ms))
        self._clock = clock or wall_clock_ms
        self._window: Optional[SampleWindow] = None
        self._line_width = 1.0

        plot_item = self.getPlotItem()
        plot_item.setMenuEnabled(False)
        plot_item.hideButtons()
        plot_item.vb.setMouseEnabled(x=False, y=False)
        plot_item.setXRange(-self._span_ms / 1000.0, 0.0, padding=0.0)
        plot_item.enableAutoRange(axis="y")
        # one minor grid line per millis_per_line, a major one every fourth
        minor = max(1, millis_per_line) / 1000.0
        plot_item.getAxis("bottom").setTickSpacing(major=minor * 4, minor=minor)
        plot_item.showGrid(x=True, y=True, alpha=0.6)

        self._curve = pg.PlotDataItem(pen=pg.mkPen("g", width=self._line_width))
        self._curve.setDownsampling(auto=True, method="peak")
        self._curve.setClipToView(True)
        plot_item.addItem(self._curve)

        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(max(1, int(1000.0 / max(refresh_hz, 1e-3))))
        self._timer.timeout.connect(self.refresh)

    @property
    def index(self) -> int:
        return self._index

    @property
    def running(self) -> bool:
        return self._timer.isActive()

    # RenderTarget -----------------------------------------------------------

    def attach_window(self, window: SampleWindow) -> None:
        self._window = window

    def start(self) -> None:
        if not self._timer.isActive():
            self._timer.start()
            self.refresh()

    def stop(self) -> None:
        self._timer.stop()

    def apply_appearance(self, profile: AppearanceProfile) -> None:
        """Restyle in place; the attached window is left alone."""
        ThemeManager.style_plot(self, profile)
        self._line_width = profile.line_width
        self._curve.setPen(pg.mkPen(to_qcolor(profile.line_color), width=self._line_width))

    # Display ----------------------------------------------------------------

    def set_y_range(self, y_range: Optional[Tuple[float, float]]) -> None:
        plot_item = self.getPlotItem()
        if y_range is None:
            plot_item.enableAutoRange(axis="y")
        else:
            plot_item.setYRange(y_range[0], y_range[1], padding=0.0)

    def refresh(self) -> None:
        window = self._window
        if window is None:
            return
        now = self._clock()
        window.evict_older_than(now)
        if len(window) == 0:
            self._curve.setData([], [])
            return
        times, values = window.snapshot()
        x = (times - (now - self._render_delay_ms)).astype(np.float64) / 1000.0
        self._curve.setData(x, values)

    def cleanup(self) -> None:
        self.stop()
        try:
            self.getPlotItem().removeItem(self._curve)
        except Exception as exc:
            logger.debug("Curve removal failed for %s: %s", self.objectName(), exc)


__all__ = ["StripChart"]
