from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Sequence

import numpy as np
import pyqtgraph as pg
from PySide6 import QtCore

from core.line_parser import parse_line, split_frame, value_at
from shared.models import AppearanceProfile

from .theme_manager import ThemeManager, to_qcolor

logger = logging.getLogger(__name__)


def magnitude_db(samples: np.ndarray, sample_rate_hz: float, fft_size: int) -> tuple[np.ndarray, np.ndarray]:
    """Return (freqs, magnitude_db) of the zero-padded, Hann-windowed, mean-removed tail of `samples`."""
    segment = np.zeros(fft_size, dtype=np.float64)
    samples = np.asarray(samples, dtype=np.float64)
    if samples.size:
        tail = samples[-fft_size:]
        segment[-tail.size:] = tail - tail.mean()
    spectrum = np.fft.rfft(segment * np.hanning(fft_size))
    mag_db = 20.0 * np.log10(np.maximum(np.abs(spectrum), 1e-12))
    freqs = np.fft.rfftfreq(fft_size, d=1.0 / sample_rate_hz)
    return freqs, mag_db


class SpectrumView(pg.PlotWidget):
    """
    Amplitude vs frequency for every enabled channel.

    Receives the same raw frames as the strip charts, untouched, and keeps its
    own short history per channel. Redraws on a timer, between 0 Hz and the
    frequency ceiling forwarded with each frame.
    """

    def __init__(
        self,
        channels: Sequence[int],
        *,
        sample_rate_hz: float = 250.0,
        fft_size: int = 256,
        refresh_ms: int = 100,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setObjectName("fft-chart")
        self._channels = tuple(channels)
        self._sample_rate = float(sample_rate_hz)
        self._fft_size = int(fft_size)
        self._max_freq_hz = self._sample_rate / 2.0

        self._history: Dict[int, Deque[float]] = {
            idx: deque(maxlen=self._fft_size) for idx in self._channels
        }
        self._curves: Dict[int, pg.PlotDataItem] = {}
        self._line_color = "g"
        self._dirty = False

        plot_item = self.getPlotItem()
        plot_item.setMenuEnabled(False)
        plot_item.setLabel("bottom", "Frequency", units="Hz")
        plot_item.setLabel("left", "Magnitude", units="dB")
        plot_item.showGrid(x=True, y=True, alpha=0.6)
        for idx in self._channels:
            self._curves[idx] = plot_item.plot(pen=pg.mkPen(self._line_color, width=1), name=f"Ch-{idx + 1}")

        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(max(1, int(refresh_ms)))
        self._timer.timeout.connect(self._on_timer)
        self._timer.start()

    # SpectralSink -------------------------------------------------------------

    def on_frame(self, frame: str, max_freq_hz: float) -> None:
        self._max_freq_hz = float(max_freq_hz)
        for line in split_frame(frame):
            values = parse_line(line)
            if values is None:
                continue
            for idx in self._channels:
                value = value_at(values, idx)
                if np.isfinite(value):
                    self._history[idx].append(value)
        self._dirty = True

    def apply_appearance(self, profile: AppearanceProfile) -> None:
        ThemeManager.style_plot(self, profile)
        line = to_qcolor(profile.line_color)
        for idx, curve in self._curves.items():
            color = pg.mkColor(line)
            # stagger the hue so overlaid channels stay distinguishable
            color.setHsv((color.hue() + 40 * self._channels.index(idx)) % 360, color.saturation(), color.value(), color.alpha())
            curve.setPen(pg.mkPen(color, width=profile.line_width))

    def stop(self) -> None:
        self._timer.stop()

    # Internals --------------------------------------------------------------

    def _on_timer(self) -> None:
        if not self._dirty:
            return
        self._dirty = False
        for idx, curve in self._curves.items():
            samples = np.fromiter(self._history[idx], dtype=np.float64)
            if samples.size < 2:
                curve.setData([], [])
                continue
            freqs, mag_db = magnitude_db(samples, self._sample_rate, self._fft_size)
            keep = freqs <= self._max_freq_hz
            curve.setData(freqs[keep], mag_db[keep])
        self.getPlotItem().setXRange(0.0, self._max_freq_hz, padding=0)


__all__ = ["SpectrumView", "magnitude_db"]
