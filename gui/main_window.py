from __future__ import annotations

import logging
from typing import Dict, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from core.appearance import y_range_for_resolution
from core.controller import PipelineController
from shared.app_settings import AppSettingsStore
from shared.models import THEME_DARK, THEME_LIGHT

from .dispatcher_adapter import connect_dispatcher_signals
from .feed_sources import SimulatedFeed, SocketFeed
from .qt_scheduler import QtScheduler
from .spectrum_view import SpectrumView
from .strip_chart import StripChart
from .theme_manager import ThemeManager

logger = logging.getLogger(__name__)

PAUSE_GLYPH = "❚❚"
PLAY_GLYPH = "▶"

_RESOLUTION_ITEMS = (
    ("10 bits", "ten"),
    ("12 bits", "twelve"),
    ("14 bits", "fourteen"),
    ("Auto Scale", "auto"),
)


class MainWindow(QtWidgets.QMainWindow):
    """One strip chart per enabled channel, a spectrum view, and the controls."""

    def __init__(
        self,
        settings_store: Optional[AppSettingsStore] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("StreamScope")
        self._settings_store = settings_store or AppSettingsStore()
        settings = self._settings_store.get()

        self._scheduler = QtScheduler(self)
        self.controller = PipelineController(settings, scheduler=self._scheduler)
        self._charts: Dict[int, StripChart] = {}
        self._pause_buttons: Dict[int, QtWidgets.QPushButton] = {}

        self._build_ui()

        self.controller.bind_targets(self._charts)
        self.controller.add_spectral_sink(self._spectrum)
        self.controller.pause_controller.add_listener(self._on_pause_changed)
        self._apply_theme(settings.theme)
        self._apply_resolution(settings.y_resolution)
        # combos emit while being populated, so listen only once they hold the stored values
        self.resolution_combo.currentIndexChanged.connect(self._on_resolution_changed)
        self.theme_combo.currentIndexChanged.connect(self._on_theme_changed)

        self._tick_signals, self._unsubscribe_tick = connect_dispatcher_signals(self.controller)
        self._tick_signals.tick.connect(self._on_dispatch_tick)

        self._feed = self._create_feed()
        self._feed.frameReceived.connect(self.controller.feed)
        QtCore.QTimer.singleShot(0, self._feed.start)

    # ------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        settings = self.controller.settings
        central = QtWidgets.QWidget(self)
        outer = QtWidgets.QVBoxLayout(central)
        outer.setContentsMargins(12, 8, 12, 8)

        controls = QtWidgets.QHBoxLayout()
        controls.addStretch(1)
        self.resolution_combo = QtWidgets.QComboBox()
        for label, key in _RESOLUTION_ITEMS:
            self.resolution_combo.addItem(label, key)
        self.resolution_combo.setFixedWidth(128)
        controls.addWidget(self.resolution_combo)

        self.theme_combo = QtWidgets.QComboBox()
        self.theme_combo.addItem("Light", THEME_LIGHT)
        self.theme_combo.addItem("Dark", THEME_DARK)
        self.theme_combo.setFixedWidth(96)
        controls.addWidget(self.theme_combo)
        outer.addLayout(controls)

        body = QtWidgets.QHBoxLayout()
        body.setSpacing(40)
        charts = QtWidgets.QVBoxLayout()
        charts.setSpacing(4)
        for index in self.controller.registry.enabled_indices:
            charts.addWidget(self._build_channel_row(index))
        body.addLayout(charts, 3)

        self._spectrum = SpectrumView(
            self.controller.registry.enabled_indices,
            sample_rate_hz=settings.spectrum_sample_rate_hz,
        )
        body.addWidget(self._spectrum, 1)
        outer.addLayout(body, 1)

        self.setCentralWidget(central)
        self.statusBar().showMessage("Waiting for data…")
        self.resize(1400, 800)

    def _build_channel_row(self, index: int) -> QtWidgets.QWidget:
        settings = self.controller.settings
        row = QtWidgets.QWidget()
        layout = QtWidgets.QHBoxLayout(row)
        layout.setContentsMargins(0, 0, 0, 0)

        chart = StripChart(
            index,
            span_ms=settings.retention_ms,
            render_delay_ms=settings.render_delay_ms,
            refresh_hz=settings.plot_refresh_hz,
            millis_per_line=settings.millis_per_line,
        )
        chart.setMinimumHeight(112)
        layout.addWidget(chart, 1)

        card = QtWidgets.QFrame()
        card.setObjectName("channelCard")
        card_layout = QtWidgets.QVBoxLayout(card)
        card_layout.setContentsMargins(4, 4, 4, 4)
        card_layout.setSpacing(8)
        button = QtWidgets.QPushButton(PAUSE_GLYPH)
        button.setFixedSize(28, 28)
        button.setToolTip(f"Pause Ch-{index + 1}")
        button.clicked.connect(lambda _checked=False, idx=index: self.controller.toggle_pause(idx))
        label = QtWidgets.QLabel(f"Ch-{index + 1}")
        label.setAlignment(QtCore.Qt.AlignCenter)
        card_layout.addWidget(button, 0, QtCore.Qt.AlignCenter)
        card_layout.addWidget(label)
        layout.addWidget(card, 0, QtCore.Qt.AlignVCenter)

        self._charts[index] = chart
        self._pause_buttons[index] = button
        return row

    def _create_feed(self):
        settings = self.controller.settings
        if settings.feed_host:
            feed = SocketFeed(settings.feed_host, settings.feed_port, parent=self)
        else:
            feed = SimulatedFeed(
                len(self.controller.registry),
                sample_rate_hz=settings.spectrum_sample_rate_hz,
                parent=self,
            )
        return feed

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def _on_theme_changed(self, _row: int) -> None:
        theme = self.theme_combo.currentData()
        self._apply_theme(theme)
        self._settings_store.update(theme=theme)

    def _apply_theme(self, theme: str) -> None:
        profile = self.controller.set_theme(theme)
        ThemeManager.apply_theme(self, profile)
        self._spectrum.apply_appearance(profile)
        row = self.theme_combo.findData(self.controller.appearance.theme)
        if row >= 0 and row != self.theme_combo.currentIndex():
            self.theme_combo.blockSignals(True)
            self.theme_combo.setCurrentIndex(row)
            self.theme_combo.blockSignals(False)

    def _on_resolution_changed(self, _row: int) -> None:
        key = self.resolution_combo.currentData()
        self._apply_resolution(key)
        self._settings_store.update(y_resolution=key)

    def _apply_resolution(self, key: str) -> None:
        try:
            y_range = y_range_for_resolution(key)
        except ValueError as exc:
            logger.warning("%s; using auto scale", exc)
            key, y_range = "auto", None
        for chart in self._charts.values():
            chart.set_y_range(y_range)
        row = self.resolution_combo.findData(key)
        if row >= 0 and row != self.resolution_combo.currentIndex():
            self.resolution_combo.blockSignals(True)
            self.resolution_combo.setCurrentIndex(row)
            self.resolution_combo.blockSignals(False)

    def _on_pause_changed(self, index: int, paused: bool) -> None:
        button = self._pause_buttons.get(index)
        if button is None:
            return
        button.setText(PLAY_GLYPH if paused else PAUSE_GLYPH)
        button.setToolTip(f"{'Resume' if paused else 'Pause'} Ch-{index + 1}")

    def _on_dispatch_tick(self, stats: dict) -> None:
        appended = sum(stats.get("appended", {}).values())
        self.statusBar().showMessage(
            f"frames {stats.get('frames', 0)}  lines {stats.get('lines', 0)}  "
            f"dispatched {stats.get('dispatched', 0)}  coalesced {stats.get('coalesced', 0)}  "
            f"samples {appended}"
        )

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self._feed.stop()
        self._spectrum.stop()
        self._unsubscribe_tick()
        self.controller.shutdown()
        super().closeEvent(event)
