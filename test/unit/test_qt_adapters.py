from __future__ import annotations

import time

import pytest

from shared.app_settings import AppSettings


def _spin(qapp, predicate, timeout: float = 1.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        qapp.processEvents()
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class TestQSettingsPersistence:
    def test_round_trip_through_ini(self, qapp, tmp_path):
        from gui.qsettings_adapter import create_gui_settings_store

        path = str(tmp_path / "streamscope.ini")
        store = create_gui_settings_store(path)
        assert store.get() == AppSettings()

        store.update(theme="dark", throttle_ms=60, channels=(True, False, True), feed_host="bridge.local")

        reloaded = create_gui_settings_store(path).get()
        assert reloaded.theme == "dark"
        assert reloaded.throttle_ms == 60
        assert reloaded.channels == (True, False, True)
        assert reloaded.feed_host == "bridge.local"

    def test_cleared_host_is_removed(self, qapp, tmp_path):
        from gui.qsettings_adapter import QSettingsPersistence

        persistence = QSettingsPersistence(str(tmp_path / "s.ini"))
        persistence.save({"feed_host": "bridge.local", "unknown": 1})
        assert persistence.load() == {"feed_host": "bridge.local"}

        persistence.save({"feed_host": None})
        assert persistence.load() == {}


class TestQtScheduler:
    def test_callback_fires_after_delay(self, qapp):
        from gui.qt_scheduler import QtScheduler

        scheduler = QtScheduler()
        fired = []
        scheduler.call_later(10, lambda: fired.append(scheduler.now_ms()))

        assert _spin(qapp, lambda: bool(fired))
        assert len(fired) == 1

    def test_cancelled_timer_never_fires(self, qapp):
        from gui.qt_scheduler import QtScheduler

        scheduler = QtScheduler()
        fired = []
        handle = scheduler.call_later(10, lambda: fired.append(True))
        handle.cancel()
        handle.cancel()

        assert not _spin(qapp, lambda: bool(fired), timeout=0.1)

    def test_drives_throttle(self, qapp):
        from core.throttle import Throttle
        from gui.qt_scheduler import QtScheduler

        delivered = []
        throttle = Throttle(delivered.append, 20, QtScheduler())
        for value in range(5):
            throttle(value)

        assert delivered == [0]
        assert _spin(qapp, lambda: delivered == [0, 4])


@pytest.mark.parametrize(
    "css, rgba",
    [
        ("rgb(2, 8, 23)", (2, 8, 23, 255)),
        ("rgba(0, 255, 0, 0.8)", (0, 255, 0, 204)),
        ("#cccccc", (204, 204, 204, 255)),
    ],
)
def test_css_colors_convert(qapp, css, rgba):
    from gui.theme_manager import to_qcolor

    color = to_qcolor(css)
    assert (color.red(), color.green(), color.blue(), color.alpha()) == rgba


def test_bad_css_color_raises(qapp):
    from gui.theme_manager import to_qcolor

    with pytest.raises(ValueError):
        to_qcolor("not-a-color")
