from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Callable, Dict, Optional, Tuple

from .models import THEME_LIGHT, THEMES

logger = logging.getLogger(__name__)

DEFAULT_CHANNELS: Tuple[bool, ...] = (True, True, True, True, False, False)
Y_RESOLUTIONS = ("ten", "twelve", "fourteen", "auto")


@dataclass(frozen=True)
class AppSettings:
    throttle_ms: int = 100
    channels: Tuple[bool, ...] = DEFAULT_CHANNELS
    retention_ms: int = 12_000
    window_capacity: int = 4096
    render_delay_ms: int = 500
    plot_refresh_hz: float = 25.0
    millis_per_pixel: float = 12.0
    millis_per_line: int = 250
    theme: str = THEME_LIGHT
    max_freq_hz: float = 100.0
    spectrum_sample_rate_hz: float = 250.0
    y_resolution: str = "auto"
    feed_host: Optional[str] = None
    feed_port: int = 8765

    def __post_init__(self) -> None:
        if self.throttle_ms <= 0:
            raise ValueError("throttle_ms must be positive")
        if not self.channels:
            raise ValueError("channels must not be empty")
        if self.retention_ms <= 0:
            raise ValueError("retention_ms must be positive")
        if self.window_capacity <= 0:
            raise ValueError("window_capacity must be positive")
        if self.plot_refresh_hz <= 0:
            raise ValueError("plot_refresh_hz must be positive")
        if self.max_freq_hz <= 0:
            raise ValueError("max_freq_hz must be positive")
        if self.spectrum_sample_rate_hz <= 0:
            raise ValueError("spectrum_sample_rate_hz must be positive")
        object.__setattr__(self, "channels", tuple(bool(flag) for flag in self.channels))


class SettingsPersistence:
    """Storage backend for AppSettingsStore."""

    def load(self) -> Dict[str, Any]:
        raise NotImplementedError

    def save(self, data: Dict[str, Any]) -> None:
        raise NotImplementedError


class InMemoryPersistence(SettingsPersistence):
    """Dictionary-backed persistence for headless use and tests."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def load(self) -> Dict[str, Any]:
        return dict(self._data)

    def save(self, data: Dict[str, Any]) -> None:
        for key, val in data.items():
            if val is None:
                self._data.pop(key, None)
            else:
                self._data[key] = val


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes", "on"):
            return True
        if text in ("false", "no", "off", ""):
            return False
        return bool(int(text))
    return bool(value)


def _coerce_channels(value: Any) -> Tuple[bool, ...]:
    # QSettings hands lists back as strings like "1,1,0"
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    return tuple(_coerce_bool(flag) for flag in value)


_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "throttle_ms": int,
    "channels": _coerce_channels,
    "retention_ms": int,
    "window_capacity": int,
    "render_delay_ms": int,
    "plot_refresh_hz": float,
    "millis_per_pixel": float,
    "millis_per_line": int,
    "theme": str,
    "max_freq_hz": float,
    "spectrum_sample_rate_hz": float,
    "y_resolution": str,
    "feed_host": str,
    "feed_port": int,
}


def settings_from_mapping(data: Dict[str, Any]) -> AppSettings:
    """Build AppSettings from loosely typed stored values, keeping defaults for bad ones."""
    values: Dict[str, Any] = {}
    for f in fields(AppSettings):
        if f.name not in data or data[f.name] is None:
            continue
        try:
            values[f.name] = _COERCERS[f.name](data[f.name])
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid stored setting %s=%r", f.name, data[f.name])
    if values.get("theme") not in (None, *THEMES):
        logger.warning("Ignoring unknown theme %r", values.pop("theme"))
    if values.get("y_resolution") not in (None, *Y_RESOLUTIONS):
        logger.warning("Ignoring unknown y resolution %r", values.pop("y_resolution"))
    try:
        return AppSettings(**values)
    except ValueError as exc:
        logger.warning("Stored settings rejected (%s); using defaults", exc)
        return AppSettings()


def settings_to_mapping(settings: AppSettings) -> Dict[str, Any]:
    data = asdict(settings)
    data["channels"] = ",".join("1" if flag else "0" for flag in settings.channels)
    return data


class AppSettingsStore:
    """Thread-safe settings store with pluggable persistence."""

    def __init__(self, *, persistence: Optional[SettingsPersistence] = None) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Callable[[AppSettings], None]] = {}
        self._next_token = 0
        self._persistence = persistence if persistence is not None else InMemoryPersistence()
        self._settings = settings_from_mapping(self._persistence.load())

    def get(self) -> AppSettings:
        with self._lock:
            return self._settings

    def update(self, **kwargs) -> AppSettings:
        with self._lock:
            new_settings = replace(self._settings, **kwargs)
            self._settings = new_settings
            callbacks = list(self._subscribers.values())
            self._persistence.save(settings_to_mapping(new_settings))
        for callback in callbacks:
            try:
                callback(new_settings)
            except Exception as exc:
                logger.debug("App settings subscriber callback failed: %s", exc)
                continue
        return new_settings

    def subscribe(self, callback: Callable[[AppSettings], None], *, replay: bool = True) -> Callable[[], None]:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback
            snapshot = self._settings
        if replay:
            callback(snapshot)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe


__all__ = [
    "AppSettings",
    "AppSettingsStore",
    "DEFAULT_CHANNELS",
    "InMemoryPersistence",
    "SettingsPersistence",
    "Y_RESOLUTIONS",
    "settings_from_mapping",
    "settings_to_mapping",
]
