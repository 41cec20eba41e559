"""Persist AppSettings through QSettings so choices survive restarts.

Values are kept under a single ``pipeline`` group. QSettings hands most values
back as strings (always so for INI files); ``settings_from_mapping`` takes care
of coercing them back to the dataclass field types.
"""
from __future__ import annotations

import logging
from dataclasses import fields
from typing import Optional

from PySide6.QtCore import QSettings

from shared.app_settings import AppSettings, AppSettingsStore, SettingsPersistence

logger = logging.getLogger(__name__)

_GROUP = "pipeline"


class QSettingsPersistence(SettingsPersistence):
    """Native (registry/plist/conf) storage, or an INI file when `path` is given."""

    def __init__(
        self,
        path: Optional[str] = None,
        *,
        organization: str = "StreamScope",
        application: str = "StreamScope",
    ) -> None:
        if path is not None:
            self._qsettings = QSettings(path, QSettings.IniFormat)
        else:
            self._qsettings = QSettings(organization, application)
        self._keys = tuple(f.name for f in fields(AppSettings))

    def load(self) -> dict:
        self._qsettings.beginGroup(_GROUP)
        try:
            stored = {key: self._qsettings.value(key) for key in self._keys if self._qsettings.contains(key)}
        finally:
            self._qsettings.endGroup()
        logger.debug("Loaded %d stored settings from %s", len(stored), self._qsettings.fileName())
        return {key: value for key, value in stored.items() if value is not None}

    def save(self, data: dict) -> None:
        self._qsettings.beginGroup(_GROUP)
        try:
            for key, value in data.items():
                if key not in self._keys:
                    continue
                if value is None:
                    self._qsettings.remove(key)
                else:
                    self._qsettings.setValue(key, str(value))
        finally:
            self._qsettings.endGroup()
        self._qsettings.sync()


def create_gui_settings_store(path: Optional[str] = None) -> AppSettingsStore:
    return AppSettingsStore(persistence=QSettingsPersistence(path))


__all__ = ["QSettingsPersistence", "create_gui_settings_store"]
