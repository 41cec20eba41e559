"""
Headless data structures shared by the streaming core and the GUI.
"""

from .app_settings import AppSettings, AppSettingsStore, InMemoryPersistence
from .models import AppearanceProfile, ChannelState, DispatcherStats, Sample
from .sample_window import SampleWindow

__all__ = [
    "AppSettings",
    "AppSettingsStore",
    "AppearanceProfile",
    "ChannelState",
    "DispatcherStats",
    "InMemoryPersistence",
    "Sample",
    "SampleWindow",
]
