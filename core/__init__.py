"""Headless streaming pipeline: parsing, throttling, routing, pause and appearance."""

from .appearance import AppearanceAdapter, profile_for_theme, y_range_for_resolution
from .channel_registry import ChannelRegistry, surface_id
from .controller import PipelineController, RenderTarget
from .dispatcher import FeedDispatcher, SpectralSink
from .line_parser import parse_line, split_frame
from .pause_controller import PauseController
from .throttle import Scheduler, Throttle
from shared.models import AppearanceProfile, ChannelState, DispatcherStats, Sample

__all__ = [
    "AppearanceAdapter",
    "AppearanceProfile",
    "ChannelRegistry",
    "ChannelState",
    "DispatcherStats",
    "FeedDispatcher",
    "PauseController",
    "PipelineController",
    "RenderTarget",
    "Sample",
    "Scheduler",
    "SpectralSink",
    "Throttle",
    "parse_line",
    "profile_for_theme",
    "split_frame",
    "surface_id",
    "y_range_for_resolution",
]
