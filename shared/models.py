from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict


# ----------------------------
# Channel / appearance metadata
# ----------------------------

THEME_LIGHT = "light"
THEME_DARK = "dark"
THEMES = (THEME_LIGHT, THEME_DARK)


@dataclass
class ChannelState:
    """Runtime state of one positional channel."""

    index: int
    enabled: bool
    paused: bool = False

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError("index must be non-negative")


@dataclass(frozen=True)
class AppearanceProfile:
    """Resolved colors shared read-only by every channel."""

    background_color: str
    line_color: str
    text_color: str
    grid_color: str
    line_width: float = 1.0

    def __post_init__(self) -> None:
        if self.line_width <= 0:
            raise ValueError("line_width must be positive")


# ----------------------------
# Streaming data models
# ----------------------------

@dataclass(frozen=True)
class Sample:
    """One (timestamp, value) point; timestamp is ingestion wall time in ms."""

    timestamp_ms: int
    value: float

    def __post_init__(self) -> None:
        value = float(self.value)
        if not math.isfinite(value):
            raise ValueError("value must be a finite number")
        object.__setattr__(self, "timestamp_ms", int(self.timestamp_ms))
        object.__setattr__(self, "value", value)


@dataclass
class DispatcherStats:
    frames: int = 0
    lines: int = 0
    blank_lines: int = 0
    dispatched: int = 0
    appended: Counter = field(default_factory=Counter)
    paused_drops: Counter = field(default_factory=Counter)
    missing_target: Counter = field(default_factory=Counter)
    invalid: Counter = field(default_factory=Counter)
    errors: int = 0

    @property
    def coalesced(self) -> int:
        """Non-blank lines that never reached the router."""
        return max(0, self.lines - self.blank_lines - self.dispatched)

    def snapshot(self) -> Dict[str, object]:
        return {
            "frames": self.frames,
            "lines": self.lines,
            "blank_lines": self.blank_lines,
            "dispatched": self.dispatched,
            "coalesced": self.coalesced,
            "appended": dict(self.appended),
            "paused_drops": dict(self.paused_drops),
            "missing_target": dict(self.missing_target),
            "invalid": dict(self.invalid),
            "errors": self.errors,
        }


__all__ = [
    "AppearanceProfile",
    "ChannelState",
    "DispatcherStats",
    "Sample",
    "THEMES",
    "THEME_DARK",
    "THEME_LIGHT",
]
