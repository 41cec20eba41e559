from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Tuple

from shared.models import THEME_DARK, THEME_LIGHT, AppearanceProfile

logger = logging.getLogger(__name__)


_PROFILES: Dict[str, AppearanceProfile] = {
    THEME_DARK: AppearanceProfile(
        background_color="rgb(2, 8, 23)",
        line_color="rgba(0, 255, 0, 0.8)",
        text_color="#ffffff",
        grid_color="#333333",
    ),
    THEME_LIGHT: AppearanceProfile(
        background_color="rgb(255, 255, 255)",
        line_color="rgba(0, 100, 0, 0.8)",
        text_color="#000000",
        grid_color="#cccccc",
    ),
}

# Full-scale ranges offered by the vertical range selector (ADC bit depths).
_Y_RANGES: Dict[str, Optional[Tuple[float, float]]] = {
    "ten": (0.0, 1023.0),
    "twelve": (0.0, 4095.0),
    "fourteen": (0.0, 16383.0),
    "auto": None,
}


def profile_for_theme(theme: Optional[str]) -> AppearanceProfile:
    """Resolve a theme selector; anything other than "dark" is light."""
    key = str(theme).lower() if theme is not None else THEME_LIGHT
    if key not in _PROFILES:
        logger.debug("Unknown theme %r, falling back to light", theme)
        key = THEME_LIGHT
    return _PROFILES[key]


def y_range_for_resolution(resolution: str) -> Optional[Tuple[float, float]]:
    """Fixed y range for a bit-depth selection, or None for auto scale."""
    try:
        return _Y_RANGES[resolution]
    except KeyError:
        raise ValueError(f"unknown resolution {resolution!r}") from None


class StyledTarget(Protocol):
    def apply_appearance(self, profile: AppearanceProfile) -> None: ...


class AppearanceAdapter:
    """Holds the current profile and restyles every registered target on change."""

    def __init__(self, theme: Optional[str] = THEME_LIGHT) -> None:
        self._theme = theme
        self._profile = profile_for_theme(theme)
        self._targets: Dict[int, StyledTarget] = {}

    @property
    def theme(self) -> Optional[str]:
        return self._theme

    @property
    def profile(self) -> AppearanceProfile:
        return self._profile

    def register(self, index: int, target: StyledTarget) -> None:
        """Track `target` and style it with the current profile."""
        self._targets[index] = target
        self._apply_to(index, target, self._profile)

    def set_theme(self, theme: Optional[str]) -> AppearanceProfile:
        self._theme = theme
        profile = profile_for_theme(theme)
        # single assignment; targets never see a partially updated profile
        self._profile = profile
        logger.info("Applying %s appearance to %d targets", theme, len(self._targets))
        for index, target in list(self._targets.items()):
            self._apply_to(index, target, profile)
        return profile

    def reapply(self) -> None:
        for index, target in list(self._targets.items()):
            self._apply_to(index, target, self._profile)

    def _apply_to(self, index: int, target: StyledTarget, profile: AppearanceProfile) -> None:
        try:
            target.apply_appearance(profile)
        except Exception as exc:
            logger.warning("Failed to restyle channel %d: %s", index, exc)


__all__ = ["AppearanceAdapter", "StyledTarget", "profile_for_theme", "y_range_for_resolution"]
