from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Sequence

from shared.models import ChannelState

logger = logging.getLogger(__name__)


def surface_id(index: int) -> str:
    """Name of the drawable surface a renderer binds to for channel `index`."""
    return f"chart-{int(index) + 1}"


class ChannelRegistry:
    """Fixed set of positional channels declared at startup.

    One ChannelState exists per configured index. The enabled flags never
    change after construction; only the Pause Controller writes ``paused``.
    """

    def __init__(self, enabled: Sequence[bool]) -> None:
        flags = [bool(flag) for flag in enabled]
        if not flags:
            raise ValueError("at least one channel must be configured")
        self._states: Dict[int, ChannelState] = {
            idx: ChannelState(index=idx, enabled=flag) for idx, flag in enumerate(flags)
        }
        self._enabled: tuple[int, ...] = tuple(idx for idx, flag in enumerate(flags) if flag)
        logger.info("Channel registry: %d configured, enabled=%s", len(flags), list(self._enabled))

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and index in self._states

    def __iter__(self) -> Iterator[ChannelState]:
        return iter(self._states.values())

    @property
    def enabled_indices(self) -> tuple[int, ...]:
        return self._enabled

    def state(self, index: int) -> Optional[ChannelState]:
        return self._states.get(index)

    def is_enabled(self, index: int) -> bool:
        state = self._states.get(index)
        return state is not None and state.enabled

    def enabled_states(self) -> List[ChannelState]:
        return [self._states[idx] for idx in self._enabled]

    def surface_ids(self) -> Dict[int, str]:
        return {idx: surface_id(idx) for idx in self._enabled}


__all__ = ["ChannelRegistry", "surface_id"]
