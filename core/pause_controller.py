from __future__ import annotations

import logging
import operator
from typing import Callable, Dict, List, Optional

from .channel_registry import ChannelRegistry

logger = logging.getLogger(__name__)

PauseListener = Callable[[int, bool], None]


class PauseController:
    """Owns the per-channel paused flags.

    ``toggle`` is the only mutation path. Listeners are told about every flip
    so the bound renderer can stop or resume scrolling. Buffered samples are
    never touched here.
    """

    def __init__(self, registry: ChannelRegistry) -> None:
        self._registry = registry
        self._listeners: Dict[int, PauseListener] = {}
        self._next_token = 0

    def toggle(self, index: int) -> Optional[bool]:
        """Flip channel `index`; returns the new paused state or None on no-op."""
        try:
            index = operator.index(index)
        except TypeError:
            state = None
        else:
            state = self._registry.state(index)
        if state is None or not state.enabled:
            logger.debug("Ignoring pause toggle for unknown/disabled channel %r", index)
            return None
        state.paused = not state.paused
        logger.info("Channel %d %s", index, "paused" if state.paused else "resumed")
        for listener in list(self._listeners.values()):
            try:
                listener(index, state.paused)
            except Exception as exc:
                logger.warning("Pause listener failed for channel %d: %s", index, exc)
        return state.paused

    def is_paused(self, index: int) -> bool:
        state = self._registry.state(index)
        return state is not None and state.paused

    def paused_indices(self) -> List[int]:
        return [state.index for state in self._registry if state.paused]

    def add_listener(self, listener: PauseListener) -> Callable[[], None]:
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe


__all__ = ["PauseController", "PauseListener"]
