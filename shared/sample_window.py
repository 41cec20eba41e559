from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .models import Sample


class SampleWindow:
    """
    Rolling (timestamp, value) window for a single channel, backed by
    preallocated NumPy arrays.

    Points are only ever appended at the tail. The head is evicted when a
    point falls outside the retention horizon or when the ring is full.
    """

    def __init__(self, retention_ms: int = 12_000, capacity: int = 4096) -> None:
        if retention_ms <= 0:
            raise ValueError("retention_ms must be positive")
        if capacity <= 0:
            raise ValueError("capacity must be positive")

        self._retention_ms = int(retention_ms)
        self._capacity = int(capacity)
        self._times = np.zeros(self._capacity, dtype=np.int64)
        self._values = np.zeros(self._capacity, dtype=np.float64)
        self._head = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def retention_ms(self) -> int:
        return self._retention_ms

    def __len__(self) -> int:
        return self._count

    def append(self, sample: Sample) -> None:
        """Append `sample` at the tail, evicting points past the horizon."""
        tail = (self._head + self._count) % self._capacity
        self._times[tail] = sample.timestamp_ms
        self._values[tail] = sample.value
        if self._count == self._capacity:
            # full ring: the write above replaced the oldest point
            self._head = (self._head + 1) % self._capacity
        else:
            self._count += 1
        self.evict_older_than(sample.timestamp_ms)

    def evict_older_than(self, now_ms: int) -> int:
        """
        Drop points older than ``now_ms - retention_ms``.

        Returns the number of evicted points.
        """
        if self._count == 0:
            return 0
        cutoff = int(now_ms) - self._retention_ms
        keep = self._ordered(self._times) >= cutoff
        if keep.all():
            return 0
        dropped = int(np.argmax(keep)) if keep.any() else self._count
        self._head = (self._head + dropped) % self._capacity
        self._count -= dropped
        return dropped

    def times(self) -> np.ndarray:
        """Timestamps from oldest to newest (copy)."""
        return np.array(self._ordered(self._times), copy=True)

    def values(self) -> np.ndarray:
        """Values from oldest to newest (copy)."""
        return np.array(self._ordered(self._values), copy=True)

    def snapshot(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.times(), self.values()

    def latest(self) -> Optional[Sample]:
        if self._count == 0:
            return None
        idx = (self._head + self._count - 1) % self._capacity
        return Sample(int(self._times[idx]), float(self._values[idx]))

    def clear(self) -> None:
        self._head = 0
        self._count = 0

    def _ordered(self, data: np.ndarray) -> np.ndarray:
        end = self._head + self._count
        if end <= self._capacity:
            return data[self._head:end]
        return np.concatenate((data[self._head:], data[: end - self._capacity]))


__all__ = ["SampleWindow"]
