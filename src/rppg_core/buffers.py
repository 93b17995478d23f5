"""Bounded sample and ROI-center buffers.

Both buffers are sliding windows: appending past capacity silently evicts
the oldest entries. The sample buffer's capacity follows the sample rate,
but a rate change only affects trims performed afterwards.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, List

import numpy as np


@dataclass(frozen=True)
class RGBSample:
    r: float
    g: float
    b: float
    timestamp: float  # ms


@dataclass(frozen=True)
class ROICenter:
    x: float
    y: float


def buffer_capacity(sample_rate: float, seconds: float = 15.0) -> int:
    return int(round(sample_rate * seconds))


class SampleBuffer:
    """FIFO of timestamped RGB samples, trimmed to ``round(fs * seconds)``."""

    def __init__(self, sample_rate: float = 30.0, seconds: float = 15.0) -> None:
        self.seconds = seconds
        self.sample_rate = sample_rate
        self._items: Deque[RGBSample] = deque()

    @property
    def capacity(self) -> int:
        return buffer_capacity(self.sample_rate, self.seconds)

    def set_sample_rate(self, sample_rate: float) -> None:
        # Existing entries stay; the next append trims with the new capacity.
        self.sample_rate = sample_rate

    def add(self, sample: RGBSample) -> None:
        self._items.append(sample)
        cap = max(self.capacity, 0)
        while len(self._items) > cap:
            self._items.popleft()

    def clear(self) -> None:
        self._items.clear()

    def as_array(self) -> np.ndarray:
        """Return an (n, 3) float64 array of R, G, B."""
        if not self._items:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([(s.r, s.g, s.b) for s in self._items], dtype=np.float64)

    def samples(self) -> List[RGBSample]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[RGBSample]:
        return iter(self._items)


class MotionTracker:
    """Fixed-capacity history of ROI centers used for motion estimation."""

    def __init__(self, capacity: int = 60) -> None:
        self._items: Deque[ROICenter] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def add(self, center: ROICenter) -> None:
        self._items.append(center)

    def clear(self) -> None:
        self._items.clear()

    def recent(self, count: int) -> List[ROICenter]:
        if count <= 0:
            return []
        items = list(self._items)
        return items[-count:]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ROICenter]:
        return iter(self._items)
