"""Median smoothing of successive BPM readings."""

from __future__ import annotations

from collections import deque
from typing import Deque, List

import numpy as np


class BPMSmoother:
    """Running median over the last ``window`` accepted BPM readings.

    Only accepted readings are pushed; a pass without a valid reading
    leaves the history untouched.
    """

    def __init__(self, window: int = 5) -> None:
        self._hist: Deque[float] = deque(maxlen=window)

    def smooth(self, bpm: float) -> float:
        self._hist.append(float(bpm))
        # np.median averages the two middle values for an even count
        return float(np.median(np.fromiter(self._hist, dtype=np.float64)))

    def reset(self) -> None:
        self._hist.clear()

    def history(self) -> List[float]:
        return list(self._hist)

    def __len__(self) -> int:
        return len(self._hist)
