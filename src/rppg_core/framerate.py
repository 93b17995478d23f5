"""Effective frame-rate estimate from capture timestamps."""

from __future__ import annotations

import math
from typing import Optional


class FrameRateEstimator:
    """Count frames and report the rate once per ``period_ms`` window.

    The first frame opens a window. The first frame arriving more than
    ``period_ms`` after the window start closes it: the rate is the number
    of frames seen (that one included) per elapsed second, rounded to an
    integer, and the next window starts at that frame.
    """

    def __init__(self, period_ms: float = 2000.0) -> None:
        self.period_ms = period_ms
        self._start: Optional[float] = None
        self._frames = 0

    def tick(self, now_ms: float) -> Optional[int]:
        self._frames += 1
        if self._start is None:
            self._start = now_ms
            return None
        elapsed = now_ms - self._start
        if elapsed <= self.period_ms:
            return None
        fps = self._frames * 1000.0 / elapsed
        self._frames = 0
        self._start = now_ms
        return int(math.floor(fps + 0.5))

    def reset(self) -> None:
        self._start = None
        self._frames = 0
