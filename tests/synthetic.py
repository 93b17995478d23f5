from __future__ import annotations

import numpy as np

from rppg_core.buffers import RGBSample


def make_pulse_samples(
    n: int = 150,
    fs: float = 30.0,
    f_hz: float = 1.2,
    amp: float = 2.0,
    base: float = 150.0,
) -> list[RGBSample]:
    """Constant skin colour with the green channel modulated at f_hz."""
    t = np.arange(n) / fs
    g = base + amp * np.sin(2 * np.pi * f_hz * t)
    return [RGBSample(base, float(g[i]), base, float(t[i] * 1000.0)) for i in range(n)]
