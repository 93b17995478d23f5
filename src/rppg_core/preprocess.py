"""Signal preprocessing for rPPG: detrending, normalization, bandpass."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy.signal import lfilter


def detrend(x: np.ndarray) -> np.ndarray:
    """Remove the least-squares linear trend (value vs. sample index).

    Signals shorter than two samples are returned as a copy.
    """
    x = np.asarray(x, dtype=np.float64)
    n = x.size
    if n < 2:
        return x.copy()
    idx = np.arange(n, dtype=np.float64)
    sx = idx.sum()
    sy = x.sum()
    sxx = float(np.dot(idx, idx))
    sxy = float(np.dot(idx, x))
    denom = n * sxx - sx * sx
    slope = (n * sxy - sx * sy) / denom if denom != 0 else 0.0
    intercept = (sy - slope * sx) / n
    return x - (slope * idx + intercept)


def detrend_moving_average(x: np.ndarray, win: int) -> np.ndarray:
    """Subtract a centered moving average to remove slow drift.

    Args:
        x: 1D array.
        win: window length in samples; the mean at i covers
            [i - win//2, i + win//2], clipped at both ends.
    """
    x = np.asarray(x, dtype=np.float64)
    n = x.size
    if n == 0:
        return x.copy()
    half = max(int(win), 0) // 2
    csum = np.concatenate(([0.0], np.cumsum(x)))
    i = np.arange(n)
    start = np.maximum(0, i - half)
    end = np.minimum(n - 1, i + half)
    mean = (csum[end + 1] - csum[start]) / (end - start + 1)
    return x - mean


def normalize(x: np.ndarray) -> np.ndarray:
    """Zero mean, unit variance. Flat signals (std <= 1e-10) map to zeros."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    mean = float(x.mean())
    std = float(np.sqrt(np.mean((x - mean) ** 2)))
    if std <= 1e-10:
        return np.zeros_like(x)
    return (x - mean) / std


@dataclass(frozen=True)
class BiquadCoeffs:
    b0: float
    b1: float
    b2: float
    a1: float
    a2: float

    def ba(self) -> tuple[np.ndarray, np.ndarray]:
        """Return (b, a) in scipy.signal form with a[0] == 1."""
        b = np.array([self.b0, self.b1, self.b2], dtype=np.float64)
        a = np.array([1.0, self.a1, self.a2], dtype=np.float64)
        return b, a


@dataclass
class FilterState:
    x1: float = 0.0
    x2: float = 0.0
    y1: float = 0.0
    y2: float = 0.0


def butterworth_bandpass(low_hz: float, high_hz: float, fs: float) -> BiquadCoeffs:
    """Second-order Butterworth bandpass biquad.

    The center frequency is the geometric mean of the cutoffs and the
    bandwidth is expressed in octaves through the sinh term.
    """
    w0 = 2.0 * math.pi * math.sqrt(low_hz * high_hz) / fs
    bw = 2.0 * math.pi * (high_hz - low_hz) / fs
    sin_w0 = math.sin(w0)
    cos_w0 = math.cos(w0)
    alpha = sin_w0 * math.sinh((math.log(2.0) / 2.0) * (bw / sin_w0))
    a0 = 1.0 + alpha
    return BiquadCoeffs(
        b0=alpha / a0,
        b1=0.0,
        b2=-alpha / a0,
        a1=(-2.0 * cos_w0) / a0,
        a2=(1.0 - alpha) / a0,
    )


def biquad_step(sample: float, coeffs: BiquadCoeffs, state: FilterState) -> float:
    """Filter one sample, updating ``state`` in place."""
    y = (
        coeffs.b0 * sample
        + coeffs.b1 * state.x1
        + coeffs.b2 * state.x2
        - coeffs.a1 * state.y1
        - coeffs.a2 * state.y2
    )
    state.x2 = state.x1
    state.x1 = sample
    state.y2 = state.y1
    state.y1 = y
    return y


def filter_signal(x: np.ndarray, coeffs: BiquadCoeffs) -> np.ndarray:
    """Apply the biquad to a whole signal starting from a zeroed state.

    Equivalent to threading a fresh FilterState through biquad_step.
    """
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    b, a = coeffs.ba()
    return lfilter(b, a, x)


def bandpass(
    x: np.ndarray,
    fs: float,
    fmin: float = 0.7,
    fmax: float = 4.0,
) -> np.ndarray:
    """Causal 2nd-order Butterworth band-pass filter.

    Args:
        x: 1D array.
        fs: sampling rate [Hz].
        fmin: low cut [Hz].
        fmax: high cut [Hz].
    """
    return filter_signal(x, butterworth_bandpass(fmin, fmax, fs))
