"""FFT magnitude spectrum and band-limited peak picking."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


def next_pow2(n: int) -> int:
    p = 1
    while p < n:
        p <<= 1
    return p


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves upward: 70.5 -> 71, where the builtin round gives 70."""
    scale = 10.0**ndigits
    return math.floor(value * scale + 0.5) / scale


def _bit_reverse_indices(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev


def fft_magnitude(x: np.ndarray) -> np.ndarray:
    """Magnitude spectrum of a real signal via iterative radix-2 Cooley-Tukey.

    The input is zero-padded to the next power of two N. Returns the first
    N/2 bin magnitudes (DC up to, not including, Nyquist).
    """
    x = np.asarray(x, dtype=np.float64)
    n = next_pow2(x.size)
    data = np.zeros(n, dtype=np.complex128)
    data[: x.size] = x
    data = data[_bit_reverse_indices(n)]
    size = 2
    while size <= n:
        half = size // 2
        twiddle = np.exp(-2j * np.pi * np.arange(half) / size)
        blocks = data.reshape(-1, size)
        top = blocks[:, :half]
        bottom = blocks[:, half:] * twiddle
        data = np.concatenate([top + bottom, top - bottom], axis=1).reshape(-1)
        size <<= 1
    return np.abs(data[: n >> 1])


@dataclass
class DominantFrequency:
    frequency: float  # Hz
    magnitude: float  # peak bin magnitude
    spectrum: np.ndarray


def dominant_frequency(
    signal: np.ndarray,
    fs: float,
    fmin: float,
    fmax: float,
) -> DominantFrequency:
    """Find the strongest spectral peak in [fmin, fmax] Hz.

    Bin 0 is never considered. The peak bin is refined with parabolic
    interpolation over its two neighbours when both exist.
    """
    signal = np.asarray(signal, dtype=np.float64)
    n = next_pow2(signal.size)
    mag = fft_magnitude(signal)
    lo = max(1, int(math.floor(fmin * n / fs)))
    hi = min(mag.size - 1, int(math.ceil(fmax * n / fs)))

    peak_bin = lo
    peak_mag = 0.0
    if hi >= lo:
        k = lo + int(np.argmax(mag[lo : hi + 1]))
        if mag[k] > 0.0:
            peak_bin = k
            peak_mag = float(mag[k])

    if 0 < peak_bin < mag.size - 1:
        y0 = float(mag[peak_bin - 1])
        y1 = float(mag[peak_bin])
        y2 = float(mag[peak_bin + 1])
        denom = y0 - 2.0 * y1 + y2
        p = 0.5 * (y0 - y2) / denom if denom != 0.0 else 0.0
        freq = (peak_bin + p) * fs / n
    else:
        freq = peak_bin * fs / n
    return DominantFrequency(frequency=float(freq), magnitude=peak_mag, spectrum=mag)
