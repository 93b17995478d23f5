"""POS (Plane-Orthogonal-to-Skin) pulse extraction.

Reference: Wang, W., den Brinker, A. C., Stuijk, S., & de Haan, G. (2017).
"Algorithmic Principles of Remote PPG." IEEE TBME 64(7), 1479-1491.
"""

from __future__ import annotations

import numpy as np

_MEAN_EPS = 1e-6
_STD_EPS = 1e-10


def pos_signal(Rn: np.ndarray, Gn: np.ndarray, Bn: np.ndarray) -> np.ndarray:
    """Compute POS composite signal for a window of normalized RGB.

    Args:
        Rn, Gn, Bn: 1D arrays of equal length, each channel divided by its
            temporal mean.
    """
    Rn = np.asarray(Rn, dtype=np.float64)
    Gn = np.asarray(Gn, dtype=np.float64)
    Bn = np.asarray(Bn, dtype=np.float64)
    X = Gn - Bn
    Y = -2 * Rn + Gn + Bn
    return X + _alpha(X, Y) * Y


def _alpha(s1: np.ndarray, s2: np.ndarray) -> float:
    if s1.size == 0:
        return 1.0
    sy = float(np.std(s2))
    if sy <= _STD_EPS:
        return 1.0
    return float(np.std(s1)) / sy


def _trailing_means(rgb: np.ndarray, window_len: int) -> np.ndarray:
    """Mean of rows [max(0, i - window_len + 1), i] for every row i."""
    n = rgb.shape[0]
    csum = np.vstack([np.zeros((1, 3)), np.cumsum(rgb, axis=0)])
    end = np.arange(1, n + 1)
    start = np.maximum(0, end - window_len)
    counts = (end - start).astype(np.float64)[:, None]
    return (csum[end] - csum[start]) / counts


def pos_extract(rgb: np.ndarray, fs: float, window_sec: float = 1.6) -> np.ndarray:
    """Project a buffer of mean RGB samples onto a single pulse waveform.

    Each sample is normalized by the trailing-window mean of its channels.
    The buffer is then walked in blocks of ``max(window_len, 10)`` with a
    50% hop; each block gets its own alpha and the block outputs are
    overlap-added (summed, not averaged).

    Args:
        rgb: (n, 3) array of R, G, B channel means.
        fs: sampling rate [Hz].
        window_sec: POS temporal window [s].

    Returns:
        Raw pulse signal of length n, or an empty array when n < 3.
    """
    rgb = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    n = rgb.shape[0]
    if n < 3:
        return np.zeros(0, dtype=np.float64)

    window_len = max(1, int(np.floor(window_sec * fs + 0.5)))
    means = _trailing_means(rgb, window_len)
    valid = np.all(means >= _MEAN_EPS, axis=1)
    safe = np.where(valid[:, None], means, 1.0)
    cn = rgb / safe
    s1 = np.where(valid, cn[:, 1] - cn[:, 2], 0.0)
    s2 = np.where(valid, cn[:, 1] + cn[:, 2] - 2.0 * cn[:, 0], 0.0)

    out = np.zeros(n, dtype=np.float64)
    block = max(window_len, 10)
    hop = block // 2
    for start in range(0, n, hop):
        end = min(start + block, n)
        a = _alpha(s1[start:end], s2[start:end])
        out[start:end] += s1[start:end] + a * s2[start:end]
    return out
