"""One full rPPG pass over a buffer of RGB samples.

POS projection -> linear detrend -> bandpass -> FFT peak, plus a
normalized copy of the filtered signal for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .pos import pos_extract
from .preprocess import butterworth_bandpass, detrend, filter_signal, normalize
from .quality import band_confidence
from .spectrum import dominant_frequency, round_half_up

MIN_HR_HZ = 0.7  # 42 BPM
MAX_HR_HZ = 4.0  # 240 BPM
POS_WINDOW_SEC = 1.6
MIN_BUFFER_SEC = 3.0


@dataclass
class PulseResult:
    bpm: float
    confidence: float
    waveform: np.ndarray  # normalized filtered signal
    raw_signal: np.ndarray  # filtered signal before normalization
    spectrum: np.ndarray
    sample_rate: float


def process_rppg(
    rgb: np.ndarray,
    fs: float,
    fmin: float = MIN_HR_HZ,
    fmax: float = MAX_HR_HZ,
    window_sec: float = POS_WINDOW_SEC,
    min_buffer_sec: float = MIN_BUFFER_SEC,
) -> Optional[PulseResult]:
    """Run the pulse pipeline on an (n, 3) RGB buffer.

    Returns None when fewer than ``min_buffer_sec * fs`` samples are
    available or POS produced nothing.
    """
    rgb = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    if rgb.shape[0] < fs * min_buffer_sec:
        return None

    raw = pos_extract(rgb, fs, window_sec)
    if raw.size == 0:
        return None

    filtered = filter_signal(detrend(raw), butterworth_bandpass(fmin, fmax, fs))
    waveform = normalize(filtered)

    peak = dominant_frequency(filtered, fs, fmin, fmax)
    confidence = band_confidence(peak.spectrum, peak.magnitude, fs, fmin, fmax)

    return PulseResult(
        bpm=round_half_up(peak.frequency * 60.0, 1),
        confidence=confidence,
        waveform=waveform,
        raw_signal=filtered,
        spectrum=peak.spectrum,
        sample_rate=fs,
    )
