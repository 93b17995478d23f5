"""Quality metrics for rPPG signals.

Includes a band-power peak confidence, ROI motion estimation and the
combined good/fair/poor assessment shown to the user.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from .buffers import ROICenter


class QualityLevel(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class QualityResult:
    level: QualityLevel
    score: float  # 0..1
    message: str

    def to_dict(self) -> dict:
        return {"level": self.level.value, "score": self.score, "message": self.message}


NO_FACE_MESSAGE = "No face detected. Please face the camera."
GOOD_MESSAGE = "Good signal quality."
FAIR_MESSAGE = "Fair signal. Try to stay still and ensure good lighting."
POOR_MESSAGE = "Poor signal. Improve lighting, stay still, and face the camera."


def band_confidence(
    spectrum: np.ndarray,
    peak_magnitude: float,
    fs: float,
    fmin: float = 0.7,
    fmax: float = 4.0,
) -> float:
    """Return a 0..1 confidence from peak-to-mean in-band magnitude.

    Band bins are mapped with a transform length of twice the spectrum
    length. A ratio of 1.5 or less gives 0 and 6.5 or more gives 1.

    Args:
        spectrum: half magnitude spectrum (length M).
        peak_magnitude: magnitude of the detected peak.
        fs: sampling rate [Hz].
        fmin/fmax: band limits [Hz].
    """
    p = np.asarray(spectrum, dtype=np.float64)
    m = p.size
    lo = max(1, int(math.floor(fmin * m * 2 / fs)))
    hi = min(m - 1, int(math.ceil(fmax * m * 2 / fs)))
    band = p[lo : hi + 1] if hi >= lo else p[:0]
    mean_mag = float(band.mean()) if band.size > 0 else 1.0
    snr = peak_magnitude / mean_mag if mean_mag > 0 else 0.0
    return float(np.clip((snr - 1.5) / 5.0, 0.0, 1.0))


def estimate_motion(
    history: Sequence[ROICenter],
    max_samples: int = 15,
    scale_px: float = 20.0,
) -> float:
    """Return a 0..1 motion level from recent ROI center displacements.

    The mean step length over the last ``max_samples`` centers is divided
    by ``scale_px``; fewer than two centers means no motion.
    """
    if len(history) < 2:
        return 0.0
    recent = list(history)[-max_samples:]
    if len(recent) < 2:
        return 0.0
    pts = np.array([(c.x, c.y) for c in recent], dtype=np.float64)
    steps = np.hypot(np.diff(pts[:, 0]), np.diff(pts[:, 1]))
    avg = float(steps.sum()) / (len(recent) - 1)
    return float(min(1.0, avg / scale_px))


def assess_signal_quality(
    confidence: float,
    face_detected: bool,
    motion_level: float,
) -> QualityResult:
    """Combine confidence, face presence and motion into a quality level.

    Args:
        confidence: spectral confidence (0..1).
        face_detected: whether the detector currently sees a face.
        motion_level: 0 = still, 1 = lots of motion.
    """
    if not face_detected:
        return QualityResult(QualityLevel.POOR, 0.0, NO_FACE_MESSAGE)
    motion_penalty = min(1.0, motion_level * 2.0)
    score = float(np.clip(confidence * (1.0 - motion_penalty * 0.5), 0.0, 1.0))
    if score >= 0.5:
        return QualityResult(QualityLevel.GOOD, score, GOOD_MESSAGE)
    if score >= 0.2:
        return QualityResult(QualityLevel.FAIR, score, FAIR_MESSAGE)
    return QualityResult(QualityLevel.POOR, score, POOR_MESSAGE)
