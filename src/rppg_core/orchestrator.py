"""Pipeline orchestrator and its control messages.

The orchestrator owns every buffer of one measurement session. It has no
timers of its own: callers drive it with control messages, and a periodic
``Process`` yields one result per call.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .buffers import MotionTracker, RGBSample, ROICenter, SampleBuffer
from .config import PipelineConfig
from .pipeline import PulseResult, process_rppg
from .quality import QualityResult, assess_signal_quality, estimate_motion
from .smoothing import BPMSmoother
from .spectrum import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddSample:
    sample: RGBSample
    roi_center: Optional[ROICenter] = None


@dataclass(frozen=True)
class SetFaceDetected:
    face_detected: bool


@dataclass(frozen=True)
class SetSampleRate:
    sample_rate: float


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class Process:
    pass


Message = Union[AddSample, SetFaceDetected, SetSampleRate, Reset, Process]


@dataclass
class PipelineResult:
    bpm: Optional[float]
    smoothed_bpm: Optional[int]
    confidence: float
    quality: QualityResult
    waveform: List[float] = field(default_factory=list)
    buffer_length: int = 0
    sample_rate: float = 30.0

    def to_dict(self) -> dict:
        return {
            "type": "result",
            "bpm": self.bpm,
            "smoothed_bpm": self.smoothed_bpm,
            "confidence": self.confidence,
            "quality": self.quality.to_dict(),
            "waveform": list(self.waveform),
            "buffer_length": self.buffer_length,
            "sample_rate": self.sample_rate,
        }


class PipelineOrchestrator:
    """Buffers samples and ROI motion, and computes BPM on demand."""

    def __init__(self, cfg: PipelineConfig | None = None) -> None:
        self.cfg = (cfg or PipelineConfig()).validate()
        self.sample_rate = self.cfg.sample_rate
        self.face_detected = False
        self.buffer = SampleBuffer(self.sample_rate, self.cfg.buffer_seconds)
        self.motion = MotionTracker(self.cfg.motion_capacity)
        self.smoother = BPMSmoother(self.cfg.bpm_window)

    def handle(self, msg: Message) -> Optional[PipelineResult]:
        """Apply one control message; only ``Process`` returns a result."""
        if isinstance(msg, AddSample):
            self.add_sample(msg.sample, msg.roi_center)
        elif isinstance(msg, SetFaceDetected):
            self.set_face_detected(msg.face_detected)
        elif isinstance(msg, SetSampleRate):
            self.set_sample_rate(msg.sample_rate)
        elif isinstance(msg, Reset):
            self.reset()
        elif isinstance(msg, Process):
            return self.process()
        else:
            raise TypeError(f"unknown control message: {msg!r}")
        return None

    def add_sample(self, sample: RGBSample, roi_center: Optional[ROICenter] = None) -> None:
        self.buffer.add(sample)
        if roi_center is not None:
            self.motion.add(roi_center)

    def set_face_detected(self, detected: bool) -> None:
        self.face_detected = bool(detected)

    def set_sample_rate(self, sample_rate: float) -> None:
        """Adopt a new frame rate; non-positive or non-finite rates are ignored."""
        if not math.isfinite(sample_rate) or sample_rate <= 0:
            logger.warning("ignoring invalid sample rate %r", sample_rate)
            return
        logger.debug("sample rate %.2f -> %.2f Hz", self.sample_rate, sample_rate)
        self.sample_rate = float(sample_rate)
        self.buffer.set_sample_rate(self.sample_rate)

    def reset(self) -> None:
        logger.debug("reset: dropping %d samples", len(self.buffer))
        self.buffer.clear()
        self.motion.clear()
        self.smoother.reset()

    def process(self) -> PipelineResult:
        cfg = self.cfg
        fs = self.sample_rate
        motion_level = estimate_motion(
            self.motion.recent(cfg.motion_samples),
            max_samples=cfg.motion_samples,
            scale_px=cfg.motion_scale_px,
        )

        pulse: Optional[PulseResult] = None
        if self.face_detected and len(self.buffer) > fs * cfg.min_buffer_seconds:
            pulse = process_rppg(
                self.buffer.as_array(),
                fs,
                fmin=cfg.min_hz,
                fmax=cfg.max_hz,
                window_sec=cfg.pos_window_sec,
                min_buffer_sec=cfg.min_buffer_seconds,
            )

        confidence = pulse.confidence if pulse is not None else 0.0
        quality = assess_signal_quality(confidence, self.face_detected, motion_level)

        bpm: Optional[float] = None
        smoothed: Optional[int] = None
        if (
            pulse is not None
            and cfg.min_valid_bpm <= pulse.bpm <= cfg.max_valid_bpm
            and confidence > cfg.min_confidence
        ):
            bpm = pulse.bpm
            smoothed = int(round_half_up(self.smoother.smooth(bpm)))

        waveform: List[float] = []
        if pulse is not None:
            keep = int(round_half_up(fs * cfg.waveform_seconds))
            waveform = pulse.waveform[-keep:].tolist()

        return PipelineResult(
            bpm=bpm,
            smoothed_bpm=smoothed,
            confidence=confidence,
            quality=quality,
            waveform=waveform,
            buffer_length=len(self.buffer),
            sample_rate=fs,
        )
