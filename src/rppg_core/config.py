"""Pipeline configuration.

All tunables of the pulse pipeline live in a single dataclass so several
independent pipelines can run side by side with different settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional


@dataclass
class PipelineConfig:
    sample_rate: float = 30.0  # Hz, assumed frame rate until told otherwise
    min_hz: float = 0.7  # 42 BPM
    max_hz: float = 4.0  # 240 BPM
    pos_window_sec: float = 1.6  # POS temporal window
    buffer_seconds: float = 15.0
    motion_capacity: int = 60
    motion_samples: int = 15
    motion_scale_px: float = 20.0
    bpm_window: int = 5
    min_valid_bpm: float = 45.0
    max_valid_bpm: float = 180.0
    min_confidence: float = 0.1
    min_buffer_seconds: float = 3.0
    waveform_seconds: float = 10.0
    process_interval_sec: float = 0.5

    def validate(self) -> "PipelineConfig":
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        if not (0 < self.min_hz < self.max_hz):
            raise ValueError("band must satisfy 0 < min_hz < max_hz")
        if self.min_valid_bpm > self.max_valid_bpm:
            raise ValueError("min_valid_bpm must not exceed max_valid_bpm")
        if self.motion_capacity < 1 or self.bpm_window < 1:
            raise ValueError("history capacities must be >= 1")
        if self.process_interval_sec <= 0:
            raise ValueError("process_interval_sec must be positive")
        return self

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = "RPPG_",
    ) -> "PipelineConfig":
        """Build a config from ``RPPG_<FIELD>`` environment variables.

        Unset variables keep their defaults. Values are parsed with the type
        of the field default (int or float).
        """
        env = os.environ if environ is None else environ
        cfg = cls()
        for f in fields(cls):
            raw = env.get(prefix + f.name.upper())
            if raw is None or raw == "":
                continue
            current = getattr(cfg, f.name)
            setattr(cfg, f.name, type(current)(raw))
        return cfg.validate()
