"""Real-time heart-rate estimation from face ROI colour samples (POS rPPG)."""

from .buffers import RGBSample, ROICenter
from .config import PipelineConfig
from .orchestrator import PipelineOrchestrator, PipelineResult
from .worker import PipelineWorker

__all__ = [
    "RGBSample",
    "ROICenter",
    "PipelineConfig",
    "PipelineOrchestrator",
    "PipelineResult",
    "PipelineWorker",
]

__version__ = "0.1.0"
