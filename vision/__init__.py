"""Vision package exports."""

from vision.detections import (
    DetectionRecord,
    DetectorFrame,
    DisplayRect,
    FrameNotReadyError,
    RawDetection,
    SourceBox,
    Viewport,
)

__all__ = [
    "DetectionRecord",
    "DetectorFrame",
    "DisplayRect",
    "FrameNotReadyError",
    "RawDetection",
    "SourceBox",
    "Viewport",
]
