"""Camera and on-sensor detector adapters."""

from hardware.camera_controller import CameraController, CameraSettings
from hardware.imx500_detector import (
    Imx500Detector,
    Imx500Settings,
    StaticDetector,
    parse_raw_detection,
    parse_raw_detections,
)

__all__ = [
    "CameraController",
    "CameraSettings",
    "Imx500Detector",
    "Imx500Settings",
    "StaticDetector",
    "parse_raw_detection",
    "parse_raw_detections",
]
