"""Detection data model shared by the overlay, presence and capture stages.

Raw detector boxes live in source-frame pixels and are expressed as
``(origin_x, origin_y, width, height)``. Display rectangles are in the units of
the visible viewport and are recomputed every frame.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any


class FrameNotReadyError(ValueError):
    """Raised when frame or display geometry is degenerate and a frame must be skipped."""


@dataclass(frozen=True)
class SourceBox:
    """Axis-aligned box in source-frame pixel coordinates."""

    origin_x: float
    origin_y: float
    width: float
    height: float

    def to_dict(self) -> dict[str, float]:
        return {
            "originX": self.origin_x,
            "originY": self.origin_y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class RawDetection:
    """Single detector result for one inference call."""

    label: str | None
    confidence: float
    box: SourceBox


@dataclass(frozen=True)
class DisplayRect:
    """Rectangle in display coordinates."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Viewport:
    """Source frame and display dimensions used for cover mapping."""

    source_width: float
    source_height: float
    display_width: float
    display_height: float

    @property
    def is_ready(self) -> bool:
        return min(self.source_width, self.source_height, self.display_width, self.display_height) > 0


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_label(category_name: str, score: float, x: float, y: float, width: float, height: float) -> str:
    """Return the overlay label text for a box."""

    return (
        f"{category_name} {round_half_up(score * 100)}% "
        f"[{round_half_up(x)},{round_half_up(y)} {round_half_up(width)}×{round_half_up(height)}]"
    )


@dataclass(frozen=True)
class DetectionRecord:
    """Rendered detection: rounded display box plus the original source box."""

    category_name: str
    score: float
    x: int
    y: int
    width: int
    height: int
    source_box: SourceBox

    @property
    def label(self) -> str:
        return format_label(self.category_name, self.score, self.x, self.y, self.width, self.height)

    def to_payload(self) -> dict[str, Any]:
        """Return the wire representation sent to reasoning collaborators."""

        return {
            "categoryName": self.category_name,
            "score": self.score,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class DetectorFrame:
    """Detector output for one inference call, with the source frame size."""

    detections: tuple[RawDetection, ...]
    source_width: int
    source_height: int
    frame_id: int | None = None
