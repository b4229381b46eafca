"""Turn raw detector output into smoothed, display-space detection records."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from core.logging import logger
from vision.detections import DetectionRecord, FrameNotReadyError, RawDetection, Viewport, round_half_up
from vision.filters import ALL_OBJECTS, filter_detections
from vision.mapping import clamp_to_display, map_in_viewport
from vision.smoothing import BoxSmoother


@dataclass(frozen=True)
class RenderStyle:
    """Overlay drawing style, in display units."""

    line_width: float = 2.0
    stroke_color: str = "#00FFAA"
    label_background: tuple[int, int, int, int] = (0, 0, 0, 178)
    label_color: str = "#FFFFFF"
    border_radius: float = 6.0
    label_padding: float = 4.0
    label_height: float = 16.0
    font_size: float = 14.0

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "RenderStyle":
        section = config.get("render") or {}
        return cls(
            line_width=float(section.get("line_width", cls.line_width)),
            stroke_color=str(section.get("stroke_color", cls.stroke_color)),
            border_radius=float(section.get("border_radius", cls.border_radius)),
            label_padding=float(section.get("label_padding", cls.label_padding)),
            label_height=float(section.get("label_height", cls.label_height)),
            font_size=float(section.get("font_size", cls.font_size)),
        )

    def scaled(self, factor: float) -> "RenderStyle":
        """Return the style with every metric multiplied by ``factor``."""

        return RenderStyle(
            line_width=self.line_width * factor,
            stroke_color=self.stroke_color,
            label_background=self.label_background,
            label_color=self.label_color,
            border_radius=self.border_radius * factor,
            label_padding=self.label_padding * factor,
            label_height=self.label_height * factor,
            font_size=self.font_size * factor,
        )


class DetectionRenderer:
    """Maps, clamps and smooths detections for one frame.

    The renderer keeps no state of its own; it prunes the smoother so labels
    missing from the current frame restart from scratch when they return.
    """

    def __init__(self, smoother: BoxSmoother, style: RenderStyle | None = None) -> None:
        self.smoother = smoother
        self.style = style or RenderStyle()

    def render(
        self,
        raw_detections: Sequence[RawDetection],
        viewport: Viewport,
        object_filter: str = ALL_OBJECTS,
    ) -> list[DetectionRecord]:
        """Return display records in detection order.

        Raises:
            FrameNotReadyError: when the viewport geometry is degenerate. The
                smoother is left untouched in that case.
        """

        if not viewport.is_ready:
            raise FrameNotReadyError(f"viewport not ready: {viewport}")

        labelled = [det for det in raw_detections if det.label]
        dropped = len(raw_detections) - len(labelled)
        if dropped:
            logger.debug("[RENDER] dropped %s unlabelled detection(s)", dropped)

        mapped = [
            (det, map_in_viewport(det.box, viewport))
            for det in filter_detections(labelled, object_filter)
        ]

        records: list[DetectionRecord] = []
        seen: set[str] = set()
        for det, rect in mapped:
            key = str(det.label)
            seen.add(key)
            clamped = clamp_to_display(rect, viewport.display_width, viewport.display_height)
            final = self.smoother.update(key, clamped, det.confidence)
            records.append(
                DetectionRecord(
                    category_name=key,
                    score=det.confidence,
                    x=round_half_up(final.x),
                    y=round_half_up(final.y),
                    width=round_half_up(final.width),
                    height=round_half_up(final.height),
                    source_box=det.box,
                )
            )

        stale = self.smoother.prune(seen)
        if stale:
            logger.debug("[RENDER] evicted tracked labels: %s", ", ".join(sorted(stale)))
        return records


def summarize(records: Sequence[DetectionRecord]) -> list[dict[str, Any]]:
    """Return the normalized detection summary for downstream consumers."""

    return [record.to_payload() for record in records]
