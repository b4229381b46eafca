"""Cover-fit mapping from source-frame pixels to display coordinates."""

from __future__ import annotations

from vision.detections import DisplayRect, FrameNotReadyError, SourceBox, Viewport


def cover_scale(
    source_width: float,
    source_height: float,
    display_width: float,
    display_height: float,
) -> tuple[float, float, float]:
    """Return ``(scale, offset_x, offset_y)`` for an object-fit cover layout.

    The scale is the larger of the two axis scales so the source fills the
    display on both axes; the overflow on the other axis is cropped evenly.
    """

    if source_width <= 0 or source_height <= 0:
        raise FrameNotReadyError(f"source frame not ready ({source_width}x{source_height})")
    if display_width <= 0 or display_height <= 0:
        raise FrameNotReadyError(f"display not ready ({display_width}x{display_height})")

    scale = max(display_width / source_width, display_height / source_height)
    offset_x = (source_width * scale - display_width) / 2
    offset_y = (source_height * scale - display_height) / 2
    return scale, offset_x, offset_y


def map_to_display(
    source_box: SourceBox,
    source_width: float,
    source_height: float,
    display_width: float,
    display_height: float,
) -> DisplayRect:
    """Map a source-pixel box into display coordinates under cover scaling."""

    scale, offset_x, offset_y = cover_scale(source_width, source_height, display_width, display_height)
    return DisplayRect(
        x=source_box.origin_x * scale - offset_x,
        y=source_box.origin_y * scale - offset_y,
        width=source_box.width * scale,
        height=source_box.height * scale,
    )


def map_in_viewport(source_box: SourceBox, viewport: Viewport) -> DisplayRect:
    return map_to_display(
        source_box,
        viewport.source_width,
        viewport.source_height,
        viewport.display_width,
        viewport.display_height,
    )


def clamp_to_display(rect: DisplayRect, display_width: float, display_height: float) -> DisplayRect:
    """Clip a display rect to the visible area.

    Partially visible boxes keep their visible part; boxes fully outside the
    display collapse to zero extent at the nearest edge.
    """

    left = max(0.0, min(display_width, rect.x))
    top = max(0.0, min(display_height, rect.y))
    right = max(0.0, min(display_width, rect.x + rect.width))
    bottom = max(0.0, min(display_height, rect.y + rect.height))
    return DisplayRect(
        x=left,
        y=top,
        width=max(0.0, right - left),
        height=max(0.0, bottom - top),
    )
