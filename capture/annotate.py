"""Pillow drawing of detection boxes, for the display overlay and native-resolution captures."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from PIL import Image, ImageDraw, ImageFont

from vision.detections import DetectionRecord, FrameNotReadyError, format_label
from vision.mapping import cover_scale
from vision.renderer import RenderStyle


def _font(size: float) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    return ImageFont.load_default(size=max(1.0, size))


def draw_boxes(
    image: Image.Image,
    boxes: Iterable[tuple[str, float, float, float, float]],
    style: RenderStyle,
) -> Image.Image:
    """Draw ``(label, x, y, width, height)`` boxes in place and return the image.

    Labels sit above the box, or inside its top edge when there is no room
    above, and are kept horizontally within the image.
    """

    draw = ImageDraw.Draw(image, "RGBA")
    font = _font(style.font_size)
    line_width = max(1, round(style.line_width))
    pad = style.label_padding

    for label, x, y, width, height in boxes:
        if width <= 0 or height <= 0:
            continue
        radius = min(style.border_radius, width / 2, height / 2)
        draw.rounded_rectangle(
            (x, y, x + width, y + height),
            radius=radius,
            outline=style.stroke_color,
            width=line_width,
        )

        text_width = draw.textlength(label, font=font)
        plate_width = text_width + pad * 2
        plate_height = style.label_height + pad * 2
        label_y = y - plate_height if y - plate_height >= 0 else y
        label_x = max(0.0, min(image.width - plate_width, x))
        draw.rectangle(
            (label_x, label_y, label_x + plate_width, label_y + plate_height),
            fill=style.label_background,
        )
        draw.text((label_x + pad, label_y + pad), label, fill=style.label_color, font=font)
    return image


def draw_overlay(image: Image.Image, records: Sequence[DetectionRecord], style: RenderStyle) -> Image.Image:
    """Draw records at their display-space positions."""

    return draw_boxes(
        image,
        ((record.label, record.x, record.y, record.width, record.height) for record in records),
        style,
    )


def annotate_source_frame(
    image: Image.Image,
    records: Sequence[DetectionRecord],
    display_width: float,
    style: RenderStyle,
) -> Image.Image:
    """Return a copy of a native-resolution frame with boxes redrawn from source boxes.

    Style metrics are scaled by ``native_width / display_width`` so the capture
    looks like the on-screen overlay.
    """

    if display_width <= 0:
        raise FrameNotReadyError("display width not available")
    scaled_style = style.scaled(image.width / display_width)
    annotated = image.copy()
    boxes = []
    for record in records:
        box = record.source_box
        label = format_label(record.category_name, record.score, box.origin_x, box.origin_y, box.width, box.height)
        boxes.append((label, box.origin_x, box.origin_y, box.width, box.height))
    return draw_boxes(annotated, boxes, scaled_style)


def compose_display_frame(
    image: Image.Image,
    records: Sequence[DetectionRecord],
    display_size: tuple[int, int],
    style: RenderStyle,
) -> Image.Image:
    """Cover-fit the frame into the display and draw the overlay on top."""

    display_width, display_height = display_size
    scale, offset_x, offset_y = cover_scale(image.width, image.height, display_width, display_height)
    scaled = image.resize((round(image.width * scale), round(image.height * scale)))
    left = round(offset_x)
    top = round(offset_y)
    frame = scaled.crop((left, top, left + display_width, top + display_height)).convert("RGB")
    return draw_overlay(frame, records, style)
