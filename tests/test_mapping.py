"""Tests for cover-fit mapping and clamping."""

from __future__ import annotations

import pytest

from vision.detections import DisplayRect, FrameNotReadyError, SourceBox, Viewport
from vision.mapping import clamp_to_display, cover_scale, map_in_viewport, map_to_display


def test_cover_scale_uses_larger_axis_and_centers_crop() -> None:
    scale, offset_x, offset_y = cover_scale(640, 480, 1280, 720)

    assert scale == 2.0
    assert offset_x == 0.0
    assert offset_y == 120.0


def test_full_source_box_covers_display() -> None:
    rect = map_to_display(SourceBox(0, 0, 640, 480), 640, 480, 1280, 720)

    assert rect == DisplayRect(x=0.0, y=-120.0, width=1280.0, height=960.0)
    assert clamp_to_display(rect, 1280, 720) == DisplayRect(0.0, 0.0, 1280.0, 720.0)


def test_portrait_display_crops_horizontally() -> None:
    viewport = Viewport(source_width=1920, source_height=1080, display_width=540, display_height=960)

    rect = map_in_viewport(SourceBox(960, 540, 0, 0), viewport)

    # Frame center stays at display center.
    assert rect.x == pytest.approx(270.0)
    assert rect.y == pytest.approx(480.0)


def test_box_mapping_scales_and_offsets() -> None:
    rect = map_to_display(SourceBox(100, 100, 50, 50), 640, 480, 1280, 720)

    assert rect == DisplayRect(x=200.0, y=80.0, width=100.0, height=100.0)


@pytest.mark.parametrize(
    "dims",
    [(0, 480, 1280, 720), (640, 0, 1280, 720), (640, 480, 0, 720), (640, 480, 1280, -1)],
)
def test_degenerate_dimensions_raise(dims) -> None:
    with pytest.raises(FrameNotReadyError):
        cover_scale(*dims)


def test_clamp_keeps_visible_part_of_partial_box() -> None:
    rect = DisplayRect(x=-20.0, y=700.0, width=100.0, height=50.0)

    assert clamp_to_display(rect, 1280, 720) == DisplayRect(x=0.0, y=700.0, width=80.0, height=20.0)


def test_clamp_collapses_box_outside_display() -> None:
    clamped = clamp_to_display(DisplayRect(x=1300.0, y=10.0, width=50.0, height=50.0), 1280, 720)

    assert clamped.x == 1280.0
    assert clamped.width == 0.0
    assert clamped.height == 50.0
