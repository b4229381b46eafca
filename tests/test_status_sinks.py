"""Tests for console and preview status sinks."""

from __future__ import annotations

from PIL import Image

from capture.frames import StaticImageBuffer
from interaction.status import ConsoleStatusSink, PreviewStatusSink
from vision.detections import DetectionRecord, SourceBox


def test_console_sink_tracks_status_and_last_response() -> None:
    sink = ConsoleStatusSink()

    sink.set_status("Detection active")
    sink.show_response("Error: boom", True)

    assert sink.status == "Detection active"
    assert sink.last_response == ("Error: boom", True)


def test_preview_sink_writes_composed_frame(tmp_path) -> None:
    target = tmp_path / "preview" / "latest.jpg"
    source = StaticImageBuffer(Image.new("RGB", (64, 48)), display_size=(32, 32))
    sink = PreviewStatusSink(source, target, min_interval_s=60.0)
    record = DetectionRecord("dog", 0.9, 4, 4, 20, 20, SourceBox(8, 8, 40, 40))

    sink.draw([record])

    with Image.open(target) as written:
        assert written.size == (32, 32)

    target.unlink()
    sink.draw([record])
    assert not target.exists()


def test_preview_write_failure_is_logged_not_raised(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    source = StaticImageBuffer(Image.new("RGB", (64, 48)), display_size=(32, 32))
    sink = PreviewStatusSink(source, blocker / "latest.jpg")

    sink.draw([])

    assert not (blocker / "latest.jpg").exists()
