"""Tests for the IMX500 detector adapter and payload parsing."""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from hardware.imx500_detector import (
    Imx500Detector,
    Imx500Settings,
    StaticDetector,
    load_labels,
    parse_raw_detection,
    parse_raw_detections,
    resolve_label,
)
from vision.detections import SourceBox


def test_parse_pixel_bbox_list() -> None:
    detection = parse_raw_detection({"label": "person", "score": 0.8, "bbox": [10, 20, 30, 40]}, (640, 480))

    assert detection.label == "person"
    assert detection.confidence == 0.8
    assert detection.box == SourceBox(10, 20, 30, 40)


def test_parse_normalized_corners_scales_to_source_pixels() -> None:
    detection = parse_raw_detection(
        {"class_name": "dog", "confidence": 0.7, "xmin": 0.25, "ymin": 0.5, "xmax": 0.75, "ymax": 1.0},
        (640, 480),
    )

    assert detection.box == SourceBox(160.0, 240.0, 320.0, 240.0)


def test_parse_attribute_objects_and_origin_boxes() -> None:
    raw = SimpleNamespace(categoryName="cat", score=0.9, box={"originX": 5, "originY": 6, "width": 70, "height": 80})

    detection = parse_raw_detection(raw, (640, 480))

    assert detection.label == "cat"
    assert detection.box == SourceBox(5, 6, 70, 80)


def test_parse_drops_low_confidence_and_missing_boxes() -> None:
    assert parse_raw_detection({"label": "cat", "score": 0.2, "bbox": [1, 2, 3, 4]}, (10, 10), min_confidence=0.5) is None
    assert parse_raw_detection({"label": "cat", "score": 0.9}, (10, 10)) is None
    assert parse_raw_detection({"label": "cat", "score": 0.9, "bbox": [1, "x", 3, 4]}, (10, 10)) is None


def test_missing_label_is_kept_as_none() -> None:
    detection = parse_raw_detection({"score": 0.9, "x": 10, "y": 10, "w": 20, "h": 20}, (640, 480))

    assert detection is not None
    assert detection.label is None


def test_resolve_label_maps_indices_and_placeholders() -> None:
    labels = ("person", "-", "car")

    assert resolve_label(0, labels) == "person"
    assert resolve_label(2.0, labels) == "car"
    assert resolve_label(1, labels) is None
    assert resolve_label(9, labels) is None
    assert resolve_label("  dog ", labels) == "dog"


def test_load_labels_keeps_line_positions(tmp_path) -> None:
    path = tmp_path / "labels.txt"
    path.write_text("person\n\ncar\n", encoding="utf-8")

    assert load_labels(path) == ("person", "", "car")
    settings = Imx500Settings.from_config({"imx500": {"labels_file": str(path), "min_confidence": 0.6}})
    assert settings.labels == ("person", "", "car")
    assert settings.min_confidence == 0.6


def test_static_detector_reads_json_file(tmp_path) -> None:
    path = tmp_path / "detections.json"
    path.write_text(
        json.dumps(
            {
                "detections": [
                    {"categoryName": "dog", "score": 0.9, "x": 10, "y": 10, "width": 50, "height": 60},
                    {"categoryName": "cat", "score": 0.1, "x": 10, "y": 10, "width": 50, "height": 60},
                ]
            }
        ),
        encoding="utf-8",
    )

    frame = StaticDetector.from_json_file(path, (640, 480), min_confidence=0.5).detect()

    assert [det.label for det in frame.detections] == ["dog"]
    assert (frame.source_width, frame.source_height) == (640, 480)


class FakeImx500:
    def __init__(self, outputs) -> None:
        self.outputs = outputs
        self.network_intrinsics = SimpleNamespace(labels=["person", "dog"])

    def get_outputs(self, metadata, add_batch=False):
        return self.outputs

    def convert_inference_coords(self, box, metadata, picam2):
        return tuple(value * 10 for value in box)


class FakeCamera:
    def __init__(self, imx500, timestamps) -> None:
        self.imx500 = imx500
        self.picam2 = object()
        self.native_size = (1280, 720)
        self._timestamps = list(timestamps)

    def capture_metadata(self):
        return {"SensorTimestamp": self._timestamps.pop(0)}


def test_imx500_detector_converts_outputs() -> None:
    outputs = ([[(1, 2, 3, 4), (5, 6, 7, 8), (0, 0, 1, 1)]], [[0.9, 0.8, 0.1]], [[0, 1, 0]])
    detector = Imx500Detector(FakeCamera(FakeImx500(outputs), [100]), Imx500Settings(min_confidence=0.5))

    frame = detector.detect()

    assert [det.label for det in frame.detections] == ["person", "dog"]
    assert frame.detections[0].box == SourceBox(10.0, 20.0, 30.0, 40.0)
    assert (frame.source_width, frame.source_height, frame.frame_id) == (1280, 720, 100)


def test_imx500_detector_skips_repeated_frames_and_missing_outputs() -> None:
    outputs = ([[(1, 2, 3, 4)]], [[0.9]], [[0]])
    detector = Imx500Detector(FakeCamera(FakeImx500(outputs), [100, 100, 200]))

    assert detector.detect() is not None
    assert detector.detect() is None

    detector.camera.imx500.outputs = None
    assert detector.detect() is None


def test_imx500_detector_requires_device() -> None:
    with pytest.raises(RuntimeError):
        Imx500Detector(SimpleNamespace(imx500=None))


def test_parse_many_preserves_order() -> None:
    items = [{"label": "a", "score": 1, "bbox": [0, 0, 5, 5]}, "junk", {"label": "b", "score": 1, "bbox": [1, 1, 5, 5]}]

    assert [det.label for det in parse_raw_detections(items, (10, 10))] == ["a", "b"]
