"""Tests for object-type filtering."""

from __future__ import annotations

from vision.detections import DetectionRecord, RawDetection, SourceBox
from vision.filters import (
    filter_detections,
    is_known_filter,
    is_selected_type_detected,
    label_matches,
)


def _raw(label: str | None) -> RawDetection:
    return RawDetection(label=label, confidence=0.8, box=SourceBox(0, 0, 10, 10))


def _record(label: str) -> DetectionRecord:
    return DetectionRecord(label, 0.8, 0, 0, 10, 10, SourceBox(0, 0, 10, 10))


def test_label_matching_uses_case_insensitive_substrings() -> None:
    assert label_matches("Person", "person")
    assert label_matches("hot dog", "pet")
    assert label_matches("pickup truck", "car")
    assert not label_matches("bicycle", "car")
    assert not label_matches(None, "all")
    assert label_matches("bicycle", "all")


def test_filter_detections_keeps_matching_types_in_order() -> None:
    detections = [_raw("dog"), _raw("person"), _raw("cat")]

    kept = filter_detections(detections, "pet")

    assert [det.label for det in kept] == ["dog", "cat"]
    assert filter_detections(detections, "all") == detections


def test_presence_flag_for_all_means_anything_drawn() -> None:
    assert is_selected_type_detected([_record("bicycle")], "all")
    assert not is_selected_type_detected([], "all")


def test_presence_flag_for_specific_type() -> None:
    assert is_selected_type_detected([_record("bus")], "car")
    assert not is_selected_type_detected([_record("person")], "car")


def test_known_filters() -> None:
    assert is_known_filter("all")
    assert is_known_filter("pet")
    assert not is_known_filter("boat")
