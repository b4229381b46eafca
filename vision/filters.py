"""Object-type filtering for detections and the watched-class presence signal."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from vision.detections import DetectionRecord, RawDetection


ALL_OBJECTS = "all"

OBJECT_TYPE_MAP: dict[str, tuple[str, ...]] = {
    "person": ("person", "human"),
    "pet": ("dog", "cat", "bird"),
    "car": ("car", "truck", "bus", "motorcycle"),
}

OBJECT_TYPE_OPTIONS: tuple[tuple[str, str], ...] = (
    (ALL_OBJECTS, "All Objects"),
    ("person", "Person"),
    ("pet", "Pet"),
    ("car", "Car"),
)


def is_known_filter(filter_type: str) -> bool:
    return filter_type == ALL_OBJECTS or filter_type in OBJECT_TYPE_MAP


def label_matches(label: str | None, filter_type: str) -> bool:
    """Return whether a class label belongs to the given object type."""

    if not label:
        return False
    if filter_type == ALL_OBJECTS:
        return True
    allowed = OBJECT_TYPE_MAP.get(filter_type, ())
    lowered = label.lower()
    return any(kind in lowered for kind in allowed)


def filter_detections(detections: Iterable[RawDetection], filter_type: str) -> list[RawDetection]:
    """Keep detections matching the object type; ``all`` keeps everything."""

    if filter_type == ALL_OBJECTS:
        return list(detections)
    return [det for det in detections if label_matches(det.label, filter_type)]


def is_selected_type_detected(records: Sequence[DetectionRecord], filter_type: str) -> bool:
    """Return the presence flag consumed by the presence tracker."""

    if filter_type == ALL_OBJECTS:
        return len(records) > 0
    return any(label_matches(record.category_name, filter_type) for record in records)
