"""IMX500 on-sensor detector adapter producing source-pixel detections."""

from __future__ import annotations

import json
import math
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.logging import logger
from vision.detections import DetectorFrame, RawDetection, SourceBox

_LABEL_KEYS = ("label", "class_name", "categoryName", "category", "class", "name")
_BBOX_KEYS = ("bbox", "box", "rect", "rectangle")
_MAPPING_FIELDS = _LABEL_KEYS + _BBOX_KEYS + (
    "score",
    "confidence",
    "x",
    "y",
    "w",
    "h",
    "width",
    "height",
    "xmin",
    "ymin",
    "xmax",
    "ymax",
)


@dataclass(frozen=True)
class Imx500Settings:
    """Settings for turning IMX500 outputs into detections."""

    min_confidence: float = 0.45
    labels: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "Imx500Settings":
        section = config.get("imx500") or {}
        labels_file = section.get("labels_file")
        labels = load_labels(labels_file) if labels_file else ()
        return cls(
            min_confidence=float(section.get("min_confidence", 0.45)),
            labels=labels,
        )


def load_labels(path: str | Path) -> tuple[str, ...]:
    """Read one label per line, keeping blank entries so class indices stay aligned."""

    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return tuple(line.strip() for line in lines)


def _to_finite_float(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _to_mapping(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, dict):
        return raw

    mapping: dict[str, Any] = {}
    for field in _MAPPING_FIELDS:
        if hasattr(raw, field):
            mapping[field] = getattr(raw, field)
    return mapping or None


def _extract_confidence(payload: dict[str, Any]) -> float:
    confidence = _to_finite_float(payload.get("score", payload.get("confidence", 0.0)))
    if confidence is None:
        return 0.0
    return max(0.0, min(1.0, confidence))


def resolve_label(value: Any, labels: Sequence[str] = ()) -> str | None:
    """Return a class name, mapping integer class indices through ``labels``."""

    if value is None:
        return None
    if not isinstance(value, str):
        index = _to_finite_float(value)
        if index is None:
            return None
        position = int(index)
        if not 0 <= position < len(labels):
            return None
        value = labels[position]
    label = value.strip()
    if not label or label == "-":
        return None
    return label


def _extract_label(payload: dict[str, Any], labels: Sequence[str]) -> str | None:
    for key in _LABEL_KEYS:
        if key in payload:
            return resolve_label(payload[key], labels)
    return None


def _extract_bbox(payload: dict[str, Any]) -> tuple[float, float, float, float] | None:
    raw_bbox = None
    for key in _BBOX_KEYS:
        if key in payload:
            raw_bbox = payload[key]
            break

    if isinstance(raw_bbox, dict):
        return _extract_bbox({k: v for k, v in raw_bbox.items() if k not in _BBOX_KEYS} | _origin_aliases(raw_bbox))

    if isinstance(raw_bbox, (list, tuple)) and len(raw_bbox) >= 4:
        values = [_to_finite_float(item) for item in raw_bbox[:4]]
        if None in values:
            return None
        x, y, w, h = values
        return x, y, w, h

    if {"xmin", "ymin", "xmax", "ymax"}.issubset(payload.keys()):
        xmin = _to_finite_float(payload["xmin"])
        ymin = _to_finite_float(payload["ymin"])
        xmax = _to_finite_float(payload["xmax"])
        ymax = _to_finite_float(payload["ymax"])
        if None in (xmin, ymin, xmax, ymax):
            return None
        return xmin, ymin, xmax - xmin, ymax - ymin

    if "x" not in payload or "y" not in payload:
        return None
    x = _to_finite_float(payload["x"])
    y = _to_finite_float(payload["y"])
    w = _to_finite_float(payload.get("w", payload.get("width")))
    h = _to_finite_float(payload.get("h", payload.get("height")))
    if None in (x, y, w, h):
        return None
    return x, y, w, h


def _origin_aliases(box: dict[str, Any]) -> dict[str, Any]:
    aliases = {}
    if "originX" in box:
        aliases["x"] = box["originX"]
    if "originY" in box:
        aliases["y"] = box["originY"]
    return aliases


def parse_raw_detection(
    raw: Any,
    source_size: tuple[int, int],
    labels: Sequence[str] = (),
    min_confidence: float = 0.0,
) -> RawDetection | None:
    """Convert one detector payload into a :class:`RawDetection` in source pixels.

    Boxes whose extent fits inside the unit square are treated as normalized and
    scaled by ``source_size``. Payloads without a usable box or below
    ``min_confidence`` are dropped.
    """

    payload = _to_mapping(raw)
    if payload is None:
        return None

    confidence = _extract_confidence(payload)
    if confidence < min_confidence:
        return None

    bbox = _extract_bbox(payload)
    if bbox is None:
        return None
    x, y, w, h = bbox
    if w < 0 or h < 0:
        return None

    if max(x + w, y + h) <= 1.0:
        source_width, source_height = source_size
        x, w = x * source_width, w * source_width
        y, h = y * source_height, h * source_height

    return RawDetection(
        label=_extract_label(payload, labels),
        confidence=confidence,
        box=SourceBox(origin_x=x, origin_y=y, width=w, height=h),
    )


def parse_raw_detections(
    items: Iterable[Any],
    source_size: tuple[int, int],
    labels: Sequence[str] = (),
    min_confidence: float = 0.0,
) -> list[RawDetection]:
    detections: list[RawDetection] = []
    for raw in items:
        detection = parse_raw_detection(raw, source_size, labels, min_confidence)
        if detection is not None:
            detections.append(detection)
    return detections


class StaticDetector:
    """Detector that replays a fixed list of detections for a still image."""

    def __init__(self, detections: Sequence[RawDetection], source_size: tuple[int, int]) -> None:
        self._frame = DetectorFrame(
            detections=tuple(detections),
            source_width=source_size[0],
            source_height=source_size[1],
            frame_id=0,
        )

    @classmethod
    def from_json_file(
        cls,
        path: str | Path,
        source_size: tuple[int, int],
        min_confidence: float = 0.0,
    ) -> "StaticDetector":
        items = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(items, dict):
            items = items.get("detections", [])
        if not isinstance(items, list):
            raise ValueError(f"Detections file {path} must contain a list")
        return cls(parse_raw_detections(items, source_size, min_confidence=min_confidence), source_size)

    def detect(self) -> DetectorFrame:
        return self._frame


class Imx500Detector:
    """Reads IMX500 network outputs attached to each camera frame."""

    def __init__(self, camera: Any, settings: Imx500Settings | None = None) -> None:
        if getattr(camera, "imx500", None) is None:
            raise RuntimeError("Imx500Detector requires a camera opened with an IMX500 model")
        self.camera = camera
        self.settings = settings or Imx500Settings()
        self._labels = self.settings.labels or self._network_labels()
        self._last_frame_id: int | None = None
        self._last_status_log = 0.0
        logger.info(
            "[IMX500] detector ready (%s labels, min confidence %.2f)",
            len(self._labels),
            self.settings.min_confidence,
        )

    def _network_labels(self) -> tuple[str, ...]:
        intrinsics = getattr(self.camera.imx500, "network_intrinsics", None)
        labels = getattr(intrinsics, "labels", None)
        if not labels:
            logger.warning("[IMX500] model has no labels; detections will be unlabelled")
            return ()
        return tuple(str(label) for label in labels)

    def detect(self) -> DetectorFrame | None:
        """Return the detections for the newest frame, or ``None`` when nothing new is available."""

        metadata = self.camera.capture_metadata()
        frame_id = metadata.get("SensorTimestamp")
        if isinstance(frame_id, (int, float)):
            frame_id = int(frame_id)
            if frame_id == self._last_frame_id:
                return None
            self._last_frame_id = frame_id
        else:
            frame_id = None

        imx500 = self.camera.imx500
        outputs = imx500.get_outputs(metadata, add_batch=True)
        if outputs is None:
            self._log_waiting()
            return None

        boxes, scores, classes = outputs[0][0], outputs[1][0], outputs[2][0]
        detections: list[RawDetection] = []
        for box, score, class_index in zip(boxes, scores, classes):
            confidence = _to_finite_float(score)
            if confidence is None or confidence < self.settings.min_confidence:
                continue
            x, y, w, h = imx500.convert_inference_coords(box, metadata, self.camera.picam2)
            detections.append(
                RawDetection(
                    label=resolve_label(class_index, self._labels),
                    confidence=min(1.0, confidence),
                    box=SourceBox(origin_x=float(x), origin_y=float(y), width=float(w), height=float(h)),
                )
            )

        source_width, source_height = self.camera.native_size
        return DetectorFrame(
            detections=tuple(detections),
            source_width=source_width,
            source_height=source_height,
            frame_id=frame_id,
        )

    def _log_waiting(self) -> None:
        now = time.monotonic()
        if now - self._last_status_log >= 15.0:
            self._last_status_log = now
            logger.info("[IMX500] waiting for network outputs")
