"""Local persistence of capture artifacts (raw image, annotated image, detection JSON)."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
import re
from typing import Any

from PIL import Image

from core.logging import logger


def file_stamp(timestamp_iso: str) -> str:
    """Turn an ISO-8601 timestamp into a filename-safe stamp without fractions."""

    stamp = re.sub(r"[:.]", "-", timestamp_iso)
    match = re.match(r"^(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2})", stamp)
    return match.group(1) if match else stamp


@dataclass(frozen=True)
class CaptureArtifacts:
    """Paths written for one capture."""

    raw_image: Path
    annotated_image: Path | None
    detections_json: Path


class CaptureArtifactStore:
    """Writes capture artifacts under a single directory."""

    def __init__(self, base_dir: Path, jpeg_quality: int = 95) -> None:
        self.base_dir = Path(base_dir).expanduser()
        self.jpeg_quality = jpeg_quality

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CaptureArtifactStore":
        storage_cfg = config.get("storage") or {}
        capture_cfg = config.get("capture") or {}
        return cls(
            base_dir=Path(storage_cfg.get("artifact_dir", "./var/captures")),
            jpeg_quality=int(capture_cfg.get("jpeg_quality", 95)),
        )

    def save(
        self,
        timestamp_iso: str,
        raw_image: Image.Image,
        payload: dict[str, Any],
        annotated_image: Image.Image | None = None,
    ) -> CaptureArtifacts:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        stamp = self._free_stamp(file_stamp(timestamp_iso))

        raw_path = self.base_dir / f"raw-{stamp}.jpg"
        raw_image.save(raw_path, format="JPEG", quality=self.jpeg_quality)

        annotated_path = None
        if annotated_image is not None:
            annotated_path = self.base_dir / f"annotated-{stamp}.jpg"
            annotated_image.save(annotated_path, format="JPEG", quality=self.jpeg_quality)

        json_path = self.base_dir / f"detection-{stamp}.json"
        with json_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)

        logger.info("[CAPTURE] saved artifacts %s", raw_path.name)
        return CaptureArtifacts(raw_image=raw_path, annotated_image=annotated_path, detections_json=json_path)

    def _free_stamp(self, stamp: str) -> str:
        """Suffix ``-1``, ``-2``, ... when a capture from the same second already exists."""

        candidate = stamp
        index = 0
        while (self.base_dir / f"raw-{candidate}.jpg").exists() or (
            self.base_dir / f"detection-{candidate}.json"
        ).exists():
            index += 1
            candidate = f"{stamp}-{index}"
        return candidate
