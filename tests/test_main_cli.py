"""Tests for the command-line entry point."""

from __future__ import annotations

import asyncio
import json

import pytest
from PIL import Image

import main


def test_parse_args_reads_live_options() -> None:
    args = main.parse_args(["--object-filter", "pet", "--interval", "10", "--download", "--display-size", "800x600"])

    assert args.object_filter == "pet"
    assert args.interval == 10
    assert args.download
    assert args.display_size == (800, 600)
    assert args.image is None


def test_parse_args_rejects_unknown_filter() -> None:
    with pytest.raises(SystemExit):
        main.parse_args(["--object-filter", "boat"])


def test_static_image_run_analyzes_and_saves(tmp_path) -> None:
    image_path = tmp_path / "still.jpg"
    Image.new("RGB", (640, 480), "white").save(image_path)
    detections_path = tmp_path / "detections.json"
    detections_path.write_text(
        json.dumps([{"categoryName": "person", "score": 0.9, "x": 100, "y": 100, "width": 50, "height": 80}]),
        encoding="utf-8",
    )
    captures = tmp_path / "captures"
    config = {"storage": {"artifact_dir": str(captures)}, "reasoning": {"provider": "null"}}
    args = main.parse_args(["--image", str(image_path), "--detections", str(detections_path), "--download"])

    exit_code = asyncio.run(main.run_static(config, args))

    assert exit_code == 0
    saved = sorted(path.name.split("-", 1)[0] for path in captures.iterdir())
    assert saved == ["annotated", "detection", "raw"]
    payload = json.loads(next(captures.glob("detection-*.json")).read_text(encoding="utf-8"))
    assert payload["detections"][0]["categoryName"] == "person"
