"""Command-line entry point for the watchframe detection overlay."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from capture.frames import FrameSource, LiveFrameHandle, load_static_image
from capture.pipeline import CaptureAnalysisPipeline, CaptureConfig
from config import ConfigController
from core.logging import enable_file_logging, log_info, logger, set_level
from interaction.status import ConsoleStatusSink, PreviewStatusSink
from services.reasoning import build_reasoning_client
from storage.artifacts import CaptureArtifactStore
from vision.filters import ALL_OBJECTS, OBJECT_TYPE_MAP
from vision.presence import PresenceConfig
from vision.renderer import RenderStyle
from vision.session import DetectionSession, Detector, SessionConfig
from vision.smoothing import SmoothingConfig


def configure_logging(config: dict[str, Any]) -> None:
    """Apply the configured level and optional file logging."""

    set_level(str(config.get("logging_level", "INFO")))
    if config.get("file_logging_enabled", False):
        log_file_path = Path(str(config.get("log_file", "./log/watchframe.log")))
        enable_file_logging(log_file_path)
        logger.info("Writing logs to %s", log_file_path)


def _parse_size(value: str) -> tuple[int, int]:
    try:
        width, height = (int(part) for part in value.lower().split("x", 1))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}") from exc
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("display size must be positive")
    return width, height


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Overlay live object detections and send captures for analysis."
    )
    parser.add_argument("--image", type=Path, help="Analyze a still image instead of the live camera.")
    parser.add_argument(
        "--detections",
        type=Path,
        help="JSON list of detector results (source pixels) to overlay on --image.",
    )
    parser.add_argument(
        "--display-size",
        type=_parse_size,
        help="Display viewport as WIDTHxHEIGHT; defaults to the configured display.",
    )
    parser.add_argument(
        "--object-filter",
        choices=[ALL_OBJECTS, *OBJECT_TYPE_MAP],
        help="Only show and watch this object type.",
    )
    parser.add_argument(
        "--interval",
        type=int,
        help="Automatic capture window in seconds (0 disables).",
    )
    parser.add_argument("--download", action="store_true", help="Save raw, annotated and JSON artifacts.")
    parser.add_argument("--preview", type=Path, help="Write the composed overlay frame to this JPEG path.")
    parser.add_argument("--duration", type=float, help="Stop live detection after this many seconds.")
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    return parser.parse_args(argv)


def build_pipeline(config: dict[str, Any], download: bool) -> CaptureAnalysisPipeline:
    capture_config = CaptureConfig.from_config(config)
    if download:
        capture_config = replace(capture_config, download=True)

    def before_send(image_jpeg: bytes, payload: dict[str, Any]) -> None:
        logger.debug("[CAPTURE] outgoing image %s bytes at %s", len(image_jpeg), payload["timestamp"])

    def after_response(response: dict[str, Any]) -> None:
        logger.debug("[CAPTURE] response keys: %s", ", ".join(sorted(response)))

    return CaptureAnalysisPipeline(
        build_reasoning_client(config),
        artifact_store=CaptureArtifactStore.from_config(config),
        style=RenderStyle.from_config(config),
        config=capture_config,
        before_send=before_send,
        after_response=after_response,
    )


def build_session(
    config: dict[str, Any],
    args: argparse.Namespace,
    detector: Detector,
    frame_source: FrameSource,
) -> DetectionSession:
    style = RenderStyle.from_config(config)
    status = (
        PreviewStatusSink(frame_source, args.preview, style=style)
        if args.preview
        else ConsoleStatusSink()
    )
    session = DetectionSession(
        detector,
        frame_source,
        build_pipeline(config, args.download),
        status=status,
        config=SessionConfig.from_config(config),
        smoothing=SmoothingConfig.from_config(config),
        presence=PresenceConfig.from_config(config),
        style=style,
    )
    if args.object_filter:
        session.set_object_filter(args.object_filter)
    if args.interval is not None:
        session.set_capture_interval(args.interval)
    return session


def _display_size(config: dict[str, Any], args: argparse.Namespace) -> tuple[int, int]:
    if args.display_size:
        return args.display_size
    display_cfg = config.get("display") or {}
    return int(display_cfg.get("width", 1280)), int(display_cfg.get("height", 720))


async def run_static(config: dict[str, Any], args: argparse.Namespace) -> int:
    """Overlay detections on a still image, then run one capture-and-analyze pass."""

    from hardware.imx500_detector import StaticDetector

    frame_source = load_static_image(args.image, args.display_size)
    source_size = frame_source.native_size
    if args.detections:
        min_confidence = float((config.get("imx500") or {}).get("min_confidence", 0.0))
        detector = StaticDetector.from_json_file(args.detections, source_size, min_confidence)
    else:
        detector = StaticDetector([], source_size)

    session = build_session(config, args, detector, frame_source)
    session.start()
    session.tick(0.0)
    task = session.request_capture()
    result = await task if task is not None else None
    session.stop()
    return 0 if result is not None and result.ok else 1


async def run_live(session: DetectionSession, duration: float | None) -> None:
    loop_task = asyncio.create_task(session.run())
    try:
        if duration:
            await asyncio.sleep(duration)
            session.stop()
        await loop_task
    finally:
        session.stop()
        await session.wait_for_captures()


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]

    config = ConfigController.get_instance().get_config()
    configure_logging(config)
    args = parse_args(argv)

    if args.diagnostics:
        from diagnostics.run import main as diagnostics_main

        return diagnostics_main([])

    log_info("watchframe starting", style="bold magenta")

    if args.image:
        try:
            return asyncio.run(run_static(config, args))
        except (OSError, ValueError) as exc:
            logger.error("Static analysis failed: %s", exc)
            return 1

    from hardware import CameraController, Imx500Detector, Imx500Settings

    try:
        logger.info("Starting camera controller...")
        camera = CameraController.get_instance()
        detector = Imx500Detector(camera, Imx500Settings.from_config(config))
    except Exception as exc:
        logger.exception("Camera startup failed: %s", exc)
        return 1

    frame_source = LiveFrameHandle(camera, _display_size(config, args))
    session = build_session(config, args, detector, frame_source)
    try:
        asyncio.run(run_live(session, args.duration))
    except KeyboardInterrupt:
        logger.info("Program terminated by user")
    finally:
        camera.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
