"""Picamera2-backed live camera used as the detection overlay's frame source."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from core.logging import logger


def _require_camera_deps() -> tuple[Any, Any]:
    import importlib
    import importlib.util

    if importlib.util.find_spec("picamera2") is None:
        raise RuntimeError("picamera2 is required for CameraController")
    if importlib.util.find_spec("numpy") is None:
        raise RuntimeError("numpy is required for CameraController")

    picamera2 = importlib.import_module("picamera2")
    numpy = importlib.import_module("numpy")
    return picamera2.Picamera2, numpy


def _load_imx500_device(model: str) -> Any:
    import importlib

    imx500_module = importlib.import_module("picamera2.devices.imx500")
    return imx500_module.IMX500(model)


@dataclass(frozen=True)
class CameraSettings:
    """Camera stream settings."""

    main_width: int = 1280
    main_height: int = 720
    imx500_model: str | None = None

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CameraSettings":
        camera_cfg = config.get("camera") or {}
        imx500_cfg = config.get("imx500") or {}
        model = imx500_cfg.get("model")
        return cls(
            main_width=int(camera_cfg.get("main_width", 1280)),
            main_height=int(camera_cfg.get("main_height", 720)),
            imx500_model=str(model) if model else None,
        )


class CameraController:
    """Singleton wrapper around the Picamera2 main stream.

    When an IMX500 model is configured the sensor device is loaded first, since
    the network firmware has to be in place before the camera is opened.
    """

    _instance: "CameraController | None" = None

    def __init__(self, settings: CameraSettings | None = None) -> None:
        if CameraController._instance is not None:
            raise RuntimeError("You cannot create another CameraController class")

        if settings is None:
            from config import ConfigController

            settings = CameraSettings.from_config(ConfigController.get_instance().get_config())
        self.settings = settings

        Picamera2, numpy = _require_camera_deps()
        self._np = numpy
        self._lock = threading.Lock()
        self._frame_id = 0
        self._started = False

        self.imx500 = None
        if settings.imx500_model:
            self.imx500 = _load_imx500_device(settings.imx500_model)
            self.picam2 = Picamera2(self.imx500.camera_num)
        else:
            self.picam2 = Picamera2()

        self._main_size = (settings.main_width, settings.main_height)
        self.camera_configuration = self.picam2.create_preview_configuration(
            main={"size": self._main_size, "format": "RGB888"},
            buffer_count=4,
        )
        self.picam2.configure(self.camera_configuration)
        self.start()

        CameraController._instance = self

    @classmethod
    def get_instance(cls) -> "CameraController":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def native_size(self) -> tuple[int, int]:
        return self._main_size

    @property
    def frame_id(self) -> int:
        with self._lock:
            return self._frame_id

    def start(self) -> None:
        if self._started:
            return
        self.picam2.start()
        self._started = True
        logger.info("[CAMERA] started main stream at %sx%s", *self._main_size)

    def stop(self) -> None:
        if not self._started:
            return
        self.picam2.stop()
        self._started = False
        logger.info("[CAMERA] stopped")

    def close(self) -> None:
        self.stop()
        self.picam2.close()
        CameraController._instance = None

    def is_ready(self) -> bool:
        return self._started

    def capture_array(self) -> Any:
        """Return the current main-stream frame as an RGB ``HxWx3`` array."""

        frame = self.picam2.capture_array("main")
        # RGB888 is delivered in BGR byte order.
        frame = frame[:, :, ::-1]
        with self._lock:
            self._frame_id += 1
        return self._np.ascontiguousarray(frame)

    def capture_metadata(self) -> dict[str, Any]:
        metadata = self.picam2.capture_metadata()
        return metadata if isinstance(metadata, dict) else {}
