"""Frame sources for capture: a live camera handle or a static image buffer."""

from __future__ import annotations

from dataclasses import dataclass
import io
from pathlib import Path
from typing import Any, Protocol, Union

from PIL import Image

from vision.detections import FrameNotReadyError, Viewport


class FrameCamera(Protocol):
    """Camera surface needed to snapshot frames."""

    @property
    def native_size(self) -> tuple[int, int]: ...

    def is_ready(self) -> bool: ...

    def capture_array(self) -> Any: ...


@dataclass(frozen=True)
class LiveFrameHandle:
    """Live camera frames shown in a display of ``display_size``."""

    camera: FrameCamera
    display_size: tuple[int, int]

    @property
    def native_size(self) -> tuple[int, int]:
        return self.camera.native_size

    def snapshot(self) -> Image.Image:
        """Grab the current frame at native resolution."""

        if not self.camera.is_ready():
            raise FrameNotReadyError("Camera not ready")
        width, height = self.native_size
        if not width or not height:
            raise FrameNotReadyError("Video dimensions not available")
        frame = self.camera.capture_array()
        return Image.fromarray(frame).convert("RGB")


@dataclass(frozen=True)
class StaticImageBuffer:
    """Still image, optionally shown in a display of a different size."""

    image: Image.Image
    display_size: tuple[int, int] | None = None

    @property
    def native_size(self) -> tuple[int, int]:
        return self.image.size

    def snapshot(self) -> Image.Image:
        if not self.image.width or not self.image.height:
            raise FrameNotReadyError("Image dimensions not available")
        return self.image.convert("RGB")


FrameSource = Union[LiveFrameHandle, StaticImageBuffer]


def display_size_of(source: FrameSource) -> tuple[int, int]:
    if source.display_size is None:
        return source.native_size
    return source.display_size


def viewport_for(source: FrameSource) -> Viewport:
    source_width, source_height = source.native_size
    display_width, display_height = display_size_of(source)
    return Viewport(
        source_width=source_width,
        source_height=source_height,
        display_width=display_width,
        display_height=display_height,
    )


def load_static_image(path: Path, display_size: tuple[int, int] | None = None) -> StaticImageBuffer:
    """Load an image file fully into memory."""

    with Image.open(path) as image:
        image.load()
        return StaticImageBuffer(image=image.convert("RGB"), display_size=display_size)


def encode_jpeg(image: Image.Image, quality: int = 95) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()
