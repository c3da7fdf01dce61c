import asyncio
from abc import ABC, abstractmethod
import logging
import mimetypes
import os
from pathlib import Path
from typing import Any, Optional

import cv2

from pantry_vision.errors import CaptureCancelled, CaptureError, CaptureFailure
from pantry_vision.schema import CapturedImage

logger = logging.getLogger(__name__)

CAMERA_FILENAME = "camera-photo.jpg"
CAMERA_CONTENT_TYPE = "image/jpeg"


class CaptureProvider(ABC):
    @abstractmethod
    async def acquire_from_camera(self) -> CapturedImage:
        """Grab one still frame from the live camera."""

    @abstractmethod
    async def acquire_from_file(self, selection: Any) -> CapturedImage:
        """Read an image the user picked. A None selection means the picker was dismissed."""


class OpenCVCaptureProvider(CaptureProvider):
    def __init__(self, camera_index: int = 0):
        self.camera_index = camera_index

    async def acquire_from_camera(self) -> CapturedImage:
        # The grab itself is synchronous; keep it off the event loop.
        data = await asyncio.to_thread(self._grab_frame)
        return CapturedImage(data=data, filename=CAMERA_FILENAME, content_type=CAMERA_CONTENT_TYPE)

    def _grab_frame(self) -> bytes:
        cam = cv2.VideoCapture(self.camera_index)
        try:
            if not cam.isOpened():
                raise CaptureError(
                    CaptureFailure.DEVICE_UNAVAILABLE,
                    f"camera {self.camera_index} could not be opened",
                )
            ok, frame = cam.read()
            if not ok or frame is None:
                raise CaptureError(CaptureFailure.FRAME_UNAVAILABLE, "camera returned no frame")
            ok, encoded = cv2.imencode(".jpg", frame)
            if not ok:
                raise CaptureError(CaptureFailure.FRAME_UNAVAILABLE, "frame could not be encoded as JPEG")
            return encoded.tobytes()
        finally:
            cam.release()

    async def acquire_from_file(self, selection: Any) -> CapturedImage:
        if selection is None or selection == "":
            raise CaptureCancelled("no file selected")
        if isinstance(selection, (str, os.PathLike)):
            return await asyncio.to_thread(self._read_path, Path(selection))
        return self._read_buffer(selection)

    def _read_path(self, path: Path) -> CapturedImage:
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise CaptureError(CaptureFailure.NOT_FOUND, str(path)) from exc
        except PermissionError as exc:
            raise CaptureError(CaptureFailure.PERMISSION_DENIED, str(path)) from exc
        except IsADirectoryError as exc:
            raise CaptureError(CaptureFailure.NOT_FOUND, f"{path} is a directory") from exc
        except (OSError, ValueError) as exc:
            raise CaptureError(CaptureFailure.UNREADABLE, f"{path}: {getattr(exc, 'strerror', None) or exc}") from exc
        return _build_image(data, path.name, None)

    def _read_buffer(self, buffer: Any) -> CapturedImage:
        # Upload widgets hand back objects with name/type and getvalue() or read().
        if hasattr(buffer, "getvalue"):
            reader = buffer.getvalue
        elif hasattr(buffer, "read"):
            reader = buffer.read
        else:
            raise CaptureError(CaptureFailure.UNREADABLE, f"unsupported file selection: {type(buffer).__name__}")
        try:
            data = reader()
        except (OSError, ValueError) as exc:
            raise CaptureError(CaptureFailure.UNREADABLE, f"upload could not be read: {exc}") from exc
        if not isinstance(data, (bytes, bytearray)):
            raise CaptureError(CaptureFailure.UNREADABLE, f"upload returned {type(data).__name__}, not bytes")
        name = os.path.basename(getattr(buffer, "name", "") or "upload")
        return _build_image(data, name, getattr(buffer, "type", None))


def _build_image(data: bytes, filename: str, content_type: Optional[str]) -> CapturedImage:
    if not data:
        raise CaptureError(CaptureFailure.EMPTY_IMAGE, f"{filename} is empty")
    if not content_type:
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    logger.info("Captured %s (%s, %d bytes)", filename, content_type, len(data))
    return CapturedImage(data=data, filename=filename, content_type=content_type)
