"""
Error kinds raised by the capture provider, the two service clients and the
session machine.

Nothing here is fatal: the session machine converts capture and transport
errors into a stage revert plus a user-facing message.
"""

from enum import Enum
from typing import Optional


class PantryVisionError(Exception):
    """Base class for all pantry_vision errors."""


class CaptureFailure(str, Enum):
    CANCELLED = "cancelled"
    DEVICE_UNAVAILABLE = "device_unavailable"
    FRAME_UNAVAILABLE = "frame_unavailable"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    EMPTY_IMAGE = "empty_image"
    UNREADABLE = "unreadable"


class CaptureError(PantryVisionError):
    def __init__(self, reason: CaptureFailure, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)


class CaptureCancelled(CaptureError):
    """The user backed out of the camera or file picker."""

    def __init__(self, detail: str = ""):
        super().__init__(CaptureFailure.CANCELLED, detail)


class ServiceError(PantryVisionError):
    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.detail = detail
        self.status_code = status_code
        message = f"{detail} (HTTP {status_code})" if status_code is not None else detail
        super().__init__(message)


class AnalysisError(ServiceError):
    """Transport or service failure while analyzing an image."""


class GenerationError(ServiceError):
    """Transport or service failure while generating a recipe."""


class SessionValidationError(PantryVisionError):
    """An intent was sent that the current stage does not allow."""
