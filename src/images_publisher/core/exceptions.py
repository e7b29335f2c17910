"""Custom exceptions for the images publisher."""

from __future__ import annotations

from typing import Optional


class ImagesPublisherError(Exception):
    """Base exception for all images publisher errors."""


class ValidationError(ImagesPublisherError):
    """Error raised for invalid request input. No network call was made."""


class ImageProcessingError(ImagesPublisherError):
    """Error raised when transforming a single image fails."""


class DecodeError(ImageProcessingError):
    """The source bytes are not a decodable raster image."""


class EncodeError(ImageProcessingError):
    """Encoding the output raster produced no data."""


class RemoteError(ImagesPublisherError):
    """Error raised for failures reported by the hosting API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(RemoteError):
    """The branch, commit or repository does not exist."""


class WriteError(RemoteError):
    """The remote rejected a create or update call."""


class ConflictError(RemoteError):
    """The branch moved and the reference update is not a fast-forward."""


class TransportError(RemoteError):
    """Network failure or timeout talking to the hosting API."""


class BatchError(ImagesPublisherError):
    """A batch stage failed. Wraps the original error."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(str(cause) or type(cause).__name__)
        self.stage = stage
        self.cause = cause
