"""
Error taxonomy for the upload pipeline.

Every failure a request can end with is one of these. Each carries the
HTTP status it maps to and a message that is safe to show the caller;
the underlying cause is chained with ``raise ... from`` and only logged.
"""

from typing import Optional


class UploadError(Exception):
    """Base class for all upload pipeline failures."""

    status_code: int = 500
    message: str = "Upload failed"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidIdentifierError(UploadError):
    status_code = 400
    message = "Invalid video ID"


class UnauthenticatedError(UploadError):
    status_code = 401
    message = "Couldn't validate credentials"


class UnauthorizedError(UploadError):
    status_code = 401
    message = "User is not the owner of the video"


class VideoNotFoundError(UploadError):
    status_code = 404
    message = "Video not found"


class MalformedMultipartError(UploadError):
    status_code = 400
    message = "Unable to parse multipart form"


class MissingContentTypeError(UploadError):
    status_code = 400
    message = "Content type not specified"


class UnsupportedMediaTypeError(UploadError):
    status_code = 400
    message = "Unsupported media type"


class ProbeFailureError(UploadError):
    """The media probe could not report the video's dimensions."""
    status_code = 500
    message = "Unable to determine video aspect ratio"


class StorageWriteError(UploadError):
    status_code = 500
    message = "Unable to store asset"


class MetadataPersistError(UploadError):
    """
    The asset was stored but the record could not be updated.

    The stored object is left in place. Its random key means nothing
    else will ever reference it.
    """
    status_code = 500
    message = "Unable to update video"
