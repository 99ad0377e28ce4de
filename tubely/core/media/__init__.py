"""
Media ingestion logic.

Contains the video record model, the error taxonomy, key generation,
aspect ratio classification and the ingestion pipeline.
"""

from .classifier import (
    AspectClassifier,
    Probe,
    ProbeResult,
    classify_aspect_ratio,
    parse_probe_output,
)
from .errors import (
    InvalidIdentifierError,
    MalformedMultipartError,
    MetadataPersistError,
    MissingContentTypeError,
    ProbeFailureError,
    StorageWriteError,
    UnauthenticatedError,
    UnauthorizedError,
    UnsupportedMediaTypeError,
    UploadError,
    VideoNotFoundError,
)
from .ingest import AssetIngestor, StorageWriter, VideoStore, ensure_owner, link_locator
from .keys import extension_for, generate_key
from .models import (
    THUMBNAIL_MEDIA_TYPES,
    VIDEO_MEDIA_TYPES,
    AspectBucket,
    CachedAsset,
    ExtractedUpload,
    LocatorField,
    StorageStrategy,
    Video,
)

__all__ = [
    "AspectClassifier",
    "Probe",
    "ProbeResult",
    "classify_aspect_ratio",
    "parse_probe_output",
    "InvalidIdentifierError",
    "MalformedMultipartError",
    "MetadataPersistError",
    "MissingContentTypeError",
    "ProbeFailureError",
    "StorageWriteError",
    "UnauthenticatedError",
    "UnauthorizedError",
    "UnsupportedMediaTypeError",
    "UploadError",
    "VideoNotFoundError",
    "AssetIngestor",
    "StorageWriter",
    "VideoStore",
    "ensure_owner",
    "link_locator",
    "extension_for",
    "generate_key",
    "THUMBNAIL_MEDIA_TYPES",
    "VIDEO_MEDIA_TYPES",
    "AspectBucket",
    "CachedAsset",
    "ExtractedUpload",
    "LocatorField",
    "StorageStrategy",
    "Video",
]
