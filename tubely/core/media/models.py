"""
Domain models for media ingestion.

These models describe the video record that owns uploaded assets and the
value types derived while ingesting them. Like the rest of core, they have
no dependency on FastAPI, boto3, or Snowflake.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import BinaryIO, Optional
from uuid import UUID, uuid4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AspectBucket(Enum):
    """
    Coarse classification of a video's frame shape.

    Used as the key prefix for stored videos so that players can pick
    a layout without probing the file again.
    """
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


class LocatorField(Enum):
    """The locator fields of a video record that uploads may replace."""
    THUMBNAIL = "thumbnail_url"
    VIDEO = "video_url"


class StorageStrategy(Enum):
    """Where uploaded bytes end up."""
    OBJECT_STORE = "object_store"
    LOCAL_DISK = "local_disk"
    INLINE = "inline"


THUMBNAIL_MEDIA_TYPES = frozenset({"image/jpeg", "image/png"})
VIDEO_MEDIA_TYPES = frozenset({"video/mp4"})


@dataclass
class Video:
    """
    A video record owned by a single user.

    The locator fields are opaque strings: an object store URL, a path
    served by the static assets handler, or an inline data URI.
    """
    user_id: UUID
    title: str = ""
    description: str = ""
    id: UUID = field(default_factory=uuid4)
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id

    def set_locator(self, locator_field: LocatorField, locator: str) -> None:
        """
        Replace a locator field.

        Any previous value is discarded; re-uploading an asset never
        keeps the old locator around.
        """
        if not locator:
            raise ValueError("Locator cannot be empty")

        setattr(self, locator_field.value, locator)
        self.updated_at = utc_now()


@dataclass
class ExtractedUpload:
    """A single file part pulled out of a multipart request body."""
    file: BinaryIO
    media_type: str
    field_name: str
    filename: Optional[str] = None


@dataclass(frozen=True)
class CachedAsset:
    """Raw bytes of an inline asset, kept so they can be served without decoding."""
    data: bytes
    media_type: str
