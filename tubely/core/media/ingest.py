"""
Asset ingestion pipeline.

Takes an already extracted upload for a video the caller owns and runs
the remaining stages:

    [stage -> classify] (video only) -> key -> store -> link

Nothing here retries. A failure at any stage ends the request with that
stage's error. A successful store followed by a failed link leaves the
stored object orphaned; there is no compensation step.
"""

import logging
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Protocol
from uuid import UUID

from .classifier import AspectClassifier
from .errors import MetadataPersistError, UnauthorizedError
from .keys import generate_key
from .models import AspectBucket, ExtractedUpload, LocatorField, Video

logger = logging.getLogger(__name__)


class VideoStore(Protocol):
    """Persistence for video records. Implemented in infrastructure."""

    def get_video(self, video_id: UUID) -> Video:
        ...

    def update_video(self, video: Video) -> None:
        ...


class StorageWriter(Protocol):
    """
    Writes an asset payload somewhere durable and returns its locator.

    Implementations raise StorageWriteError on any backend failure.
    """

    async def write(
        self,
        key: str,
        payload: BinaryIO,
        media_type: str,
        video_id: UUID,
    ) -> str:
        ...


class StagedFile(Protocol):
    path: Path
    file: BinaryIO


Stager = Callable[[BinaryIO], AbstractAsyncContextManager[StagedFile]]


def ensure_owner(video: Video, user_id: UUID) -> None:
    """Raise UnauthorizedError unless user_id owns the video."""
    if not video.is_owned_by(user_id):
        logger.warning(
            "Upload rejected, caller does not own video",
            extra={"video_id": str(video.id), "user_id": str(user_id)}
        )
        raise UnauthorizedError()


def link_locator(
    video: Video,
    locator_field: LocatorField,
    locator: str,
    store: VideoStore,
) -> Video:
    """
    Point the record at a newly stored asset and persist it.

    The previous locator is replaced outright. The update is attempted
    once; any failure surfaces as MetadataPersistError.
    """
    video.set_locator(locator_field, locator)

    try:
        store.update_video(video)
    except Exception as e:
        logger.error(
            "Failed to persist video locator",
            extra={
                "video_id": str(video.id),
                "field": locator_field.value,
                "error": str(e),
            }
        )
        raise MetadataPersistError() from e

    logger.info(
        "Linked asset to video",
        extra={"video_id": str(video.id), "field": locator_field.value}
    )

    return video


class AssetIngestor:
    """
    Runs the post-extraction stages for thumbnails and videos.

    Thumbnails and videos may use different storage writers, e.g.
    inline thumbnails with videos in the object store.
    """

    def __init__(
        self,
        store: VideoStore,
        thumbnail_writer: StorageWriter,
        video_writer: StorageWriter,
        classifier: AspectClassifier,
        stager: Stager,
        key_factory: Callable[[str, Optional[AspectBucket]], str] = generate_key,
    ) -> None:
        self._store = store
        self._thumbnail_writer = thumbnail_writer
        self._video_writer = video_writer
        self._classifier = classifier
        self._stager = stager
        self._key_factory = key_factory

    async def attach_thumbnail(self, video: Video, upload: ExtractedUpload) -> Video:
        """Store a thumbnail image and link it to the video."""
        key = self._key_factory(upload.media_type, None)

        locator = await self._thumbnail_writer.write(
            key=key,
            payload=upload.file,
            media_type=upload.media_type,
            video_id=video.id,
        )

        logger.info(
            "Stored thumbnail",
            extra={"video_id": str(video.id), "key": key}
        )

        return link_locator(video, LocatorField.THUMBNAIL, locator, self._store)

    async def attach_video(self, video: Video, upload: ExtractedUpload) -> Video:
        """
        Stage, classify, store and link a video file.

        The staged copy exists only so the probe can read it from disk;
        it is removed before this method returns, whatever the outcome.
        """
        async with self._stager(upload.file) as staged:
            bucket = await self._classifier.classify(staged.path)
            key = self._key_factory(upload.media_type, bucket)

            staged.file.seek(0)
            locator = await self._video_writer.write(
                key=key,
                payload=staged.file,
                media_type=upload.media_type,
                video_id=video.id,
            )

        logger.info(
            "Stored video",
            extra={"video_id": str(video.id), "key": key, "bucket": bucket.value}
        )

        return link_locator(video, LocatorField.VIDEO, locator, self._store)
