"""
Video asset upload endpoints.

Flow for both uploads:
1. Resolve the caller from the bearer token
2. Load the video and check the caller owns it
3. Extract the named multipart file part and validate its type
4. Hand it to the AssetIngestor (stage/classify for videos, then
   key, store, link)

The ownership check happens before the body is parsed, so a caller who
doesn't own the video never gets a byte written anywhere.
"""

import logging
from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Request, Response, status
from pydantic import BaseModel, Field

from ...core.media.errors import InvalidIdentifierError
from ...core.media.ingest import ensure_owner
from ...core.media.models import THUMBNAIL_MEDIA_TYPES, VIDEO_MEDIA_TYPES, Video
from ..dependencies import (
    AssetCacheDep,
    AssetIngestorDep,
    CurrentUserId,
    SettingsDep,
    VideoRepositoryDep,
)
from ..multipart import extract_upload

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class VideoResponse(BaseModel):
    """A video record as returned to its owner."""
    id: UUID = Field(description="Video identifier")
    user_id: UUID = Field(description="Owner of the video")
    title: str = Field(description="Video title")
    description: str = Field(description="Video description")
    thumbnail_url: Optional[str] = Field(None, description="Locator of the thumbnail, if any")
    video_url: Optional[str] = Field(None, description="Locator of the video file, if any")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            thumbnail_url=video.thumbnail_url,
            video_url=video.video_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def parse_video_id(
    videoID: Annotated[str, Path(description="Video identifier (UUID)")],
) -> UUID:
    try:
        return UUID(videoID)
    except ValueError:
        raise InvalidIdentifierError() from None


VideoId = Annotated[UUID, Depends(parse_video_id)]


def load_owned_video(repository, video_id: UUID, user_id: UUID) -> Video:
    video = repository.get_video(video_id)
    ensure_owner(video, user_id)
    return video


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/{videoID}/thumbnail",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a thumbnail",
    description="Attach a JPEG or PNG thumbnail (multipart field 'thumbnail') to a video you own",
)
async def upload_thumbnail(
    video_id: VideoId,
    request: Request,
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
    ingestor: AssetIngestorDep,
    settings: SettingsDep,
) -> VideoResponse:
    logger.info(
        "Uploading thumbnail",
        extra={"video_id": str(video_id), "user_id": str(user_id)}
    )

    video = load_owned_video(repository, video_id, user_id)

    async with extract_upload(
        request,
        field_name="thumbnail",
        allowed_types=THUMBNAIL_MEDIA_TYPES,
        max_memory=settings.upload_max_memory_bytes,
        max_body=settings.upload_max_body_bytes,
    ) as upload:
        video = await ingestor.attach_thumbnail(video, upload)

    return VideoResponse.from_video(video)


@router.post(
    "/{videoID}/video",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a video file",
    description="Attach an MP4 file (multipart field 'video') to a video you own",
)
async def upload_video(
    video_id: VideoId,
    request: Request,
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
    ingestor: AssetIngestorDep,
    settings: SettingsDep,
) -> VideoResponse:
    logger.info(
        "Uploading video file",
        extra={"video_id": str(video_id), "user_id": str(user_id)}
    )

    video = load_owned_video(repository, video_id, user_id)

    async with extract_upload(
        request,
        field_name="video",
        allowed_types=VIDEO_MEDIA_TYPES,
        max_memory=settings.upload_max_memory_bytes,
        max_body=settings.upload_max_body_bytes,
    ) as upload:
        video = await ingestor.attach_video(video, upload)

    return VideoResponse.from_video(video)


@router.get(
    "/{videoID}",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a video",
    description="Return a video record you own",
)
async def get_video(
    video_id: VideoId,
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
) -> VideoResponse:
    video = load_owned_video(repository, video_id, user_id)
    return VideoResponse.from_video(video)


@router.get(
    "/{videoID}/thumbnail",
    status_code=status.HTTP_200_OK,
    summary="Get an inline thumbnail",
    description="Serve the raw bytes of a thumbnail stored with the inline strategy",
    responses={404: {"description": "No inline thumbnail cached for this video"}},
)
async def get_thumbnail(
    video_id: VideoId,
    cache: AssetCacheDep,
) -> Response:
    """
    Serve a cached inline thumbnail.

    Only thumbnails written by the inline strategy live in the cache;
    other strategies are served from their own locators.
    """
    asset = cache.get(video_id)
    if asset is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Thumbnail not found",
        )

    return Response(content=asset.data, media_type=asset.media_type)
