"""
Snowflake repository for video records.

The repository:
1. Translates between the Video domain model and table rows
2. Encapsulates all SQL queries
3. Raises domain-level errors (VideoNotFoundError) or RepositoryError

Route handlers and the ingestion pipeline never write SQL directly.
Updates are plain last-write-wins; concurrent uploads to the same video
are not serialised.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol
from uuid import UUID

from tubely.core.media.errors import VideoNotFoundError
from tubely.core.media.models import Video

logger = logging.getLogger(__name__)


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a mock without
    importing the actual snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    database: str = "TUBELY"
    schema: str = "MEDIA"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


class RepositoryError(Exception):
    """Raised when a write to the videos table fails."""
    pass


VIDEO_COLUMNS = (
    "video_id, user_id, title, description, thumbnail_url, video_url, "
    "created_at, updated_at"
)


class VideoRepository:
    """
    Repository for video record persistence.

    - create_video: insert a new record
    - get_video: load a record by id
    - update_video: write back every mutable column of a record
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def create_video(self, video: Video) -> Video:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO videos ({VIDEO_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """, (
                str(video.id),
                str(video.user_id),
                video.title,
                video.description,
                video.thumbnail_url,
                video.video_url,
                video.created_at,
                video.updated_at,
            ))
            self._conn.commit()

        except Exception as e:
            logger.error(
                "Failed to create video",
                extra={"video_id": str(video.id), "error": str(e)}
            )
            raise RepositoryError(f"Create failed: {e}")
        finally:
            cursor.close()

        return video

    def get_video(self, video_id: UUID) -> Video:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {VIDEO_COLUMNS}
                FROM videos
                WHERE video_id = %s
            """, (str(video_id),))

            row = cursor.fetchone()
        finally:
            cursor.close()

        if not row:
            raise VideoNotFoundError()

        return self._build_video(row)

    def update_video(self, video: Video) -> None:
        """
        Persist the record's mutable columns.

        Raises RepositoryError if the write fails or matches no row.
        """
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE videos SET
                    title = %s,
                    description = %s,
                    thumbnail_url = %s,
                    video_url = %s,
                    updated_at = %s
                WHERE video_id = %s
            """, (
                video.title,
                video.description,
                video.thumbnail_url,
                video.video_url,
                video.updated_at,
                str(video.id),
            ))

            if cursor.rowcount == 0:
                raise RepositoryError(f"Video {video.id} no longer exists")

            self._conn.commit()

        except RepositoryError:
            raise
        except Exception as e:
            logger.error(
                "Failed to update video",
                extra={"video_id": str(video.id), "error": str(e)}
            )
            raise RepositoryError(f"Update failed: {e}")
        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _build_video(self, row: tuple) -> Video:
        (
            video_id, user_id, title, description,
            thumbnail_url, video_url, created_at, updated_at,
        ) = row

        return Video(
            id=UUID(str(video_id)),
            user_id=UUID(str(user_id)),
            title=title or "",
            description=description or "",
            thumbnail_url=thumbnail_url,
            video_url=video_url,
            created_at=_as_utc(created_at),
            updated_at=_as_utc(updated_at),
        )


def _as_utc(value: datetime | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
