"""
Storage writers: where uploaded asset bytes end up.

One writer per strategy, all behind the same ``write`` call:

- ObjectStoreWriter: put the object in a bucket, locator is its URL
- LocalDiskWriter: write under the assets root, locator is the path the
  static assets mount serves it from
- InlineDataURIWriter: no external write, locator is a data URI

Which one a flow uses is a deployment setting (see create_storage_writer),
so route handlers never branch on it.
"""

import asyncio
import base64
import logging
import shutil
from pathlib import Path
from typing import BinaryIO
from uuid import UUID

from tubely.core.media.errors import StorageWriteError
from tubely.core.media.ingest import StorageWriter
from tubely.core.media.models import CachedAsset, StorageStrategy

from .cache import AssetCache
from .client import StorageClient, StorageError

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_URL_TEMPLATE = "https://{bucket}.s3.{region}.amazonaws.com/{key}"


class ObjectStoreWriter:
    """Streams the payload to the object store under the given key."""

    def __init__(
        self,
        client: StorageClient,
        url_template: str = DEFAULT_OBJECT_URL_TEMPLATE,
    ) -> None:
        self._client = client
        self._url_template = url_template

    def object_url(self, key: str) -> str:
        return self._url_template.format(
            bucket=self._client.bucket_name,
            region=self._client.region,
            key=key,
        )

    async def write(
        self,
        key: str,
        payload: BinaryIO,
        media_type: str,
        video_id: UUID,
    ) -> str:
        try:
            await asyncio.to_thread(self._client.put_object, key, payload, media_type)
        except StorageError as e:
            raise StorageWriteError() from e

        logger.info(
            "Wrote asset to object store",
            extra={
                "video_id": str(video_id),
                "bucket": self._client.bucket_name,
                "key": key,
            }
        )

        return self.object_url(key)


class LocalDiskWriter:
    """
    Writes the payload to a file under a local assets root.

    The returned locator is root-relative (``/assets/<key>``); serving it
    is the static files mount's job.
    """

    def __init__(self, assets_root: Path, url_path: str = "assets") -> None:
        self._assets_root = Path(assets_root)
        self._url_path = url_path.strip("/")

    def _resolve_path(self, key: str) -> Path:
        root = self._assets_root.resolve()
        path = (root / key).resolve()
        if root not in path.parents:
            raise StorageWriteError(f"Key escapes assets root: {key}")
        return path

    def _write_file(self, path: Path, payload: BinaryIO) -> int:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            shutil.copyfileobj(payload, f)
            return f.tell()

    async def write(
        self,
        key: str,
        payload: BinaryIO,
        media_type: str,
        video_id: UUID,
    ) -> str:
        path = self._resolve_path(key)

        try:
            size = await asyncio.to_thread(self._write_file, path, payload)
        except OSError as e:
            logger.error(
                "Failed to write asset file",
                extra={"video_id": str(video_id), "path": str(path), "error": str(e)}
            )
            raise StorageWriteError() from e

        logger.info(
            "Wrote asset to local disk",
            extra={"video_id": str(video_id), "path": str(path), "size_bytes": size}
        )

        return f"/{self._url_path}/{key}"


class InlineDataURIWriter:
    """
    Embeds the payload in the locator itself as a base64 data URI.

    The raw bytes also go into the asset cache under the video id.
    """

    def __init__(self, cache: AssetCache) -> None:
        self._cache = cache

    async def write(
        self,
        key: str,
        payload: BinaryIO,
        media_type: str,
        video_id: UUID,
    ) -> str:
        data = await asyncio.to_thread(payload.read)
        encoded = base64.b64encode(data).decode("ascii")

        self._cache.put(video_id, CachedAsset(data=data, media_type=media_type))

        logger.info(
            "Embedded asset as data URI",
            extra={"video_id": str(video_id), "size_bytes": len(data)}
        )

        return f"data:{media_type};base64,{encoded}"


def create_storage_writer(
    strategy: StorageStrategy,
    *,
    storage_client: StorageClient | None = None,
    assets_root: Path | None = None,
    assets_url_path: str = "assets",
    cache: AssetCache | None = None,
    object_url_template: str = DEFAULT_OBJECT_URL_TEMPLATE,
) -> StorageWriter:
    """
    Build the writer for a storage strategy.

    Only the collaborators the chosen strategy needs are required.
    """
    if strategy is StorageStrategy.OBJECT_STORE:
        if storage_client is None:
            raise ValueError("storage_client is required for the object_store strategy")
        return ObjectStoreWriter(storage_client, url_template=object_url_template)

    if strategy is StorageStrategy.LOCAL_DISK:
        if assets_root is None:
            raise ValueError("assets_root is required for the local_disk strategy")
        return LocalDiskWriter(assets_root, url_path=assets_url_path)

    if strategy is StorageStrategy.INLINE:
        if cache is None:
            raise ValueError("cache is required for the inline strategy")
        return InlineDataURIWriter(cache)

    raise ValueError(f"Unknown storage strategy: {strategy}")
