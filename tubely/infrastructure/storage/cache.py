"""
In-process cache of inline assets.

The inline strategy embeds assets in the record as data URIs. The raw
bytes are also kept here, keyed by video id, so they can be served
without decoding the URI again. Entries are never evicted; the cache
only mirrors what the records already hold.
"""

import logging
import threading
from typing import Optional, Protocol
from uuid import UUID

from tubely.core.media.models import CachedAsset

logger = logging.getLogger(__name__)


class AssetCache(Protocol):
    def put(self, video_id: UUID, asset: CachedAsset) -> None:
        ...

    def get(self, video_id: UUID) -> Optional[CachedAsset]:
        ...


class InMemoryAssetCache:
    """Lock-protected dict shared by all requests in the process."""

    def __init__(self) -> None:
        self._assets: dict[UUID, CachedAsset] = {}
        self._lock = threading.Lock()

    def put(self, video_id: UUID, asset: CachedAsset) -> None:
        with self._lock:
            self._assets[video_id] = asset

        logger.debug(
            "Cached inline asset",
            extra={"video_id": str(video_id), "size_bytes": len(asset.data)}
        )

    def get(self, video_id: UUID) -> Optional[CachedAsset]:
        with self._lock:
            return self._assets.get(video_id)

    def __contains__(self, video_id: object) -> bool:
        with self._lock:
            return video_id in self._assets

    def __len__(self) -> int:
        with self._lock:
            return len(self._assets)
