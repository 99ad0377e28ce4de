"""
Unit tests for the storage writers and the inline asset cache.
"""

import asyncio
import base64
import io
import threading
from uuid import uuid4

import pytest

from tubely.core.media.errors import StorageWriteError
from tubely.core.media.models import CachedAsset, StorageStrategy
from tubely.infrastructure.storage.cache import InMemoryAssetCache
from tubely.infrastructure.storage.client import (
    MockStorageClient,
    S3StorageClient,
    StorageConfig,
    create_storage_client,
)
from tubely.infrastructure.storage.writers import (
    InlineDataURIWriter,
    LocalDiskWriter,
    ObjectStoreWriter,
    create_storage_writer,
)


def write(writer, key, data, media_type, video_id=None):
    return asyncio.run(writer.write(
        key=key,
        payload=io.BytesIO(data),
        media_type=media_type,
        video_id=video_id or uuid4(),
    ))


# ---------------------------------------------------------------------------
# Object Store
# ---------------------------------------------------------------------------

class TestObjectStoreWriter:

    def test_locator_is_virtual_hosted_url(self):
        client = MockStorageClient(bucket_name="tubely-media", region="eu-west-2")
        writer = ObjectStoreWriter(client)

        locator = write(writer, "landscape/abc.mp4", b"video", "video/mp4")

        assert locator == "https://tubely-media.s3.eu-west-2.amazonaws.com/landscape/abc.mp4"
        assert client.objects["landscape/abc.mp4"] == (b"video", "video/mp4")

    def test_custom_url_template(self):
        client = MockStorageClient(bucket_name="media", region="auto")
        writer = ObjectStoreWriter(client, url_template="http://localhost:9000/{bucket}/{key}")

        locator = write(writer, "k.mp4", b"v", "video/mp4")

        assert locator == "http://localhost:9000/media/k.mp4"

    def test_backend_failure_is_storage_write_error(self):
        client = MockStorageClient()
        client.fail_puts = True

        with pytest.raises(StorageWriteError):
            write(ObjectStoreWriter(client), "k.mp4", b"v", "video/mp4")

        assert client.objects == {}


class TestStorageClientFactory:

    def test_mock_mode_keeps_bucket_and_region(self):
        config = StorageConfig(bucket_name="b", region="r")

        client = create_storage_client(config=config, mock_mode=True)

        assert isinstance(client, MockStorageClient)
        assert (client.bucket_name, client.region) == ("b", "r")

    def test_real_client_requires_config(self):
        with pytest.raises(ValueError):
            create_storage_client()

    def test_real_client_does_not_retry(self):
        client = create_storage_client(config=StorageConfig(bucket_name="b", region="us-east-1"))

        assert isinstance(client, S3StorageClient)
        assert client._s3_client.meta.config.retries["total_max_attempts"] == 1


# ---------------------------------------------------------------------------
# Local Disk
# ---------------------------------------------------------------------------

class TestLocalDiskWriter:

    def test_writes_file_and_returns_served_path(self, tmp_path):
        writer = LocalDiskWriter(tmp_path)

        locator = write(writer, "abc.png", b"\x89PNG", "image/png")

        assert locator == "/assets/abc.png"
        assert (tmp_path / "abc.png").read_bytes() == b"\x89PNG"

    def test_creates_prefix_directories(self, tmp_path):
        writer = LocalDiskWriter(tmp_path, url_path="/media/")

        locator = write(writer, "portrait/abc.mp4", b"v", "video/mp4")

        assert locator == "/media/portrait/abc.mp4"
        assert (tmp_path / "portrait" / "abc.mp4").read_bytes() == b"v"

    @pytest.mark.parametrize("key", ["../escape.png", "a/../../escape.png"])
    def test_rejects_keys_outside_root(self, tmp_path, key):
        root = tmp_path / "assets"
        root.mkdir()

        with pytest.raises(StorageWriteError):
            write(LocalDiskWriter(root), key, b"x", "image/png")

        assert not (tmp_path / "escape.png").exists()

    def test_os_error_is_storage_write_error(self, tmp_path):
        # a file where the prefix directory should be
        (tmp_path / "landscape").write_bytes(b"")

        with pytest.raises(StorageWriteError):
            write(LocalDiskWriter(tmp_path), "landscape/abc.mp4", b"v", "video/mp4")


# ---------------------------------------------------------------------------
# Inline
# ---------------------------------------------------------------------------

class TestInlineDataURIWriter:

    def test_locator_is_data_uri_and_bytes_are_cached(self):
        cache = InMemoryAssetCache()
        video_id = uuid4()

        locator = write(InlineDataURIWriter(cache), "k.png", b"\x89PNG", "image/png", video_id)

        assert locator == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
        assert cache.get(video_id) == CachedAsset(data=b"\x89PNG", media_type="image/png")

    def test_latest_asset_wins(self):
        cache = InMemoryAssetCache()
        video_id = uuid4()
        writer = InlineDataURIWriter(cache)

        write(writer, "a.png", b"first", "image/png", video_id)
        write(writer, "b.jpg", b"second", "image/jpeg", video_id)

        assert cache.get(video_id) == CachedAsset(data=b"second", media_type="image/jpeg")
        assert len(cache) == 1


class TestAssetCache:

    def test_missing_entry_is_none(self):
        assert InMemoryAssetCache().get(uuid4()) is None

    def test_concurrent_puts_are_all_kept(self):
        cache = InMemoryAssetCache()
        ids = [uuid4() for _ in range(50)]

        threads = [
            threading.Thread(
                target=cache.put,
                args=(video_id, CachedAsset(data=video_id.bytes, media_type="image/png")),
            )
            for video_id in ids
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 50
        assert all(cache.get(video_id).data == video_id.bytes for video_id in ids)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

class TestCreateStorageWriter:

    def test_builds_each_strategy(self, tmp_path):
        assert isinstance(
            create_storage_writer(StorageStrategy.OBJECT_STORE, storage_client=MockStorageClient()),
            ObjectStoreWriter,
        )
        assert isinstance(
            create_storage_writer(StorageStrategy.LOCAL_DISK, assets_root=tmp_path),
            LocalDiskWriter,
        )
        assert isinstance(
            create_storage_writer(StorageStrategy.INLINE, cache=InMemoryAssetCache()),
            InlineDataURIWriter,
        )

    @pytest.mark.parametrize("strategy", list(StorageStrategy))
    def test_missing_collaborator_is_rejected(self, strategy):
        with pytest.raises(ValueError):
            create_storage_writer(strategy)
