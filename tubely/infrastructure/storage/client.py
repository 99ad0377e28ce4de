"""
Object storage client for uploaded assets.

Talks to S3 (or anything S3-compatible) through boto3, with a mock mode
that keeps objects in memory for local development and tests.

Retries are disabled on the boto3 client: a failed put surfaces
immediately as a failed upload instead of being retried behind the
caller's back.
"""

import logging
import threading
from dataclasses import dataclass
from typing import BinaryIO, Optional, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for S3-compatible storage.

    endpoint_url is only needed for non-AWS providers (MinIO, R2, ...).
    """
    bucket_name: str
    region: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 60.0


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    bucket_name: str
    region: str

    def put_object(self, key: str, body: BinaryIO, content_type: str) -> None:
        """Store body under key, tagged with its content type."""
        ...


class S3StorageClient:
    """
    S3 object storage client.

    Calls are synchronous; callers run them in a worker thread.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize S3 client with boto3.

        We import boto3 here (not at module level) because mock mode
        doesn't need it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for S3 storage. Install with: pip install boto3"
            )

        self._config = config
        self.bucket_name = config.bucket_name
        self.region = config.region

        boto_config = Config(
            signature_version='s3v4',
            connect_timeout=config.connect_timeout_seconds,
            read_timeout=config.read_timeout_seconds,
            retries={'total_max_attempts': 1},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket_name,
                "region": config.region,
                "endpoint": config.endpoint_url,
            }
        )

    def put_object(self, key: str, body: BinaryIO, content_type: str) -> None:
        """Upload an object in a single request."""
        try:
            self._s3_client.put_object(
                Bucket=self._config.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except Exception as e:
            logger.error(
                "Failed to put object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}")

        logger.debug("Put object", extra={"key": key, "content_type": content_type})


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory object store.

    Objects are kept as {key: (bytes, content_type)}. Tests can inspect
    them directly, or set fail_puts to simulate a backend outage.
    """

    def __init__(self, bucket_name: str = "tubely-mock", region: str = "us-east-1") -> None:
        self.bucket_name = bucket_name
        self.region = region
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_puts = False
        self._lock = threading.Lock()
        logger.info("Initialized mock storage client (in-memory)")

    def put_object(self, key: str, body: BinaryIO, content_type: str) -> None:
        if self.fail_puts:
            raise StorageError("Upload failed: mock backend unavailable")

        data = body.read()
        with self._lock:
            self.objects[key] = (data, content_type)

        logger.debug(
            "Stored object in mock storage",
            extra={"key": key, "size_bytes": len(data)}
        )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        if config is None:
            return MockStorageClient()
        return MockStorageClient(bucket_name=config.bucket_name, region=config.region)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
