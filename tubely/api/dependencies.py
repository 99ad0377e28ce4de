"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests (app.dependency_overrides)
- Configuration is centralized
- Resource lifecycle (connections, clients) is managed properly
"""

import logging
from functools import partial
from typing import Annotated, Generator, Optional
from uuid import UUID

from fastapi import Depends, Request

from ..config.settings import Settings, get_settings
from ..core.media.classifier import AspectClassifier, Probe
from ..core.media.ingest import AssetIngestor
from ..infrastructure.auth.tokens import get_bearer_token, validate_access_token
from ..infrastructure.snowflake.client import MockSnowflakeConnection, get_snowflake_connection
from ..infrastructure.snowflake.repositories.videos import SnowflakeConfig, VideoRepository
from ..infrastructure.storage.cache import AssetCache, InMemoryAssetCache
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client
from ..infrastructure.storage.writers import create_storage_writer
from ..infrastructure.video.probe import create_probe
from ..infrastructure.video.staging import stage_upload

logger = logging.getLogger(__name__)

# Process-wide instances. The asset cache is shared by every request;
# the mock clients are shared so data persists during a dev session.
_asset_cache = InMemoryAssetCache()
_mock_storage_client = None
_mock_snowflake_connection = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def get_current_user_id(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> UUID:
    """
    Resolve the caller from the Authorization: Bearer header.

    Raises UnauthenticatedError (401) when the header is missing,
    malformed, or the token doesn't verify.
    """
    token = get_bearer_token(request.headers)
    return validate_access_token(token, settings.jwt_secret, issuer=settings.jwt_issuer)


# ---------------------------------------------------------------------------
# Infrastructure Dependencies
# ---------------------------------------------------------------------------

def get_video_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[VideoRepository, None, None]:
    """
    Provide VideoRepository with database connection.

    A generator so the connection is closed after the request. In mock
    mode the same in-memory connection is reused across requests so
    records persist during the dev session.
    """
    global _mock_snowflake_connection

    if settings.snowflake_mock_mode:
        if _mock_snowflake_connection is None:
            _mock_snowflake_connection = MockSnowflakeConnection()
            logger.info("Created shared mock Snowflake connection")

        yield VideoRepository(_mock_snowflake_connection)
    else:
        config = SnowflakeConfig(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )

        with get_snowflake_connection(config) as conn:
            yield VideoRepository(conn)


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """Provide the S3 client, or the shared in-memory mock in mock mode."""
    global _mock_storage_client

    config = StorageConfig(
        bucket_name=settings.s3_bucket,
        region=settings.s3_region,
        access_key_id=settings.s3_access_key_id,
        secret_access_key=settings.s3_secret_access_key,
        endpoint_url=settings.s3_endpoint_url,
        connect_timeout_seconds=settings.s3_connect_timeout_seconds,
        read_timeout_seconds=settings.s3_read_timeout_seconds,
    )

    if settings.s3_mock_mode:
        if _mock_storage_client is None:
            _mock_storage_client = create_storage_client(config=config, mock_mode=True)
            logger.info("Created shared mock storage client")
        return _mock_storage_client

    return create_storage_client(config=config)


def get_asset_cache() -> AssetCache:
    return _asset_cache


def get_probe(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Probe:
    return create_probe(
        mock_mode=settings.probe_mock_mode,
        ffprobe_path=settings.ffprobe_path,
        timeout_seconds=settings.probe_timeout_seconds,
    )


def get_object_store_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Optional[StorageClient]:
    """
    Provide the storage client only when a configured strategy needs it,
    so local_disk/inline deployments don't require boto3.
    """
    if not settings.uses_object_store:
        return None
    return get_storage_client(settings)


def get_asset_ingestor(
    settings: Annotated[Settings, Depends(get_settings)],
    repository: Annotated[VideoRepository, Depends(get_video_repository)],
    cache: Annotated[AssetCache, Depends(get_asset_cache)],
    probe: Annotated[Probe, Depends(get_probe)],
    storage_client: Annotated[Optional[StorageClient], Depends(get_object_store_client)],
) -> AssetIngestor:
    """Wire the ingestion pipeline for this request."""

    def writer_for(strategy):
        return create_storage_writer(
            strategy,
            storage_client=storage_client,
            assets_root=settings.assets_root,
            assets_url_path=settings.assets_url_path,
            cache=cache,
            object_url_template=settings.object_store_url_template,
        )

    return AssetIngestor(
        store=repository,
        thumbnail_writer=writer_for(settings.thumbnail_storage),
        video_writer=writer_for(settings.video_storage),
        classifier=AspectClassifier(probe),
        stager=partial(stage_upload, directory=settings.staging_dir),
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
VideoRepositoryDep = Annotated[VideoRepository, Depends(get_video_repository)]
AssetCacheDep = Annotated[AssetCache, Depends(get_asset_cache)]
AssetIngestorDep = Annotated[AssetIngestor, Depends(get_asset_ingestor)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
