"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock modes enable local development without external services.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.media.models import StorageStrategy


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # API Configuration
    api_title: str = "Tubely API"
    api_version: str = "v1"

    # Authentication
    jwt_secret: str = Field(
        default="",
        description="HMAC secret used to verify access tokens."
    )
    jwt_issuer: str = Field(
        default="tubely-access",
        description="Expected issuer claim on access tokens."
    )

    # Storage strategies
    thumbnail_storage: StorageStrategy = Field(
        default=StorageStrategy.LOCAL_DISK,
        description="Where thumbnails are written: object_store, local_disk or inline."
    )
    video_storage: StorageStrategy = Field(
        default=StorageStrategy.OBJECT_STORE,
        description="Where videos are written: object_store, local_disk or inline."
    )

    # Local assets
    assets_root: Path = Field(
        default=Path("./assets"),
        description="Directory local_disk assets are written to."
    )
    assets_url_path: str = Field(
        default="assets",
        description="URL path the assets root is served under, e.g. /assets/<key>."
    )

    # S3 Storage Configuration
    s3_bucket: str = Field(
        default="tubely-media",
        description="Bucket for object_store assets"
    )
    s3_region: str = Field(
        default="us-east-1",
        description="Region of the bucket"
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores (MinIO, R2). None for AWS."
    )
    s3_access_key_id: Optional[str] = Field(
        default=None,
        description="Access key ID. None falls back to the default AWS credential chain."
    )
    s3_secret_access_key: Optional[str] = Field(
        default=None,
        description="Secret access key"
    )
    s3_connect_timeout_seconds: float = 10.0
    s3_read_timeout_seconds: float = 60.0
    s3_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real S3. Enables local dev without object storage."
    )
    object_store_url_template: str = Field(
        default="https://{bucket}.s3.{region}.amazonaws.com/{key}",
        description="Template for object_store locators; receives bucket, region and key."
    )

    # Media probing
    ffprobe_path: str = Field(
        default="ffprobe",
        description="Path to the ffprobe binary"
    )
    probe_timeout_seconds: float = Field(
        default=30.0,
        description="Maximum time a single ffprobe run may take"
    )
    probe_mock_mode: bool = Field(
        default=False,
        description="Report fixed 1920x1080 dimensions instead of running ffprobe."
    )

    # Upload limits
    upload_max_memory_bytes: int = Field(
        default=10 << 20,
        description="File parts larger than this are spooled to disk while parsing."
    )
    upload_max_body_bytes: int = Field(
        default=1 << 30,
        description="Requests with a larger body are rejected before parsing."
    )
    staging_dir: Optional[Path] = Field(
        default=None,
        description="Directory for staged video uploads. None uses the system temp dir."
    )

    # Snowflake Configuration
    snowflake_account: str = ""
    snowflake_user: str = ""
    snowflake_password: str = ""
    snowflake_private_key_path: Optional[str] = Field(
        default=None,
        description="Path to RSA private key file for key-pair authentication"
    )
    snowflake_database: str = "TUBELY"
    snowflake_schema: str = "MEDIA"
    snowflake_warehouse: str = "COMPUTE_WH"
    snowflake_role: Optional[str] = None
    snowflake_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real Snowflake connection. Enables local dev without DB."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def uses_object_store(self) -> bool:
        return StorageStrategy.OBJECT_STORE in (self.thumbnail_storage, self.video_storage)

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        """
        missing = []

        if not self.jwt_secret:
            missing.append("JWT_SECRET")

        if self.uses_object_store and not self.s3_mock_mode and not self.s3_bucket:
            missing.append("S3_BUCKET")

        if not self.snowflake_mock_mode:
            if not self.snowflake_account:
                missing.append("SNOWFLAKE_ACCOUNT")
            if not self.snowflake_user:
                missing.append("SNOWFLAKE_USER")
            if not self.snowflake_password and not self.snowflake_private_key_path:
                missing.append("SNOWFLAKE_PASSWORD or SNOWFLAKE_PRIVATE_KEY_PATH")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Loaded once per process. For tests, call get_settings.cache_clear()
    or override the dependency.
    """
    return Settings()
