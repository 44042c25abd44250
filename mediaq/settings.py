"""
MediaQ Configuration Management

Uses Pydantic v2 BaseSettings for type-safe configuration with support for
environment variables, .env files, and validation.
"""

import json
import os
from pathlib import Path
from typing import Any, List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import EnvSettingsSource

from .core.models import ThumbnailSize


class CustomEnvSource(EnvSettingsSource):
    """Environment source that accepts comma-separated MIME type lists."""

    def prepare_field_value(
        self, field_name: str, field: Any, value: Any, value_is_complex: bool
    ) -> Any:
        if field_name == "allowed_mime_types" and isinstance(value, str):
            if not value.lstrip().startswith("["):
                return [m.strip() for m in value.split(",") if m.strip()]
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class MediaQSettings(BaseSettings):
    """
    MediaQ configuration with environment variable support and validation.

    Configuration priority:
    1. Explicit keyword arguments
    2. Environment variables (MEDIAQ_*)
    3. .env file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIAQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Use custom environment source."""
        return (
            init_settings,
            CustomEnvSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )

    # Metadata store
    database_url: str = Field(
        default="postgresql://postgres@localhost/mediaq",
        description="PostgreSQL database URL holding media records",
    )
    db_pool_min_size: int = Field(
        default=1, ge=1, le=100, description="Minimum database connection pool size"
    )
    db_pool_max_size: int = Field(
        default=10, ge=1, le=200, description="Maximum database connection pool size"
    )

    # Object store (S3 compatible, e.g. MinIO)
    storage_endpoint: str = Field(
        default="http://minio:9000", description="Object store API endpoint"
    )
    storage_public_endpoint: Optional[str] = Field(
        default=None,
        description=(
            "Endpoint the transform service uses to fetch originals "
            "(defaults to storage_endpoint)"
        ),
    )
    storage_region: str = Field(default="us-east-1")
    storage_bucket: str = Field(default="media")
    storage_access_key: str = Field(default="minioadmin")
    storage_secret_key: str = Field(default="minioadmin")
    presign_ttl: int = Field(
        default=3600,
        ge=1,
        le=604800,
        description="Lifetime of presigned read URLs in seconds",
    )

    # Message queue (SQS compatible, e.g. LocalStack)
    queue_endpoint: Optional[str] = Field(
        default="http://localstack:4566",
        description="Queue API endpoint (None means the AWS default endpoint)",
    )
    queue_region: str = Field(default="us-east-1")
    queue_name: str = Field(default="media-tasks")
    queue_access_key: str = Field(default="test")
    queue_secret_key: str = Field(default="test")

    # Transform service
    transform_url: str = Field(
        default="http://imagorvideo:8080",
        description="Base URL of the image transform service",
    )
    transform_timeout: float = Field(
        default=60.0,
        ge=1.0,
        le=600.0,
        description="Total timeout for a single transform request (seconds)",
    )

    # Polling
    poll_max_messages: int = Field(
        default=1, ge=1, le=10, description="Messages requested per receive call"
    )
    poll_wait_seconds: int = Field(
        default=10, ge=0, le=20, description="Long-poll wait per receive call"
    )
    poll_visibility_timeout: int = Field(
        default=300,
        ge=1,
        le=43200,
        description="Seconds a received message stays hidden; must exceed worst-case processing time",
    )
    poll_interval: float = Field(
        default=5.0,
        ge=0.0,
        le=300.0,
        description="Pause between polling cycles (seconds)",
    )
    worker_concurrency: int = Field(
        default=1, ge=1, le=64, description="Number of independent poller loops"
    )

    # Retry policy for external calls
    retry_attempts: int = Field(
        default=3, ge=0, le=10, description="Additional attempts after the first failure"
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Delay before the first retry; doubles on each further retry (seconds)",
    )

    # Upload limits
    max_image_size_mb: int = Field(default=10, ge=1)
    max_video_size_mb: int = Field(default=200, ge=1)
    max_image_width: int = Field(default=1920, ge=1)
    max_image_height: int = Field(default=1080, ge=1)
    allowed_mime_types: List[str] = Field(
        default=[
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
            "video/mp4",
            "video/quicktime",
            "video/webm",
        ],
        description="MIME types accepted by the upload path",
    )
    thumbnail_sizes: List[ThumbnailSize] = Field(
        default=[ThumbnailSize(width=150, height=150), ThumbnailSize(width=300, height=300)],
        description="Thumbnail sizes requested for every upload (JSON list in env)",
    )

    # Dead letter forwarding
    dead_letter_queue_enabled: bool = Field(
        default=False, description="Forward failed jobs to a dead-letter queue"
    )
    dead_letter_queue_name: str = Field(default="media-tasks-dlq")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="simple", description="Log format: 'simple' or 'structured'"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        valid_formats = ["simple", "structured"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v.lower()

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        if not v.startswith(("postgresql://", "postgres://")):
            raise ValueError("database_url must be a PostgreSQL connection string")
        return v

    @field_validator("storage_endpoint", "transform_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @field_validator("allowed_mime_types")
    @classmethod
    def validate_mime_types(cls, v):
        for mime_type in v:
            if not mime_type.startswith(("image/", "video/")):
                raise ValueError(
                    f"allowed_mime_types only supports image/* and video/*, got {mime_type}"
                )
        return [m.lower() for m in v]

    @property
    def max_image_size(self) -> int:
        return self.max_image_size_mb * 1024 * 1024

    @property
    def max_video_size(self) -> int:
        return self.max_video_size_mb * 1024 * 1024

    @property
    def public_storage_endpoint(self) -> str:
        return (self.storage_public_endpoint or self.storage_endpoint).rstrip("/")


_settings: Optional[MediaQSettings] = None


def get_settings(
    config_file: Optional[Path] = None, reload: bool = False
) -> MediaQSettings:
    """
    Get MediaQ settings with caching.

    Args:
        config_file: Optional path to an env-style config file
        reload: Force reload settings from environment

    Returns:
        MediaQSettings instance
    """
    global _settings

    if _settings is None or reload:
        try:
            if config_file and config_file.exists():
                _settings = MediaQSettings(_env_file=str(config_file))
            else:
                _settings = MediaQSettings()
        except ValidationError as e:
            raise ValueError(f"Invalid MediaQ configuration: {e}")

    return _settings


def reload_settings(config_file: Optional[Path] = None) -> MediaQSettings:
    """Force reload settings from environment/config file."""
    return get_settings(config_file=config_file, reload=True)


def configure(**kwargs) -> MediaQSettings:
    """
    Configure MediaQ settings programmatically.

    Validates the provided values, exports them as MEDIAQ_* environment
    variables and reloads the settings cache.
    """
    if not kwargs:
        return get_settings()

    unknown = [key for key in kwargs if key not in MediaQSettings.model_fields]
    if unknown:
        raise ValueError(f"Unknown MediaQ settings: {', '.join(unknown)}")

    validated = MediaQSettings(**kwargs)

    for key in kwargs:
        env_key = f"MEDIAQ_{key.upper()}"
        value = getattr(validated, key)
        if value is None:
            os.environ.pop(env_key, None)
        elif key == "thumbnail_sizes":
            os.environ[env_key] = json.dumps([size.model_dump() for size in value])
        elif isinstance(value, list):
            os.environ[env_key] = ",".join(str(item) for item in value)
        else:
            os.environ[env_key] = str(value)

    return get_settings(reload=True)
