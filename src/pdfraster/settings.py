"""Runtime settings loaded from `.env` and environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from pdfraster.exceptions import SettingsError

logger = logging.getLogger(__name__)

_MEBIBYTE = 1024 * 1024


class Settings(BaseSettings):
    """Package settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = "pdfraster"
    app_env: str = Field(
        default="dev",
        validation_alias="APP_ENV",
        description="Application environment, e.g. 'dev', 'prod'.",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level, e.g. 'INFO', 'DEBUG'.",
    )
    log_json: bool = Field(
        default=True,
        validation_alias="LOG_JSON",
        description="Enable JSON formatted logs.",
    )
    log_file: str | None = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="File path for log output.",
    )

    host: str = Field(default="127.0.0.1", validation_alias="HOST", description="Listen address.")
    port: int = Field(default=3000, ge=1, le=65535, validation_alias="PORT", description="Listen port.")

    account_id: str | None = Field(
        default=None,
        validation_alias="PDF_ACCOUNT_ID",
        description="R2 account ID, used to derive the storage endpoint.",
    )
    key_id: str | None = Field(default=None, validation_alias="PDF_KEY_ID", description="R2 access key ID.")
    secret: str | None = Field(default=None, validation_alias="PDF_SECRET", description="R2 access key secret.")
    bucket: str | None = Field(default=None, validation_alias="PDF_BUCKET", description="R2 bucket.")
    endpoint_url: str | None = Field(
        default=None,
        validation_alias="PDF_ENDPOINT_URL",
        description="Explicit S3 endpoint URL, overrides the R2 endpoint.",
    )
    region: str = Field(default="auto", validation_alias="PDF_REGION", description="Storage region.")
    body_limit: int = Field(
        default=250,
        ge=1,
        validation_alias="PDF_BODY_LIMIT",
        description="Request body limit in megabytes.",
    )
    token: str | None = Field(
        default=None,
        validation_alias="PDF_TOKEN",
        description="Token required on every conversion request when set.",
    )

    upload_concurrency: int = Field(
        default=8,
        ge=1,
        validation_alias="UPLOAD_CONCURRENCY",
        description="Maximum number of pages rendered and uploaded at once.",
    )
    jpeg_quality: int = Field(
        default=90,
        ge=1,
        le=95,
        validation_alias="JPEG_QUALITY",
        description="Quality used by the JPEG encoder.",
    )

    http_proxy: str | None = Field(default=None, validation_alias="HTTP_PROXY", description="HTTP proxy URL.")
    https_proxy: str | None = Field(
        default=None,
        validation_alias="HTTPS_PROXY",
        description="HTTPS proxy URL.",
    )
    cert_path: str | None = Field(
        default=None,
        validation_alias="CERT_PATH",
        description="Path to SSL certificate bundle.",
    )
    timeout: float = Field(
        default=30.0,
        validation_alias="TIMEOUT",
        description="Storage request timeout in seconds.",
    )
    max_connections: int = Field(
        default=20,
        validation_alias="MAX_CONNECTIONS",
        description="Maximum number of pooled storage connections.",
    )

    @property
    def body_limit_bytes(self) -> int:
        """Return the request body limit in bytes."""
        return self.body_limit * _MEBIBYTE

    @property
    def storage_endpoint(self) -> str | None:
        """Return the S3 endpoint, derived from the R2 account when not explicit."""
        if self.endpoint_url:
            return self.endpoint_url
        if self.account_id:
            return f"https://{self.account_id}.r2.cloudflarestorage.com"
        return None

    @property
    def proxies(self) -> dict[str, str]:
        """Return proxy mapping for the storage client."""
        proxies: dict[str, str] = {}
        if self.http_proxy:
            proxies["http"] = self.http_proxy
        if self.https_proxy:
            proxies["https"] = self.https_proxy
        return proxies


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance.

    Raises:
        SettingsError: If settings cannot be loaded or validated.

    Returns:
        Settings: The loaded settings instance.
    """
    try:
        return Settings()
    except Exception as exc:
        if _is_missing_settings_error(exc):
            ensure_env_file_exists()
            try:
                return Settings()
            except Exception as retry_exc:
                raise SettingsError(exc=retry_exc) from retry_exc
        raise SettingsError(exc=exc) from exc


def ensure_env_file_exists(
    *,
    env_path: Path = Path(".env"),
    template_path: Path = Path(".env.template"),
) -> None:
    """Create `.env` from template when missing.

    Args:
        env_path (Path): Target environment file path.
        template_path (Path): Template file path.
    """
    if env_path.exists() or not template_path.exists():
        return
    env_path.write_text(template_path.read_text(encoding="utf-8"), encoding="utf-8")
    logger.info(
        "Created environment file from template",
        extra={"env_path": str(env_path), "template_path": str(template_path)},
    )


def _is_missing_settings_error(exc: Exception) -> bool:
    """Return whether the settings failure is due to missing values.

    Args:
        exc (Exception): Caught settings initialization error.

    Returns:
        bool: True when the error represents missing settings values.
    """
    if not isinstance(exc, ValidationError):
        return False
    return any(error.get("type") == "missing" for error in exc.errors())
