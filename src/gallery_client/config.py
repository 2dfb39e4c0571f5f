"""Application configuration."""

import os
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_API_BASE_URL = "http://localhost:5000/api"


class DataSource(str, Enum):
    """Where image metadata is read from and written to."""

    MOCK_HOST = "mock_host"
    BACKEND = "backend"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    api_base_url: str | None = None
    backend_base_url: str | None = None
    mockapi_url: str | None = None
    cloudinary_cloud_name: str | None = None
    cloudinary_upload_preset: str | None = None
    cloudinary_base_url: str = "https://api.cloudinary.com/v1_1"
    session_file: str = ".gallery_session.json"
    dedupe_uploads: bool = False
    request_timeout_seconds: float = 15.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def resolved_api_base_url(self) -> str:
        """Return the configured API base URL or the local default."""
        return (self.api_base_url or DEFAULT_API_BASE_URL).rstrip("/")

    @property
    def resolved_backend_base_url(self) -> str:
        """Return the base URL used to resolve relative static file paths."""
        if self.backend_base_url:
            return self.backend_base_url.rstrip("/")
        return strip_api_suffix(self.resolved_api_base_url)

    @property
    def data_source(self) -> DataSource:
        """Select the data source once, from whether a mock host is configured."""
        return DataSource.MOCK_HOST if self.mockapi_url else DataSource.BACKEND

    @property
    def verify_session_on_start(self) -> bool:
        """Skip verification when no backend was configured explicitly."""
        return bool(self.api_base_url)


def strip_api_suffix(url: str) -> str:
    """Drop a trailing ``/api`` segment from a base URL."""
    cleaned = url.rstrip("/")
    if cleaned.endswith("/api"):
        return cleaned[: -len("/api")]
    return cleaned
