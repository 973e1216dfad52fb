"""
Centralized configuration management.

- Credentials (service-account key path) and target ids come from environment
  variables or the .env file, never from code
- Centralize configuration in this module
- Do not spread os.getenv calls all over the codebase
- Do not log secrets or environment values
"""
from __future__ import annotations
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Google service account ---
    SERVICE_ACCOUNT_KEY: str | None = Field(default=None, description="Path to the service account JSON key file")
    UPLOAD_BACKEND: Literal["drive", "photos"] = Field(default="drive", description="Upload destination (drive/photos)")
    FOLDER_ID: str | None = Field(default=None, description="Google Drive folder receiving uploads")
    ALBUM_ID: str | None = Field(default=None, description="Google Photos album receiving uploads")
    DRIVE_MAKE_PUBLIC: bool = Field(default=True, description="Make uploaded Drive files viewable by link")
    GOOGLE_HTTP_TIMEOUT: float = Field(default=300.0, description="Timeout in seconds for each Google API call")

    # --- Upload limits ---
    MAX_FILES: int = Field(default=50, description="Maximum number of files per upload request")
    MAX_FILE_SIZE_BYTES: int = Field(default=500 * 1024 * 1024, description="Maximum size of a single file")
    ALLOWED_CONTENT_TYPES: str = Field(
        default=(
            "image/jpeg,image/jpg,image/png,image/gif,image/webp,"
            "video/mp4,video/quicktime,video/x-msvideo"
        ),
        description="Accepted content types (comma-separated)",
    )

    # --- Server ---
    HOST: str = Field(default="0.0.0.0", description="Listen host")
    PORT: int = Field(default=8080, description="Listen port")
    PUBLIC_DIR: str = Field(default="public", description="Directory holding the upload frontend")
    SERVICE_NAME: str = Field(default="Event Photo Uploader", description="Service name reported by /health")
    SERVICE_VERSION: str = Field(default="1.0.0", description="Service version reported by /health")
    LOG_LEVEL: str = Field(default="INFO", description="Log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def allowed_content_types(self) -> frozenset[str]:
        return frozenset(t.strip().lower() for t in self.ALLOWED_CONTENT_TYPES.split(",") if t.strip())


settings = Settings()
