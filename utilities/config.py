"""
Configuration management using environment variables.
Handles database, upload storage and logging settings with validation and defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from catalog.assets import MAX_UPLOAD_BYTES
from catalog.models import DEFAULT_IMAGE_URL


class CatalogConfig(BaseSettings):
    """
    Configuration class for catalog settings.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="book_catalog")
    mongodb_collection: str = Field(default="historybooks")

    # Upload Storage
    uploads_dir: str = Field(default="uploads")
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES)
    default_image_url: str = Field(default=DEFAULT_IMAGE_URL)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    # Development/Testing
    debug: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
    )

    @field_validator('max_upload_bytes')
    @classmethod
    def validate_max_upload_bytes(cls, v):
        """Ensure the upload limit is positive."""
        if v < 1:
            raise ValueError('max_upload_bytes must be positive')
        return v

    @field_validator('default_image_url')
    @classmethod
    def validate_default_image_url(cls, v):
        """The default cover must be an external URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError('default_image_url must be an http(s) URL')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_uploads_path(self) -> Path:
        """Get uploads directory as Path object."""
        return Path(self.uploads_dir)


# Global configuration instance
config = CatalogConfig()
