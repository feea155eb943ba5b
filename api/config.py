"""
API configuration settings.
"""

from typing import List

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "History Books Catalog API"
    api_version: str = "1.0.0"
    api_description: str = """
    REST API for managing a catalog of books.

    ## Features

    * **Books**: Create, list, fetch, update and delete book records
    * **Cover images**: Upload a JPEG, PNG or GIF cover (up to 5 MB) with a book;
      replaced and deleted images are removed from disk
    * **Static files**: Uploaded covers are served under `/uploads/`
    """
    api_prefix: str = "/api/historyBooks"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False

    # CORS Settings
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
    cors_allow_headers: List[str] = ["Content-Type", "Authorization"]
    cors_expose_headers: List[str] = ["Content-Range", "X-Content-Range"]

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }


# Global config instance
config = APIConfig()
