"""Application settings and environment configuration."""

from typing import List, Optional
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "Imagerate"
    debug: bool = False
    environment: str = "dev"  # 'dev' or 'prod'
    log_level: str = "INFO"

    # Google Cloud
    gcp_project_id: Optional[str] = None

    # Object storage
    storage_backend: str = "gcs"  # 'gcs' or 'memory'
    storage_bucket_name: str = "imagerate-images"
    ratings_object_key: str = "ratings.json"
    # Only keys under this prefix are offered for rating; empty means whole bucket.
    image_prefix: str = ""
    # Public base URL for image links (CDN or custom domain); defaults to storage.googleapis.com.
    image_base_url: str = ""
    image_signed_urls: bool = False  # Enable GCS signed URLs for private bucket access
    image_signed_url_ttl_seconds: int = 3600

    # Listing
    list_page_size: int = 1000
    # Hard stop for paginated listings; a store that never ends its cursor chain fails the request.
    list_max_pages: int = 10000

    # Ratings persistence
    ratings_write_max_attempts: int = 5

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    api_workers: int = 1
    cors_allow_origins: List[str] = ["*"]
    rate_limit: str = "120/minute"
    rate_limit_enabled: bool = True

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "dev"


settings = Settings()
