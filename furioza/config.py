"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./furioza.db"

    # Identity provider (bearer tokens are issued elsewhere, we only verify)
    secret_key: str = "change-this-in-production-minimum-32-characters-long"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Furioza Forum Core"
    version: str = "1.0.0"

    # Profile mutation cooldowns
    profile_cooldown_days: int = 31
    avatar_max_bytes: int = 2 * 1024 * 1024

    # Forum
    post_max_images: int = 5
    view_count_policy: Literal["per_viewer", "always"] = "per_viewer"
    audit_page_size: int = 50

    # Blob store (avatars)
    blob_root: str = "./blobs"
    blob_public_base_url: str = "http://localhost:8000/blobs"

    # Seed admin grants when the permission matrix is empty
    bootstrap_permissions: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
