"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Client-side settings loaded from environment variables."""

    api_base_url: str = "http://localhost:5000"
    request_timeout_seconds: float = 15
    cache_stale_after_seconds: int | None = None
    embedded_photo_warn_bytes: int = 2 * 1024 * 1024
    admin_entry_path: str = "/admin"
    public_entry_path: str = "/"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


class ServerSettings(BaseSettings):
    """Settings for the reference content server."""

    admin_username: str = "admin"
    admin_password: str
    admin_email: str = "admin@example.com"
    session_ttl_hours: int = 8
    password_rounds: int = 600_000
    secure_cookies: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_SERVER_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
