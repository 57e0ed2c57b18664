"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from leave_portal.domain.models import REVIEWER_ROLE

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    photo_bucket: str = "photos"
    max_photo_bytes: int = 5 * 1024 * 1024
    reviewer_destination: str
    reviewer_roles: str = REVIEWER_ROLE
    notification_webhook_url: str
    notification_webhook_token: str | None = None
    notification_max_attempts: int = 1
    notification_retry_delay_seconds: float = 0.5
    notification_queue_size: int = 100
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_roles(raw: str | None) -> frozenset[str]:
    """Parse a comma-separated role list."""
    if raw is None:
        return frozenset()
    return frozenset(
        chunk.strip().lower() for chunk in raw.split(",") if chunk.strip()
    )
