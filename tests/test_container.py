"""Tests for container wiring and settings."""

import asyncio

from leave_portal.config import Settings, parse_roles
from leave_portal.containers import build_container


def test_build_container_wires_services(settings: Settings) -> None:
    container = build_container(settings)

    assert container.leave_request_service.reviewer_roles == frozenset({"reviewer"})
    assert container.photo_service.max_bytes == 5 * 1024 * 1024
    assert container.notification_dispatcher.reviewer_destination == (
        "hr-reviews@example.com"
    )
    asyncio.run(container.close_resources())


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-key")
    monkeypatch.setenv("REVIEWER_DESTINATION", "hr@example.com")
    monkeypatch.setenv("NOTIFICATION_WEBHOOK_URL", "https://hooks.example.com/hr")
    monkeypatch.setenv("NOTIFICATION_MAX_ATTEMPTS", "3")

    settings = Settings()

    assert settings.supabase_url == "https://env.supabase.co"
    assert settings.notification_max_attempts == 3
    assert settings.photo_bucket == "photos"


def test_parse_roles() -> None:
    assert parse_roles(None) == frozenset()
    assert parse_roles(" Reviewer, ,hr-admin ") == frozenset({"reviewer", "hr-admin"})
