"""Tests for environment driven settings."""

from __future__ import annotations

from app.config import Settings


def test_defaults_cover_the_notification_stream(monkeypatch) -> None:
    monkeypatch.delenv("NOTIFICATION_HEARTBEAT_SECONDS", raising=False)
    monkeypatch.delenv("NOTIFICATION_LIST_LIMIT", raising=False)

    settings = Settings(_env_file=None)

    assert settings.notification_heartbeat_seconds == 30.0
    assert settings.notification_list_limit == 50
    assert settings.notification_channel_buffer == 100


def test_values_are_read_from_the_environment(monkeypatch) -> None:
    monkeypatch.setenv("NOTIFICATION_HEARTBEAT_SECONDS", "5")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.notification_heartbeat_seconds == 5.0
    assert settings.cors_origin_list == ["http://a.test", "http://b.test"]
    assert settings.log_level == "DEBUG"
