"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from posts_proxy.config import Settings
from tests.conftest import POST_API, make_settings


def test_settings_loads_required_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POST_API", POST_API)
    monkeypatch.setenv("FRONTEND_URL", "https://app.example.com")
    monkeypatch.setenv("PORT", "5050")

    settings = Settings()

    assert settings.post_api == POST_API
    assert settings.frontend_url == "https://app.example.com"
    assert settings.port == 5050


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("FRONTEND_URL", "PORT", "LIST_DELAY_SECONDS", "UPSTREAM_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(post_api=POST_API)
    assert settings.port == 4000
    assert settings.host == "0.0.0.0"
    assert settings.frontend_url == "http://localhost:3000"
    assert settings.list_delay_seconds == 3.0
    assert settings.upstream_timeout_seconds == 10.0


def test_settings_missing_post_api_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("POST_API", raising=False)
    with pytest.raises(ValidationError):
        Settings()


@pytest.mark.parametrize("value", ["", "   ", "/"])
def test_settings_rejects_empty_post_api(value: str) -> None:
    with pytest.raises(ValidationError, match="POST_API must not be empty"):
        make_settings(post_api=value)


def test_settings_strips_trailing_slash() -> None:
    settings = make_settings(post_api=f" {POST_API}/ ")
    assert settings.post_api == POST_API


def test_settings_rejects_negative_delay() -> None:
    with pytest.raises(ValidationError):
        make_settings(list_delay_seconds=-1)


def test_settings_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValidationError):
        make_settings(upstream_timeout_seconds=0)
