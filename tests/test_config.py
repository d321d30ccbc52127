"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from foodmap.config import Environment, Settings


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


def test_environment_default_base_urls():
    assert Environment.DEVELOPMENT.base_url == "http://localhost:3000"
    assert Environment.STAGING.base_url == "https://staging-api.foodmap.com"
    assert Environment.PRODUCTION.base_url == "https://api.foodmap.com"


def test_base_url_falls_back_to_environment(monkeypatch):
    monkeypatch.delenv("FOODMAP_API_BASE_URL", raising=False)

    settings = _settings(environment="production")

    assert settings.base_url == "https://api.foodmap.com"


def test_explicit_base_url_wins_and_loses_trailing_slash():
    settings = _settings(environment="production", api_base_url="https://example.test/ ")

    assert settings.base_url == "https://example.test"


def test_loaded_from_prefixed_environment_variables(monkeypatch):
    monkeypatch.setenv("FOODMAP_ENVIRONMENT", "staging")
    monkeypatch.setenv("FOODMAP_TOKEN_EXPIRY_MARGIN", "30")
    monkeypatch.setenv("FOODMAP_ATTESTATION_ENABLED", "false")

    settings = _settings()

    assert settings.environment is Environment.STAGING
    assert settings.token_expiry_margin == 30
    assert settings.attestation_enabled is False


def test_postgres_url_is_rewritten():
    settings = _settings(database_url="postgres://user:pw@host/db")

    assert settings.database_url == "postgresql://user:pw@host/db"


def test_negative_token_lifetimes_rejected():
    with pytest.raises(ValidationError):
        _settings(token_expiry_margin=-1)


def test_unknown_environment_rejected():
    with pytest.raises(ValidationError):
        _settings(environment="moon")


@pytest.mark.parametrize(
    "enabled,url,expected",
    [
        (True, "https://attest.example.com", True),
        (True, "", False),
        (False, "https://attest.example.com", False),
    ],
)
def test_attestation_configured(enabled, url, expected):
    settings = _settings(attestation_enabled=enabled, attestation_exchange_url=url)

    assert settings.attestation_configured is expected
