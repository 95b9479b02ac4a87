"""Tests for wikiwisch.config."""

import pytest

from wikiwisch.config import load_config

OPTIONAL_VARS = (
    "STORAGE_KEY", "NASA_API_KEY", "ARXIV_ENDPOINT", "REQUEST_TIMEOUT_SECONDS",
    "USER_AGENT", "APOD_RETRY_DELAY_SECONDS", "WIKI_MAX_PADDING_ATTEMPTS",
    "WEB_HOST", "WEB_PORT", "STATIC_DIR", "LOG_LEVEL", "LOG_FORMAT", "APP_ENV",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove all config-related env vars before each test."""
    for key in ("DATABASE_PATH",) + OPTIONAL_VARS:
        monkeypatch.delenv(key, raising=False)
    # Prevent .env file from re-setting variables during tests
    monkeypatch.setattr("wikiwisch.config.load_dotenv", lambda *a, **kw: None)


def test_missing_required_vars_raises():
    """load_config raises ValueError naming the missing variable."""
    with pytest.raises(ValueError, match="DATABASE_PATH"):
        load_config()


def test_load_config_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", "./test.db")

    config = load_config()

    assert config.database_path == "./test.db"
    assert config.storage_key == "wikiwisch_data"
    assert config.nasa_api_key == "DEMO_KEY"
    assert config.arxiv_endpoint == "https://export.arxiv.org/api/query"
    assert config.request_timeout_seconds == 20.0
    assert config.apod_retry_delay_seconds == 5.0
    assert config.wiki_max_padding_attempts == 15
    assert config.web_port == 8080
    assert config.log_level == "INFO"
    assert config.log_format == "json"
    assert config.app_env == "production"


def test_optional_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", "./test.db")
    monkeypatch.setenv("NASA_API_KEY", "real-key")
    monkeypatch.setenv("WEB_PORT", "9000")
    monkeypatch.setenv("APOD_RETRY_DELAY_SECONDS", "0.5")
    monkeypatch.setenv("LOG_FORMAT", "text")

    config = load_config()

    assert config.nasa_api_key == "real-key"
    assert config.web_port == 9000
    assert config.apod_retry_delay_seconds == 0.5
    assert config.log_format == "text"


def test_adapter_settings(monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", "./test.db")
    monkeypatch.setenv("NASA_API_KEY", "real-key")

    settings = load_config().adapter_settings()

    assert settings["nasa"] == {"api_key": "real-key", "retry_delay": 5.0}
    assert settings["wiki"] == {"max_padding_attempts": 15}
    assert settings["arxiv"]["endpoint"].startswith("https://export.arxiv.org")


def test_config_is_frozen(monkeypatch):
    """Config is immutable after creation."""
    monkeypatch.setenv("DATABASE_PATH", "./test.db")

    config = load_config()

    with pytest.raises(AttributeError):
        config.database_path = "/other.db"
