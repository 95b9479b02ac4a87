"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Application configuration. All values sourced from environment variables."""

    # Required
    database_path: str

    # Optional — Persistence
    storage_key: str = "wikiwisch_data"

    # Optional — Upstream sources
    nasa_api_key: str = "DEMO_KEY"
    arxiv_endpoint: str = "https://export.arxiv.org/api/query"
    request_timeout_seconds: float = 20.0
    user_agent: str = "wikiwisch/0.1 (+https://github.com/wikiwisch)"
    apod_retry_delay_seconds: float = 5.0
    wiki_max_padding_attempts: int = 15

    # Optional — Web
    web_host: str = "0.0.0.0"
    web_port: int = 8080
    static_dir: str = "./static"

    # Optional — Application
    log_level: str = "INFO"
    log_format: str = "json"
    app_env: str = "production"

    def adapter_settings(self) -> dict[str, dict]:
        """Per-feed settings handed to ``SourceAdapter.configure``."""
        return {
            "wiki": {"max_padding_attempts": self.wiki_max_padding_attempts},
            "arxiv": {"endpoint": self.arxiv_endpoint},
            "nasa": {
                "api_key": self.nasa_api_key,
                "retry_delay": self.apod_retry_delay_seconds,
            },
        }


_REQUIRED_VARS = [
    "DATABASE_PATH",
]


def load_config(env_path: str | Path | None = None) -> Config:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development), then validates
    that all required variables are set. Raises ValueError listing any
    missing variables.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [var for var in _REQUIRED_VARS if not os.environ.get(var)]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return Config(
        # Required
        database_path=os.environ["DATABASE_PATH"],
        # Optional — Persistence
        storage_key=os.environ.get("STORAGE_KEY", "wikiwisch_data"),
        # Optional — Upstream sources
        nasa_api_key=os.environ.get("NASA_API_KEY", "DEMO_KEY"),
        arxiv_endpoint=os.environ.get(
            "ARXIV_ENDPOINT", "https://export.arxiv.org/api/query"
        ),
        request_timeout_seconds=float(os.environ.get("REQUEST_TIMEOUT_SECONDS", "20")),
        user_agent=os.environ.get(
            "USER_AGENT", "wikiwisch/0.1 (+https://github.com/wikiwisch)"
        ),
        apod_retry_delay_seconds=float(os.environ.get("APOD_RETRY_DELAY_SECONDS", "5")),
        wiki_max_padding_attempts=int(os.environ.get("WIKI_MAX_PADDING_ATTEMPTS", "15")),
        # Optional — Web
        web_host=os.environ.get("WEB_HOST", "0.0.0.0"),
        web_port=int(os.environ.get("WEB_PORT", "8080")),
        static_dir=os.environ.get("STATIC_DIR", "./static"),
        # Optional — Application
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        app_env=os.environ.get("APP_ENV", "production"),
    )
