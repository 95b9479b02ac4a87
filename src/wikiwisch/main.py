"""Application entry point — relay + JSON API + static front end in one process."""

from __future__ import annotations

import json
import logging
import sys

import uvicorn

from wikiwisch.config import load_config
from wikiwisch.storage import init_db
from wikiwisch.web.app import create_app

logger = logging.getLogger("wikiwisch")


def _setup_logging(log_level: str, log_format: str) -> None:
    """Configure root logger based on config."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps(
                {
                    "time": "%(asctime)s",
                    "level": "%(levelname)s",
                    "logger": "%(name)s",
                    "message": "%(message)s",
                }
            )
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def main() -> None:
    """Load config, set up logging, and start the web server."""
    config = load_config()

    _setup_logging(config.log_level, config.log_format)

    logger.info(
        "wikiwisch starting (env=%s, db=%s, storage_key=%s)",
        config.app_env,
        config.database_path,
        config.storage_key,
    )

    init_db(config.database_path)

    app = create_app(config)

    uvicorn.run(app, host=config.web_host, port=config.web_port)


if __name__ == "__main__":
    main()
