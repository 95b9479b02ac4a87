"""Database schema definition and initialization."""

from __future__ import annotations

import logging

from wikiwisch.storage.connection import get_connection

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
-- Persisted client state: one JSON blob per storage key
CREATE TABLE IF NOT EXISTS app_state (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,              -- JSON object
    updated_at  TEXT NOT NULL
);
"""


def init_db(database_path: str) -> None:
    """Create all tables if they do not already exist."""
    with get_connection(database_path) as conn:
        conn.executescript(_SCHEMA_SQL)
    logger.info("Database initialized at %s", database_path)
