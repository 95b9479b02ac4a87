"""Process-wide holder of the persisted preferences + bookmarks blob."""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Callable

from wikiwisch.storage.connection import get_connection
from wikiwisch.storage.migrations import DEFAULT_STATE, upgrade

logger = logging.getLogger(__name__)

Listener = Callable[[dict], None]

_PERSISTENCE_ERRORS = (sqlite3.Error, OSError, ValueError, TypeError)

# A blob that parses but has the wrong shape fails inside the migrations.
_MIGRATION_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


def read_blob(database_path: str, key: str) -> dict | None:
    """Return the stored blob for ``key``, or None if nothing is stored."""
    with get_connection(database_path) as conn:
        row = conn.execute(
            "SELECT value FROM app_state WHERE key = ?", (key,)
        ).fetchone()
    if row is None:
        return None
    data = json.loads(row["value"])
    if not isinstance(data, dict):
        raise ValueError(f"Stored state under {key!r} is not an object")
    return data


def write_blob(database_path: str, key: str, data: dict) -> None:
    """Replace the stored blob for ``key`` in a single transaction."""
    value = json.dumps(data, ensure_ascii=False)
    now = datetime.now(timezone.utc).isoformat()
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO app_state (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
            "updated_at = excluded.updated_at",
            (key, value, now),
        )


class StateStore:
    """Loads, migrates, holds and saves the whole persisted state.

    Every mutation rewrites the full blob. Persistence failures are logged
    and never raised: reads fall back to defaults, and a failed write keeps
    the in-memory change.

    The web app calls into one store from several worker threads, so every
    read-modify-write runs under a lock.
    """

    def __init__(self, database_path: str, key: str = "wikiwisch_data") -> None:
        self._database_path = database_path
        self._key = key
        self._state: dict[str, Any] = copy.deepcopy(DEFAULT_STATE)
        self._listeners: list[Listener] = []
        self._loaded = False
        self._lock = threading.RLock()

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> dict:
        """Read the stored blob, migrate it and backfill defaults.

        The migrated shape is written back once so later loads skip the
        migration. A blob that cannot be read or migrated is logged and
        replaced in memory by the defaults; it is overwritten on the next
        mutation.
        """
        with self._lock:
            try:
                stored = read_blob(self._database_path, self._key)
            except _PERSISTENCE_ERRORS:
                logger.exception("Failed to read stored state %r; using defaults", self._key)
                stored = None

            upgraded = None
            if stored is not None:
                try:
                    upgraded = upgrade(stored)
                except _MIGRATION_ERRORS:
                    logger.exception("Stored state %r is corrupt; using defaults", self._key)
                    stored = None

            if upgraded is None:
                self._state = copy.deepcopy(DEFAULT_STATE)
                if stored is None:
                    logger.info("No usable stored state under %r; starting from defaults", self._key)
            else:
                self._state = upgraded
                if self._state != stored:
                    self._save()
                logger.info("Loaded stored state %r", self._key)

            self._loaded = True
            return self.get()

    def get(self) -> dict:
        """A deep copy of the current state."""
        with self._lock:
            if not self._loaded:
                self.load()
            return copy.deepcopy(self._state)

    def mutate(self, fn: Callable[[dict], None]) -> dict:
        """Apply ``fn`` to a working copy of the state, then persist it.

        ``fn`` edits the dict in place. Nothing is written or broadcast when
        it leaves the state unchanged.
        """
        with self._lock:
            current = self.get()
            working = copy.deepcopy(current)
            fn(working)
            if working == current:
                return current

            self._state = working
            self._save()
            self._notify()
            return self.get()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._listeners.clear()

    def _save(self) -> None:
        try:
            write_blob(self._database_path, self._key, self._state)
        except _PERSISTENCE_ERRORS:
            logger.exception("Failed to persist state %r; keeping in-memory change", self._key)

    def _notify(self) -> None:
        snapshot = copy.deepcopy(self._state)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("State listener failed")
