"""Shared objects the route handlers pull off the running application."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Generator

import httpx
from fastapi import Request

from wikiwisch.feed import FeedPool
from wikiwisch.storage import BookmarkStore, PreferenceStore, StateStore


@contextmanager
def get_readonly_connection(database_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Open a read-only SQLite connection.

    URI mode means a missing database file is an error instead of being
    silently created.
    """
    conn = sqlite3.connect(f"file:{database_path}?mode=ro", uri=True)
    conn.execute("PRAGMA query_only=ON")
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def get_store(request: Request) -> StateStore:
    return request.app.state.store


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_feeds(request: Request) -> FeedPool:
    return request.app.state.feeds


def get_bookmarks(request: Request) -> BookmarkStore:
    return BookmarkStore(get_store(request))


def get_preferences(request: Request) -> PreferenceStore:
    return PreferenceStore(get_store(request))
