"""Storage layer — SQLite-backed persisted state, bookmarks and preferences."""

from wikiwisch.storage.bookmarks import BookmarkStore, UnknownCollectionError
from wikiwisch.storage.connection import get_connection
from wikiwisch.storage.preferences import Preferences, PreferenceStore
from wikiwisch.storage.schema import init_db
from wikiwisch.storage.state import StateStore

__all__ = [
    "BookmarkStore",
    "PreferenceStore",
    "Preferences",
    "StateStore",
    "UnknownCollectionError",
    "get_connection",
    "init_db",
]
