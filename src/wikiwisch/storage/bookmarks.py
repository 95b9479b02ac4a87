"""Bookmark collections, one per source, stored inside the shared state blob."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping

from wikiwisch.sources.items import FeedItem
from wikiwisch.storage.migrations import COLLECTIONS
from wikiwisch.storage.state import StateStore

logger = logging.getLogger(__name__)

# Fields kept for each collection, besides id and saved_at.
PROJECTIONS: dict[str, tuple[str, ...]] = {
    "wiki": ("title", "thumbnail"),
    "arxiv": ("title", "authors", "abs_link"),
    "preprint": ("title", "authors", "server", "abs_link"),
    "art": ("title", "artist", "thumbnail_url", "detail_url"),
    "nasa": ("title", "date", "url", "hd_url"),
    "history": ("title", "year", "type", "text", "wiki_url"),
}
_MAX_AUTHORS = 3


class UnknownCollectionError(KeyError):
    """Raised for a collection id outside ``COLLECTIONS``."""


def _now_ms() -> int:
    return int(time.time() * 1000)


def project(collection: str, item: FeedItem | Mapping[str, Any]) -> dict[str, Any]:
    """Reduce ``item`` to the stored subset of fields for ``collection``."""
    data = item.to_dict() if isinstance(item, FeedItem) else dict(item)
    if data.get("id") is None:
        raise ValueError("Cannot bookmark an item without an id")

    record: dict[str, Any] = {"id": str(data["id"])}
    for name in PROJECTIONS[collection]:
        value = data.get(name)
        if name == "authors":
            value = list(value or [])[:_MAX_AUTHORS]
        record[name] = value
    return record


class BookmarkStore:
    """add / remove / has / clear over the six bookmark collections.

    Collections are newest-first and unique by id. Every mutation goes
    through ``StateStore.mutate`` and so persists the whole blob.
    """

    def __init__(self, store: StateStore, clock: Callable[[], int] = _now_ms) -> None:
        self._store = store
        self._clock = clock

    def list(self, collection: str) -> list[dict]:
        self._check(collection)
        return self._store.get()["bookmarks"].get(collection, [])

    def has(self, collection: str, item_id: str) -> bool:
        self._check(collection)
        item_id = str(item_id)
        return any(record.get("id") == item_id for record in self.list(collection))

    def add(self, collection: str, item: FeedItem | Mapping[str, Any]) -> dict | None:
        """Prepend ``item``; a no-op if its id is already saved.

        Returns the stored record, or None when nothing was added.
        """
        self._check(collection)
        record = project(collection, item)
        added: list[dict] = []

        def apply(state: dict) -> None:
            records = state["bookmarks"].setdefault(collection, [])
            if any(r.get("id") == record["id"] for r in records):
                return
            record["saved_at"] = self._clock()
            records.insert(0, record)
            added.append(record)

        self._store.mutate(apply)
        if added:
            logger.info("Bookmarked %s/%s", collection, record["id"])
            return dict(added[0])
        return None

    def remove(self, collection: str, item_id: str) -> bool:
        """Remove the record with ``item_id``. Returns whether one was removed."""
        self._check(collection)
        item_id = str(item_id)
        removed = []

        def apply(state: dict) -> None:
            records = state["bookmarks"].get(collection, [])
            kept = [r for r in records if r.get("id") != item_id]
            if len(kept) != len(records):
                state["bookmarks"][collection] = kept
                removed.append(item_id)

        self._store.mutate(apply)
        return bool(removed)

    def clear(self, collection: str) -> None:
        self._check(collection)

        def apply(state: dict) -> None:
            state["bookmarks"][collection] = []

        self._store.mutate(apply)
        logger.info("Cleared %s bookmarks", collection)

    @staticmethod
    def _check(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise UnknownCollectionError(collection)
