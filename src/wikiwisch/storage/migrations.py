"""Versioned schema for the persisted state blob.

The blob started life as the browser's localStorage object (camelCase keys,
one flat list per bookmark source, no version field). Each entry in
``MIGRATIONS`` lifts a blob from version N to N+1. Steps are pure and each
one is a no-op on a blob that already has its target shape.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 3

THEMES = ("system", "light", "dark")
TOPICS = ("science", "history", "technology", "arts", "geography", "nature", "philosophy", "sports")
FEEDS = ("wiki", "arxiv", "medrxiv", "biorxiv", "art", "nasa", "history")
COLLECTIONS = ("wiki", "arxiv", "preprint", "art", "nasa", "history")

DEFAULT_STATE: dict[str, Any] = {
    "schema_version": CURRENT_SCHEMA_VERSION,
    "theme": "system",
    "topics": ["science", "history", "technology", "arts", "geography"],
    "arxiv_category": "cs.AI",
    "medrxiv_category": "all",
    "biorxiv_category": "all",
    "tab_order": list(FEEDS),
    # biorxiv is opt-in
    "enabled_tabs": ["wiki", "arxiv", "medrxiv", "art", "nasa", "history"],
    "bookmarks": {collection: [] for collection in COLLECTIONS},
}

# Key and record-field renames applied by the 2 -> 3 step.
_LEGACY_KEYS = {
    "theme": "theme",
    "categories": "topics",
    "arxivCategory": "arxiv_category",
    "medrxivCategory": "medrxiv_category",
    "biorxivCategory": "biorxiv_category",
    "tabOrder": "tab_order",
    "enabledTabs": "enabled_tabs",
}
_LEGACY_COLLECTIONS = {
    "bookmarks": "wiki",
    "arxivBookmarks": "arxiv",
    "biorxivBookmarks": "preprint",
    "artBookmarks": "art",
    "nasaBookmarks": "nasa",
    "historyBookmarks": "history",
}
_LEGACY_RECORD_FIELDS = {
    "pageid": "id",
    "savedAt": "saved_at",
    "absLink": "abs_link",
    "thumbnailUrl": "thumbnail_url",
    "detailUrl": "detail_url",
    "hdUrl": "hd_url",
    "wikiUrl": "wiki_url",
}


def _add_preprint_tabs(state: dict) -> dict:
    """0 -> 1: the preprint tabs were added after the first release."""
    tab_order = state.get("tabOrder")
    if isinstance(tab_order, list) and "medrxiv" not in tab_order:
        # Right after arxiv; at the front when there is no arxiv tab.
        anchor = tab_order.index("arxiv") + 1 if "arxiv" in tab_order else 0
        extra = [tab for tab in ("medrxiv", "biorxiv") if tab not in tab_order]
        state["tabOrder"] = tab_order[:anchor] + extra + tab_order[anchor:]

    enabled = state.get("enabledTabs")
    if isinstance(enabled, list) and "medrxiv" not in enabled and "biorxiv" not in enabled:
        state["enabledTabs"] = enabled + ["medrxiv"]
    return state


def _records(value: Any) -> list[dict]:
    """The dict entries of a stored bookmark list; anything else is dropped."""
    if not isinstance(value, list):
        return []
    return [record for record in value if isinstance(record, dict)]


def _saved_at(record: dict) -> float:
    value = record.get("savedAt")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _merge_preprint_bookmarks(state: dict) -> dict:
    """1 -> 2: one combined collection covers both preprint servers."""
    legacy = state.pop("medrxivBookmarks", None)
    if not legacy:
        return state
    combined = _records(state.get("biorxivBookmarks")) + _records(legacy)
    combined.sort(key=_saved_at, reverse=True)
    seen: set[str] = set()
    merged = []
    for record in combined:
        key = str(record.get("id"))
        if key in seen:
            continue
        seen.add(key)
        merged.append(record)
    state["biorxivBookmarks"] = merged
    return state


def _rename_record(record: dict) -> dict:
    renamed = {_LEGACY_RECORD_FIELDS.get(key, key): value for key, value in record.items()}
    if renamed.get("id") is not None:
        renamed["id"] = str(renamed["id"])
    return renamed


def _rename_legacy_keys(state: dict) -> dict:
    """2 -> 3: snake_case settings and a nested bookmarks mapping."""
    for old, new in _LEGACY_KEYS.items():
        if old in state and old != new:
            state[new] = state.pop(old)

    bookmarks = state.get("bookmarks")
    if not isinstance(bookmarks, dict):
        # Legacy "bookmarks" was the flat Wikipedia list.
        bookmarks = {}
    for old, collection in _LEGACY_COLLECTIONS.items():
        if old == "bookmarks":
            legacy = state.get("bookmarks")
            records = legacy if isinstance(legacy, list) else None
        else:
            records = state.pop(old, None)
        if records is not None:
            bookmarks[collection] = [_rename_record(r) for r in _records(records)]
    state["bookmarks"] = bookmarks
    return state


MIGRATIONS: dict[int, Callable[[dict], dict]] = {
    0: _add_preprint_tabs,
    1: _merge_preprint_bookmarks,
    2: _rename_legacy_keys,
}


def schema_version(state: dict) -> int:
    """Stored version; blobs written before versioning count as 0."""
    version = state.get("schema_version", 0)
    return version if isinstance(version, int) else 0


def migrate_state(state: dict) -> dict:
    """Bring ``state`` up to ``CURRENT_SCHEMA_VERSION``. Returns a new dict."""
    migrated = copy.deepcopy(state)
    version = schema_version(migrated)
    if version > CURRENT_SCHEMA_VERSION:
        logger.warning(
            "Stored state has schema version %d, newer than %d; using it as-is",
            version, CURRENT_SCHEMA_VERSION,
        )
        return migrated

    while version < CURRENT_SCHEMA_VERSION:
        migrated = MIGRATIONS[version](migrated)
        version += 1
        migrated["schema_version"] = version
        logger.info("Migrated stored state to schema version %d", version)
    return migrated


def apply_defaults(state: dict) -> dict:
    """Merge ``state`` over the defaults so newly added fields are backfilled."""
    merged = copy.deepcopy(DEFAULT_STATE)
    for key, value in state.items():
        if key == "bookmarks":
            if not isinstance(value, dict):
                continue
            for collection, records in value.items():
                if isinstance(records, list):
                    merged["bookmarks"][collection] = copy.deepcopy(_records(records))
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def upgrade(state: dict) -> dict:
    """Full load-time pipeline: migrate, then backfill defaults."""
    return apply_defaults(migrate_state(state))
