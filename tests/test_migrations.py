"""Tests for wikiwisch.storage.migrations — versioned state upgrades."""

from __future__ import annotations

import copy

import pytest

from wikiwisch.storage.migrations import (
    CURRENT_SCHEMA_VERSION,
    DEFAULT_STATE,
    MIGRATIONS,
    apply_defaults,
    migrate_state,
    upgrade,
)

LEGACY_BLOB = {
    "theme": "dark",
    "categories": ["science", "sports"],
    "arxivCategory": "cs.LG",
    "tabOrder": ["wiki", "arxiv", "art", "nasa", "history"],
    "enabledTabs": ["wiki", "arxiv", "art"],
    "bookmarks": [
        {"pageid": 736, "title": "Albert Einstein", "thumbnail": "https://img/736.jpg", "savedAt": 1000},
    ],
    "arxivBookmarks": [
        {"id": "2401.00001v1", "title": "A paper", "authors": ["A", "B"], "absLink": "https://arxiv.org/abs/2401.00001v1", "savedAt": 900},
    ],
    "medrxivBookmarks": [
        {"id": "10.1/m1", "title": "Med one", "server": "medrxiv", "savedAt": 3000},
        {"id": "10.1/shared", "title": "Shared (med)", "server": "medrxiv", "savedAt": 2500},
    ],
    "biorxivBookmarks": [
        {"id": "10.1/b1", "title": "Bio one", "server": "biorxiv", "savedAt": 2000},
        {"id": "10.1/shared", "title": "Shared (bio)", "server": "biorxiv", "savedAt": 1500},
    ],
    "nasaBookmarks": [
        {"id": "2024-01-01", "title": "Nebula", "date": "2024-01-01", "url": "u", "hdUrl": "hd", "savedAt": 800},
    ],
}


class TestIndividualSteps:
    def test_preprint_tabs_inserted_after_arxiv(self):
        state = MIGRATIONS[0](copy.deepcopy(LEGACY_BLOB))
        assert state["tabOrder"] == ["wiki", "arxiv", "medrxiv", "biorxiv", "art", "nasa", "history"]
        assert state["enabledTabs"] == ["wiki", "arxiv", "art", "medrxiv"]

    def test_preprint_tabs_step_is_idempotent(self):
        once = MIGRATIONS[0](copy.deepcopy(LEGACY_BLOB))
        twice = MIGRATIONS[0](copy.deepcopy(once))
        assert once == twice

    def test_enabled_biorxiv_is_left_alone(self):
        blob = {"tabOrder": ["wiki", "arxiv"], "enabledTabs": ["biorxiv"]}
        state = MIGRATIONS[0](blob)
        assert state["enabledTabs"] == ["biorxiv"]

    def test_preprint_bookmarks_merged_newest_first(self):
        state = MIGRATIONS[1](copy.deepcopy(LEGACY_BLOB))
        assert "medrxivBookmarks" not in state
        assert [r["id"] for r in state["biorxivBookmarks"]] == ["10.1/m1", "10.1/shared", "10.1/b1"]
        assert state["biorxivBookmarks"][1]["title"] == "Shared (med)"

    def test_merge_step_is_idempotent(self):
        once = MIGRATIONS[1](copy.deepcopy(LEGACY_BLOB))
        assert MIGRATIONS[1](copy.deepcopy(once)) == once

    def test_rename_step_nests_bookmarks(self):
        state = MIGRATIONS[2](copy.deepcopy(LEGACY_BLOB))
        assert state["topics"] == ["science", "sports"]
        assert state["arxiv_category"] == "cs.LG"
        assert "categories" not in state
        assert state["bookmarks"]["wiki"] == [
            {"id": "736", "title": "Albert Einstein", "thumbnail": "https://img/736.jpg", "saved_at": 1000},
        ]
        assert state["bookmarks"]["arxiv"][0]["abs_link"] == "https://arxiv.org/abs/2401.00001v1"
        assert state["bookmarks"]["nasa"][0]["hd_url"] == "hd"

    def test_rename_step_is_idempotent(self):
        once = MIGRATIONS[2](copy.deepcopy(LEGACY_BLOB))
        assert MIGRATIONS[2](copy.deepcopy(once)) == once


class TestMigrateState:
    def test_legacy_blob_reaches_current_version(self):
        state = migrate_state(LEGACY_BLOB)

        assert state["schema_version"] == CURRENT_SCHEMA_VERSION
        assert state["theme"] == "dark"
        assert state["tab_order"] == ["wiki", "arxiv", "medrxiv", "biorxiv", "art", "nasa", "history"]
        assert [r["id"] for r in state["bookmarks"]["preprint"]] == ["10.1/m1", "10.1/shared", "10.1/b1"]
        assert state["bookmarks"]["preprint"][0]["saved_at"] == 3000

    def test_input_is_not_mutated(self):
        original = copy.deepcopy(LEGACY_BLOB)
        migrate_state(LEGACY_BLOB)
        assert LEGACY_BLOB == original

    def test_migrating_twice_equals_once(self):
        once = upgrade(LEGACY_BLOB)
        twice = upgrade(once)
        assert once == twice

    def test_current_version_untouched(self):
        state = copy.deepcopy(DEFAULT_STATE)
        state["theme"] = "light"
        assert migrate_state(state) == state

    def test_newer_version_used_as_is(self, caplog):
        future = {"schema_version": CURRENT_SCHEMA_VERSION + 1, "mystery": True}
        assert migrate_state(future) == future
        assert "newer" in caplog.text


class TestApplyDefaults:
    def test_missing_tab_order_backfilled(self):
        state = upgrade({"theme": "dark"})

        assert state["theme"] == "dark"
        assert state["tab_order"] == DEFAULT_STATE["tab_order"]
        assert state["enabled_tabs"] == DEFAULT_STATE["enabled_tabs"]

    def test_partial_bookmarks_backfilled(self):
        state = apply_defaults({"bookmarks": {"art": [{"id": "1", "title": "x"}]}})
        assert state["bookmarks"]["art"] == [{"id": "1", "title": "x"}]
        assert state["bookmarks"]["wiki"] == []

    @pytest.mark.parametrize("key", ["topics", "arxiv_category", "medrxiv_category", "biorxiv_category"])
    def test_defaults_present(self, key):
        assert key in apply_defaults({})

    def test_defaults_not_shared(self):
        state = apply_defaults({})
        state["bookmarks"]["wiki"].append({"id": "1"})
        assert DEFAULT_STATE["bookmarks"]["wiki"] == []

    def test_malformed_collections_dropped(self):
        state = apply_defaults({"bookmarks": {"wiki": "oops", "art": [{"id": "1"}, "junk", 7]}})
        assert state["bookmarks"]["wiki"] == []
        assert state["bookmarks"]["art"] == [{"id": "1"}]


class TestMalformedBlobs:
    def test_preprint_tabs_go_first_without_arxiv(self):
        state = MIGRATIONS[0]({"tabOrder": ["wiki", "art"]})
        assert state["tabOrder"] == ["medrxiv", "biorxiv", "wiki", "art"]

    def test_non_dict_preprint_records_skipped(self):
        state = upgrade({"medrxivBookmarks": ["not-a-record", {"id": "10.1/a", "title": "A"}]})
        assert state["bookmarks"]["preprint"] == [{"id": "10.1/a", "title": "A"}]

    def test_mixed_saved_at_types_sort(self):
        state = upgrade({
            "medrxivBookmarks": [{"id": "a", "savedAt": "2024-01-01"}],
            "biorxivBookmarks": [{"id": "b", "savedAt": 1}, {"id": "c", "savedAt": 5}],
        })
        assert [r["id"] for r in state["bookmarks"]["preprint"]] == ["c", "b", "a"]

    def test_non_list_legacy_collection(self):
        state = upgrade({"arxivBookmarks": 12, "bookmarks": "nope"})
        assert state["bookmarks"]["arxiv"] == []
        assert state["bookmarks"]["wiki"] == []
