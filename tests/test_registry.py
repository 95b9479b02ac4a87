"""Tests for wikiwisch.sources.registry — adapter registry."""

from __future__ import annotations

import pytest

import wikiwisch.sources  # noqa: F401
from wikiwisch.sources.adapter import SourceAdapter
from wikiwisch.sources.apod_adapter import ApodAdapter
from wikiwisch.sources.items import Page
from wikiwisch.sources.preprint_adapter import PreprintAdapter
from wikiwisch.sources.registry import (
    _REGISTRY,
    build_adapter,
    get_adapter_class,
    register_adapter,
    registered_feeds,
)


class _DummyAdapter(SourceAdapter):
    @property
    def name(self) -> str:
        return "dummy"

    def configure(self, config: dict) -> None:
        self.config = config

    async def fetch_page(self, params, cursor):
        return Page(items=(), next_cursor=cursor, has_more=False)


class TestRegistry:
    def setup_method(self):
        self._original = dict(_REGISTRY)

    def teardown_method(self):
        _REGISTRY.clear()
        _REGISTRY.update(self._original)

    def test_register_and_lookup(self):
        register_adapter("dummy", _DummyAdapter)
        assert get_adapter_class("dummy") is _DummyAdapter

    def test_lookup_unknown_returns_none(self):
        assert get_adapter_class("nonexistent") is None

    def test_registered_feeds_sorted(self):
        register_adapter("zzz", _DummyAdapter)
        register_adapter("aaa", _DummyAdapter)
        feeds = registered_feeds()
        assert feeds[0] == "aaa"
        assert "zzz" in feeds

    def test_default_feeds(self):
        assert set(registered_feeds()) >= {"wiki", "arxiv", "medrxiv", "biorxiv", "art", "nasa"}
        assert get_adapter_class("medrxiv") is PreprintAdapter
        assert get_adapter_class("biorxiv") is PreprintAdapter

    def test_history_is_not_a_feed(self):
        assert get_adapter_class("history") is None

    def test_build_adapter_configures(self):
        register_adapter("dummy", _DummyAdapter)
        adapter = build_adapter("dummy", client=None, settings={"dummy": {"x": 1}})
        assert adapter.config == {"x": 1}

    def test_build_adapter_without_settings(self):
        adapter = build_adapter("nasa", client=None)
        assert isinstance(adapter, ApodAdapter)

    def test_build_unknown_raises(self):
        with pytest.raises(KeyError):
            build_adapter("nope", client=None)
