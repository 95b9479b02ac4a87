"""Shared fixtures: an in-process stand-in for the upstream HTTP client."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from wikiwisch.storage.schema import init_db
from wikiwisch.storage.state import StateStore


def make_response(url: str, status: int = 200, *, json_data: Any = None, text: str | None = None) -> httpx.Response:
    """A real ``httpx.Response`` bound to a GET request for ``url``."""
    request = httpx.Request("GET", url)
    if json_data is not None:
        return httpx.Response(status, json=json_data, request=request)
    return httpx.Response(status, text=text or "", request=request)


class FakeHTTPClient:
    """Answers ``get`` calls through ``handler(url, params)``.

    The handler returns an ``httpx.Response`` or an exception instance, which
    is raised. Every call is recorded in ``calls``.
    """

    def __init__(self, handler: Callable[[str, dict], Any]) -> None:
        self._handler = handler
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    async def get(self, url: str, params: dict | None = None, headers: dict | None = None) -> httpx.Response:
        params = dict(params or {})
        self.calls.append((url, params))
        result = self._handler(url, params)
        if isinstance(result, BaseException):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True

    def urls(self, contains: str = "") -> list[str]:
        return [url for url, _ in self.calls if contains in url]


@pytest.fixture()
def db_path(tmp_path):
    path = str(tmp_path / "test.db")
    init_db(path)
    return path


@pytest.fixture()
def store(db_path):
    state_store = StateStore(db_path, "test_state")
    state_store.load()
    return state_store
