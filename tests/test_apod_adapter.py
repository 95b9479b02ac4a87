"""Tests for wikiwisch.sources.apod_adapter — date windows, filtering, retry."""

from __future__ import annotations

from datetime import date

import pytest

from conftest import FakeHTTPClient, make_response
from wikiwisch.sources.apod_adapter import NASA_APOD_API, ApodAdapter, date_window
from wikiwisch.sources.http import RateLimitError, UpstreamError
from wikiwisch.sources.items import FeedParams

TODAY = date(2024, 3, 10)


def _entry(day, *, copyright=None, media_type="image"):
    record = {
        "date": day,
        "title": f"Sky on {day}",
        "explanation": "Stars and things.",
        "media_type": media_type,
        "url": f"https://apod.example/{day}.jpg",
        "hdurl": f"https://apod.example/{day}-hd.jpg",
    }
    if copyright:
        record["copyright"] = copyright
    return record


class _Sleeper:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _adapter(handler, sleeper=None):
    client = FakeHTTPClient(handler)
    adapter = ApodAdapter(client, today=lambda: TODAY, sleep=sleeper or _Sleeper())
    return adapter, client


class TestDateWindow:
    def test_first_page_ends_today(self):
        assert date_window(0, 3, TODAY) == (date(2024, 3, 8), date(2024, 3, 10))

    def test_later_pages_step_back(self):
        assert date_window(2, 3, TODAY) == (date(2024, 3, 2), date(2024, 3, 4))


class TestApodAdapter:
    @pytest.mark.asyncio
    async def test_newest_first_and_params(self):
        days = ["2024-03-08", "2024-03-09", "2024-03-10"]
        adapter, client = _adapter(lambda url, params: make_response(url, json_data=[_entry(d) for d in days]))
        adapter.configure({"api_key": "KEY", "retry_delay": 1.0})

        page = await adapter.fetch_page(FeedParams(), 0)

        assert [e.id for e in page.items] == ["2024-03-10", "2024-03-09", "2024-03-08"]
        assert page.items[0].hd_url == "https://apod.example/2024-03-10-hd.jpg"
        assert page.items[0].link == "https://apod.nasa.gov/apod/ap240310.html"
        assert page.has_more is True
        assert page.next_cursor == 1
        url, params = client.calls[0]
        assert url == NASA_APOD_API
        assert params == {
            "api_key": "KEY",
            "start_date": "2024-03-08",
            "end_date": "2024-03-10",
            "thumbs": "true",
        }

    @pytest.mark.asyncio
    async def test_copyrighted_entries_filtered_and_end_feed(self):
        records = [_entry("2024-03-08"), _entry("2024-03-09", copyright="Someone"), _entry("2024-03-10")]
        adapter, _ = _adapter(lambda url, params: make_response(url, json_data=records))

        page = await adapter.fetch_page(FeedParams(), 0)

        assert [e.id for e in page.items] == ["2024-03-10", "2024-03-08"]
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_video_uses_thumbnail(self):
        record = {**_entry("2024-03-10", media_type="video"), "thumbnail_url": "https://img.example/t.jpg"}
        adapter, _ = _adapter(lambda url, params: make_response(url, json_data=[record]))

        page = await adapter.fetch_page(FeedParams(), 0)

        assert page.items[0].thumbnail_url == "https://img.example/t.jpg"
        assert page.items[0].media == ("https://img.example/t.jpg",)

    @pytest.mark.asyncio
    async def test_retries_once_after_rate_limit(self):
        responses = iter([
            make_response(NASA_APOD_API, 429, json_data={"error": {"code": "OVER_RATE_LIMIT"}}),
            make_response(NASA_APOD_API, json_data=[_entry("2024-03-10")]),
        ])
        sleeper = _Sleeper()
        adapter, client = _adapter(lambda url, params: next(responses), sleeper)
        adapter.configure({"retry_delay": 5.0})

        page = await adapter.fetch_page(FeedParams(), 0)

        assert [e.id for e in page.items] == ["2024-03-10"]
        assert len(client.calls) == 2
        assert sleeper.delays == [5.0]

    @pytest.mark.asyncio
    async def test_second_rate_limit_surfaces(self):
        adapter, client = _adapter(
            lambda url, params: make_response(url, 429, json_data={"error": {"code": "OVER_RATE_LIMIT"}})
        )

        with pytest.raises(RateLimitError, match="rate limit"):
            await adapter.fetch_page(FeedParams(), 0)
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_server_error_is_retried_then_raised(self):
        adapter, client = _adapter(lambda url, params: make_response(url, 500, text="oops"))

        with pytest.raises(UpstreamError) as exc_info:
            await adapter.fetch_page(FeedParams(), 0)
        assert not isinstance(exc_info.value, RateLimitError)
        assert exc_info.value.status_code == 500
        assert len(client.calls) == 2
