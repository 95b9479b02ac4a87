"""NASA Astronomy Picture of the Day source adapter."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Awaitable, Callable

import httpx

from wikiwisch.sources.adapter import SourceAdapter
from wikiwisch.sources.http import RateLimitError, UpstreamError, get
from wikiwisch.sources.items import ApodEntry, FeedParams, Page
from wikiwisch.sources.normalize import build_item, text_or_empty

logger = logging.getLogger(__name__)

NASA_APOD_API = "https://api.nasa.gov/planetary/apod"
DEFAULT_API_KEY = "DEMO_KEY"
_DEFAULT_RETRY_DELAY = 5.0


def date_window(cursor: int, batch_size: int, today: date) -> tuple[date, date]:
    """Descending window of ``batch_size`` days for a page counter."""
    end = today - timedelta(days=cursor * batch_size)
    start = end - timedelta(days=batch_size - 1)
    return start, end


def _record_to_entry(record: dict) -> ApodEntry | None:
    day = text_or_empty(record.get("date"))
    url = text_or_empty(record.get("url"))
    thumbnail_url = text_or_empty(record.get("thumbnail_url")) or url
    return build_item(
        ApodEntry,
        source="nasa",
        id=day,
        title=record.get("title"),
        body=text_or_empty(record.get("explanation")),
        date=day,
        media_type=text_or_empty(record.get("media_type")),
        url=url,
        hd_url=record.get("hdurl"),
        thumbnail_url=thumbnail_url,
        link=f"https://apod.nasa.gov/apod/ap{day.replace('-', '')[2:]}.html" if day else None,
        media=tuple(u for u in (thumbnail_url,) if u),
    )


class ApodAdapter(SourceAdapter):
    """Adapter for the APOD date-range endpoint.

    Copyrighted entries are filtered out, so a page may come back short; a
    short page ends the feed. Upstream failures are retried once after a
    fixed delay to ride out the demo key's rate limit.
    """

    batch_size = 3

    def __init__(
        self,
        client: httpx.AsyncClient,
        today: Callable[[], date] = date.today,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(client)
        self._today = today
        self._sleep = sleep
        self._api_key = DEFAULT_API_KEY
        self._retry_delay = _DEFAULT_RETRY_DELAY

    @property
    def name(self) -> str:
        return "nasa"

    def configure(self, config: dict) -> None:
        self._api_key = config.get("api_key", DEFAULT_API_KEY)
        self._retry_delay = config.get("retry_delay", _DEFAULT_RETRY_DELAY)

    async def fetch_page(self, params: FeedParams, cursor: Any) -> Page:
        cursor = cursor or 0
        start, end = date_window(cursor, self.batch_size, self._today())
        query = {
            "api_key": self._api_key,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "thumbs": "true",
        }

        try:
            data = await self._fetch(query)
        except UpstreamError as exc:
            logger.warning(
                "APOD fetch failed (%s); retrying once in %.1fs", exc, self._retry_delay
            )
            await self._sleep(self._retry_delay)
            data = await self._fetch(query)

        records = data if isinstance(data, list) else [data]
        entries = [
            entry
            for entry in (
                _record_to_entry(r) for r in reversed(records) if not r.get("copyright")
            )
            if entry is not None
        ]

        logger.info("Fetched %d APOD entries (%s to %s)", len(entries), start, end)
        return Page(
            items=tuple(entries),
            next_cursor=cursor + 1,
            has_more=len(entries) == self.batch_size,
        )

    async def _fetch(self, query: dict) -> Any:
        response = await get(self._client, NASA_APOD_API, params=query)
        if response.is_success:
            try:
                return response.json()
            except ValueError as exc:
                raise UpstreamError(
                    "Malformed JSON from APOD", url=NASA_APOD_API
                ) from exc

        try:
            code = ((response.json() or {}).get("error") or {}).get("code")
        except (ValueError, AttributeError):
            code = None
        if code == "OVER_RATE_LIMIT":
            raise RateLimitError(
                "NASA API rate limit reached. Please try again in a few minutes.",
                url=NASA_APOD_API,
                status_code=response.status_code,
            )
        raise UpstreamError(
            f"APOD returned HTTP {response.status_code}",
            url=NASA_APOD_API,
            status_code=response.status_code,
        )
