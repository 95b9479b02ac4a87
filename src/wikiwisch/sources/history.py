"""Wikimedia "On this day" — a one-shot fetch, not an incremental feed."""

from __future__ import annotations

import logging
from datetime import date

import httpx

from wikiwisch.sources.http import get_json
from wikiwisch.sources.items import HistoryEvent
from wikiwisch.sources.normalize import build_item, text_or_empty

logger = logging.getLogger(__name__)

ON_THIS_DAY_API = "https://api.wikimedia.org/feed/v1/wikipedia/en/onthisday"
_MAX_BIRTHS = 10
_MAX_DEATHS = 10


def on_this_day_url(day: date) -> str:
    return f"{ON_THIS_DAY_API}/all/{day.month:02d}/{day.day:02d}"


def _to_event(record: dict, event_type: str) -> HistoryEvent | None:
    pages = record.get("pages") or []
    if not pages:
        return None
    page = pages[0]
    year = record.get("year")
    title = (page.get("titles") or {}).get("normalized") or page.get("title")
    thumbnail = (page.get("thumbnail") or {}).get("source")
    wiki_url = ((page.get("content_urls") or {}).get("desktop") or {}).get("page")
    pageid = page.get("pageid")
    return build_item(
        HistoryEvent,
        source="history",
        id=f"{event_type}-{year}-{pageid}" if pageid is not None else None,
        title=title,
        body=text_or_empty(page.get("extract")),
        year=year,
        text=text_or_empty(record.get("text")),
        type=event_type,
        description=text_or_empty(page.get("description")),
        thumbnail=thumbnail,
        wiki_url=wiki_url,
        link=wiki_url,
        media=tuple(u for u in (thumbnail,) if u),
    )


def parse_on_this_day(data: dict) -> list[HistoryEvent]:
    """Events, then the first births and deaths, newest year first."""
    records = (
        [(r, "event") for r in data.get("events") or []]
        + [(r, "birth") for r in (data.get("births") or [])[:_MAX_BIRTHS]]
        + [(r, "death") for r in (data.get("deaths") or [])[:_MAX_DEATHS]]
    )
    events = [
        event for event in (_to_event(r, kind) for r, kind in records)
        if event is not None
    ]
    events.sort(key=lambda e: e.year if isinstance(e.year, int) else 0, reverse=True)
    return events


async def fetch_on_this_day(client: httpx.AsyncClient, day: date | None = None) -> list[HistoryEvent]:
    """Fetch everything that happened on ``day`` (default: today).

    Raises ``UpstreamError`` on transport or status failures.
    """
    day = day or date.today()
    data = await get_json(
        client, on_this_day_url(day), headers={"Accept": "application/json"}
    )
    events = parse_on_this_day(data)
    logger.info("Fetched %d on-this-day events for %02d/%02d", len(events), day.month, day.day)
    return events
