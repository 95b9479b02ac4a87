"""API route handlers for the wikiwisch web API."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from wikiwisch.config import Config
from wikiwisch.feed import FeedController, FeedPool
from wikiwisch.sources.history import fetch_on_this_day
from wikiwisch.sources.http import UpstreamError, get
from wikiwisch.sources.items import FeedParams
from wikiwisch.sources.registry import get_adapter_class, registered_feeds
from wikiwisch.storage import BookmarkStore, PreferenceStore, UnknownCollectionError
from wikiwisch.web.deps import (
    get_bookmarks,
    get_feeds,
    get_http_client,
    get_preferences,
    get_readonly_connection,
)
from wikiwisch.web.models import (
    BookmarkIn,
    BookmarkListResponse,
    BookmarkStatusResponse,
    FeedListResponse,
    FeedStateResponse,
    HistoryResponse,
    PreferencesResponse,
    PreferencesUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()
relay_router = APIRouter()

_RELAY_CACHE_CONTROL = "s-maxage=300, stale-while-revalidate"


@health_router.get("/health")
def health(request: Request) -> JSONResponse:
    """Check database connectivity and return health status."""
    database_path = request.app.state.config.database_path
    try:
        with get_readonly_connection(database_path) as conn:
            conn.execute("SELECT 1 FROM app_state LIMIT 1")
        return JSONResponse({"status": "healthy", "database": "ok"})
    except (sqlite3.Error, OSError) as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "unhealthy", "database": "error", "detail": str(exc)},
            status_code=503,
        )


# ---------------------------------------------------------------------------
# arXiv relay
# ---------------------------------------------------------------------------
@relay_router.get("/api/arxiv")
async def arxiv_relay(
    request: Request,
    search_query: str | None = None,
    start: str = "0",
    max_results: str = "5",
) -> Response:
    """Forward a query to the arXiv API and return its Atom XML verbatim."""
    if not search_query:
        return JSONResponse({"error": "search_query is required"}, status_code=400)

    config: Config = request.app.state.config
    params = {
        "search_query": search_query,
        "start": start,
        "max_results": max_results,
        "sortBy": "submittedDate",
        "sortOrder": "descending",
    }
    try:
        upstream = await get(request.app.state.http_client, config.arxiv_endpoint, params=params)
    except UpstreamError as exc:
        logger.error("arXiv relay failed: %s", exc)
        return JSONResponse({"error": "Failed to fetch from arXiv"}, status_code=500)

    if not upstream.is_success:
        logger.warning("arXiv relay got HTTP %d", upstream.status_code)
        return JSONResponse({"error": "arXiv API error"}, status_code=upstream.status_code)

    return Response(
        content=upstream.text,
        media_type="application/xml",
        headers={"Cache-Control": _RELAY_CACHE_CONTROL},
    )


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------
@router.get("/feeds", response_model=FeedListResponse)
def list_feeds() -> FeedListResponse:
    return FeedListResponse(feeds=registered_feeds())


def _feed_controller(
    feeds: FeedPool,
    preferences: PreferenceStore,
    feed_id: str,
    topics: str | None,
    category: str | None,
) -> FeedController:
    """The live controller for ``feed_id``. Filters default to the stored preferences."""
    if get_adapter_class(feed_id) is None:
        raise HTTPException(status_code=404, detail="Feed not found")

    prefs = preferences.get()
    if topics is None:
        topic_list = prefs.topics
    else:
        topic_list = tuple(t.strip() for t in topics.split(",") if t.strip())
    params = FeedParams(
        topics=topic_list,
        category=category if category is not None else prefs.category_for(feed_id),
    )
    return feeds.get(feed_id, params)


def _feed_response(feed_id: str, controller: FeedController) -> FeedStateResponse:
    return FeedStateResponse(
        feed=feed_id,
        topics=list(controller.params.topics),
        category=controller.params.category,
        **controller.snapshot().to_dict(),
    )


@router.get("/feeds/{feed_id}", response_model=FeedStateResponse)
async def feed_state(
    feed_id: str,
    topics: str | None = None,
    category: str | None = None,
    feeds: FeedPool = Depends(get_feeds),
    preferences: PreferenceStore = Depends(get_preferences),
) -> FeedStateResponse:
    """Current state of a feed; the first page is loaded on first access."""
    controller = _feed_controller(feeds, preferences, feed_id, topics, category)
    if not controller.pages and controller.error is None:
        await controller.fetch_next()
    return _feed_response(feed_id, controller)


@router.post("/feeds/{feed_id}/next", response_model=FeedStateResponse)
async def feed_next(
    feed_id: str,
    topics: str | None = None,
    category: str | None = None,
    feeds: FeedPool = Depends(get_feeds),
    preferences: PreferenceStore = Depends(get_preferences),
) -> FeedStateResponse:
    """Append the next page. A no-op while a fetch is running or the feed is exhausted."""
    controller = _feed_controller(feeds, preferences, feed_id, topics, category)
    await controller.fetch_next()
    return _feed_response(feed_id, controller)


@router.post("/feeds/{feed_id}/refetch", response_model=FeedStateResponse)
async def feed_refetch(
    feed_id: str,
    topics: str | None = None,
    category: str | None = None,
    feeds: FeedPool = Depends(get_feeds),
    preferences: PreferenceStore = Depends(get_preferences),
) -> FeedStateResponse:
    """Drop everything fetched so far and load the first page again."""
    controller = _feed_controller(feeds, preferences, feed_id, topics, category)
    await controller.refetch()
    return _feed_response(feed_id, controller)


@router.get("/history", response_model=HistoryResponse)
async def history(client=Depends(get_http_client)) -> HistoryResponse:
    today = date.today()
    try:
        events = await fetch_on_this_day(client, today)
    except UpstreamError as exc:
        logger.warning("On-this-day fetch failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return HistoryResponse(
        date=today.isoformat(),
        events=[event.to_dict() for event in events],
        total=len(events),
    )


# ---------------------------------------------------------------------------
# Bookmarks
# ---------------------------------------------------------------------------
def _list_response(bookmarks: BookmarkStore, collection: str) -> BookmarkListResponse:
    try:
        records = bookmarks.list(collection)
    except UnknownCollectionError:
        raise HTTPException(status_code=404, detail="Collection not found")
    return BookmarkListResponse(collection=collection, bookmarks=records, total=len(records))


@router.get("/bookmarks/{collection}", response_model=BookmarkListResponse)
def list_bookmarks(
    collection: str, bookmarks: BookmarkStore = Depends(get_bookmarks)
) -> BookmarkListResponse:
    return _list_response(bookmarks, collection)


@router.post("/bookmarks/{collection}", response_model=BookmarkListResponse, status_code=201)
def add_bookmark(
    collection: str,
    body: BookmarkIn,
    bookmarks: BookmarkStore = Depends(get_bookmarks),
) -> BookmarkListResponse:
    try:
        bookmarks.add(collection, body.model_dump())
    except UnknownCollectionError:
        raise HTTPException(status_code=404, detail="Collection not found")
    return _list_response(bookmarks, collection)


@router.delete("/bookmarks/{collection}", response_model=BookmarkListResponse)
def clear_bookmarks(
    collection: str, bookmarks: BookmarkStore = Depends(get_bookmarks)
) -> BookmarkListResponse:
    try:
        bookmarks.clear(collection)
    except UnknownCollectionError:
        raise HTTPException(status_code=404, detail="Collection not found")
    return _list_response(bookmarks, collection)


@router.get("/bookmarks/{collection}/{item_id}", response_model=BookmarkStatusResponse)
def bookmark_status(
    collection: str, item_id: str, bookmarks: BookmarkStore = Depends(get_bookmarks)
) -> BookmarkStatusResponse:
    try:
        bookmarked = bookmarks.has(collection, item_id)
    except UnknownCollectionError:
        raise HTTPException(status_code=404, detail="Collection not found")
    return BookmarkStatusResponse(collection=collection, id=item_id, bookmarked=bookmarked)


@router.delete("/bookmarks/{collection}/{item_id}", response_model=BookmarkListResponse)
def remove_bookmark(
    collection: str, item_id: str, bookmarks: BookmarkStore = Depends(get_bookmarks)
) -> BookmarkListResponse:
    try:
        bookmarks.remove(collection, item_id)
    except UnknownCollectionError:
        raise HTTPException(status_code=404, detail="Collection not found")
    return _list_response(bookmarks, collection)


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------
@router.get("/preferences", response_model=PreferencesResponse)
def get_preferences_route(
    preferences: PreferenceStore = Depends(get_preferences),
) -> PreferencesResponse:
    return PreferencesResponse(**preferences.get().to_dict())


@router.patch("/preferences", response_model=PreferencesResponse)
def update_preferences(
    body: PreferencesUpdate,
    preferences: PreferenceStore = Depends(get_preferences),
) -> PreferencesResponse:
    if body.theme is not None:
        preferences.set_theme(body.theme)
    if body.topics is not None:
        preferences.set_topics(body.topics)
    for feed in ("arxiv", "medrxiv", "biorxiv"):
        value = getattr(body, f"{feed}_category")
        if value is not None:
            preferences.set_category(feed, value)
    if body.tab_order is not None:
        preferences.set_tab_order(body.tab_order)
    if body.toggle_topic is not None:
        preferences.toggle_topic(body.toggle_topic)
    if body.toggle_tab is not None:
        preferences.toggle_tab(body.toggle_tab)
    return PreferencesResponse(**preferences.get().to_dict())
