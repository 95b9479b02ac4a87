"""Pydantic v2 request and response models for the wikiwisch web API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------
class FeedStateResponse(BaseModel):
    """Everything fetched so far for one feed, plus its loading flags."""

    feed: str
    topics: list[str]
    category: str | None
    items: list[dict]
    loading: bool
    is_fetching_next: bool
    has_more: bool
    error: str | None


class FeedListResponse(BaseModel):
    feeds: list[str]


class HistoryResponse(BaseModel):
    date: str
    events: list[dict]
    total: int


# ---------------------------------------------------------------------------
# Bookmarks
# ---------------------------------------------------------------------------
class BookmarkIn(BaseModel):
    """A feed item as the client holds it; extra fields are kept for projection."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class BookmarkListResponse(BaseModel):
    collection: str
    bookmarks: list[dict]
    total: int


class BookmarkStatusResponse(BaseModel):
    collection: str
    id: str
    bookmarked: bool


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------
class PreferencesResponse(BaseModel):
    theme: str
    topics: list[str]
    arxiv_category: str
    medrxiv_category: str
    biorxiv_category: str
    tab_order: list[str]
    enabled_tabs: list[str]


class PreferencesUpdate(BaseModel):
    """Partial update; ``toggle_topic`` and ``toggle_tab`` flip one entry."""

    model_config = ConfigDict(extra="forbid")

    theme: str | None = None
    topics: list[str] | None = None
    arxiv_category: str | None = None
    medrxiv_category: str | None = None
    biorxiv_category: str | None = None
    tab_order: list[str] | None = None
    toggle_topic: str | None = None
    toggle_tab: str | None = None
