"""Normalized feed items, pages, and feed filter parameters."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar


@dataclass(frozen=True)
class FeedParams:
    """Filter parameters a feed is created for.

    Hashable so an in-flight request can be tagged with the parameter set it
    was issued for.
    """

    topics: tuple[str, ...] = ()
    category: str | None = None


@dataclass(frozen=True, kw_only=True)
class FeedItem:
    """Common shape shared by every source's items.

    ``id`` is stable across repeated fetches of the same upstream item and is
    used as the bookmark key.
    """

    kind: ClassVar[str] = "item"

    id: str
    title: str
    body: str = ""
    link: str | None = None
    media: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind
        return data


@dataclass(frozen=True, kw_only=True)
class WikiArticle(FeedItem):
    kind: ClassVar[str] = "wiki"

    description: str = ""
    thumbnail: str | None = None
    original_image: str | None = None


@dataclass(frozen=True, kw_only=True)
class ArxivPaper(FeedItem):
    kind: ClassVar[str] = "arxiv"

    authors: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    published: str = ""
    updated: str = ""
    pdf_link: str = ""
    abs_link: str = ""


@dataclass(frozen=True, kw_only=True)
class PreprintPaper(FeedItem):
    kind: ClassVar[str] = "preprint"

    authors: tuple[str, ...] = ()
    category: str = ""
    date: str = ""
    server: str = ""
    version: str = ""
    abs_link: str = ""
    pdf_link: str = ""


@dataclass(frozen=True, kw_only=True)
class Artwork(FeedItem):
    kind: ClassVar[str] = "art"

    artist: str = ""
    date: str = ""
    medium: str = ""
    department: str = ""
    image_url: str = ""
    thumbnail_url: str = ""
    detail_url: str = ""


@dataclass(frozen=True, kw_only=True)
class ApodEntry(FeedItem):
    kind: ClassVar[str] = "nasa"

    date: str = ""
    media_type: str = ""
    url: str = ""
    hd_url: str | None = None
    thumbnail_url: str = ""


@dataclass(frozen=True, kw_only=True)
class HistoryEvent(FeedItem):
    kind: ClassVar[str] = "history"

    year: int | None = None
    text: str = ""
    type: str = "event"
    description: str = ""
    thumbnail: str | None = None
    wiki_url: str | None = None


@dataclass(frozen=True)
class Page:
    """One adapter call's batch. Never mutated after creation."""

    items: tuple[FeedItem, ...]
    next_cursor: Any
    has_more: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "next_cursor": self.next_cursor,
            "has_more": self.has_more,
        }
