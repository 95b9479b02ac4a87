"""Art Institute of Chicago source adapter."""

from __future__ import annotations

import logging
from typing import Any

from wikiwisch.sources.adapter import SourceAdapter
from wikiwisch.sources.http import get_json
from wikiwisch.sources.items import Artwork, FeedParams, Page
from wikiwisch.sources.normalize import build_item, text_or_empty

logger = logging.getLogger(__name__)

ART_API = "https://api.artic.edu/api/v1/artworks"
DEFAULT_IIIF_URL = "https://www.artic.edu/iiif/2"
_FIELDS = "id,title,artist_display,date_display,medium_display,department_title,image_id"


def _record_to_artwork(record: dict, iiif_url: str) -> Artwork | None:
    image_id = record.get("image_id")
    if not image_id:
        return None
    image_url = f"{iiif_url}/{image_id}/full/843,/0/default.jpg"
    thumbnail_url = f"{iiif_url}/{image_id}/full/400,/0/default.jpg"
    detail_url = f"https://www.artic.edu/artworks/{record.get('id')}"
    return build_item(
        Artwork,
        source="art",
        id=record.get("id"),
        title=record.get("title"),
        artist=text_or_empty(record.get("artist_display")) or "Unknown artist",
        date=text_or_empty(record.get("date_display")),
        medium=text_or_empty(record.get("medium_display")),
        department=text_or_empty(record.get("department_title")),
        image_url=image_url,
        thumbnail_url=thumbnail_url,
        detail_url=detail_url,
        link=detail_url,
        media=(image_url,),
    )


class ArtAdapter(SourceAdapter):
    """Adapter for the artic.edu artworks listing.

    Cursors are the upstream's own 1-based page numbers.
    """

    @property
    def name(self) -> str:
        return "art"

    def initial_cursor(self) -> int:
        return 1

    async def fetch_page(self, params: FeedParams, cursor: Any) -> Page:
        page = cursor or 1
        query = {"page": page, "limit": self.batch_size, "fields": _FIELDS}
        data = await get_json(self._client, ART_API, params=query)

        iiif_url = (data.get("config") or {}).get("iiif_url") or DEFAULT_IIIF_URL
        artworks = [
            artwork
            for artwork in (_record_to_artwork(r, iiif_url) for r in data.get("data") or [])
            if artwork is not None
        ]

        pagination = data.get("pagination") or {}
        current = pagination.get("current_page")
        total = pagination.get("total_pages")
        has_more = current is not None and total is not None and current < total

        logger.info("Fetched %d artworks (page %d of %s)", len(artworks), page, total)
        return Page(items=tuple(artworks), next_cursor=page + 1, has_more=has_more)
