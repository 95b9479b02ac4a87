"""bioRxiv / medRxiv source adapter — recent preprints from one or both servers."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Callable

import httpx

from wikiwisch.sources.adapter import SourceAdapter
from wikiwisch.sources.http import UpstreamError, ensure_success, get
from wikiwisch.sources.items import FeedParams, Page, PreprintPaper
from wikiwisch.sources.normalize import build_item, text_or_empty

logger = logging.getLogger(__name__)

PREPRINT_API_BASE = "https://api.biorxiv.org/details"
SERVERS = ("medrxiv", "biorxiv")

_WINDOW_DAYS = 30
_OFFSET_STEP = 50
_MAX_PER_PAGE = 20
_MAX_AUTHORS = 5

PREPRINT_CATEGORIES = [
    {"id": "all", "label": "All Categories", "server": None},
    # medRxiv
    {"id": "infectious-diseases", "label": "Infectious Diseases", "server": "medrxiv"},
    {"id": "epidemiology", "label": "Epidemiology", "server": "medrxiv"},
    {"id": "public-health", "label": "Public Health", "server": "medrxiv"},
    {"id": "psychiatry", "label": "Psychiatry", "server": "medrxiv"},
    {"id": "cardiovascular-medicine", "label": "Cardiovascular Medicine", "server": "medrxiv"},
    {"id": "oncology", "label": "Oncology", "server": "medrxiv"},
    {"id": "neurology", "label": "Neurology", "server": "medrxiv"},
    # bioRxiv
    {"id": "neuroscience", "label": "Neuroscience", "server": "biorxiv"},
    {"id": "genetics", "label": "Genetics", "server": "biorxiv"},
    {"id": "genomics", "label": "Genomics", "server": "biorxiv"},
    {"id": "bioinformatics", "label": "Bioinformatics", "server": "biorxiv"},
    {"id": "cell-biology", "label": "Cell Biology", "server": "biorxiv"},
    {"id": "molecular-biology", "label": "Molecular Biology", "server": "biorxiv"},
    {"id": "immunology", "label": "Immunology", "server": "biorxiv"},
    {"id": "microbiology", "label": "Microbiology", "server": "biorxiv"},
    {"id": "cancer-biology", "label": "Cancer Biology", "server": "biorxiv"},
    {"id": "evolutionary-biology", "label": "Evolutionary Biology", "server": "biorxiv"},
]

_CATEGORY_SERVERS = {entry["id"]: entry["server"] for entry in PREPRINT_CATEGORIES}


def servers_for(category: str | None) -> tuple[str, ...]:
    """Servers to query: the category's own server, or both for 'all'/unknown."""
    server = _CATEGORY_SERVERS.get(category or "all")
    return (server,) if server else SERVERS


def matches_category(paper: PreprintPaper, category: str | None) -> bool:
    if not category or category == "all":
        return True
    return category.lower().replace("-", " ") in paper.category.lower()


def _record_to_paper(record: dict, server: str) -> PreprintPaper | None:
    doi = text_or_empty(record.get("doi"))
    version = text_or_empty(record.get("version"))
    raw_authors = record.get("authors") or ""
    authors = tuple(a for a in raw_authors.split("; ") if a)[:_MAX_AUTHORS]
    abs_link = f"https://www.{server}.org/content/{doi}v{version}"
    return build_item(
        PreprintPaper,
        source=server,
        id=doi,
        title=record.get("title"),
        body=text_or_empty(record.get("abstract")),
        authors=authors,
        category=text_or_empty(record.get("category")),
        date=text_or_empty(record.get("date")),
        server=server,
        version=version,
        abs_link=abs_link,
        pdf_link=f"{abs_link}.full.pdf",
        link=abs_link,
    )


class PreprintAdapter(SourceAdapter):
    """Adapter for the bioRxiv/medRxiv details API."""

    batch_size = _MAX_PER_PAGE

    def __init__(
        self,
        client: httpx.AsyncClient,
        today: Callable[[], date] = date.today,
    ) -> None:
        super().__init__(client)
        self._today = today

    @property
    def name(self) -> str:
        return "preprint"

    async def fetch_page(self, params: FeedParams, cursor: Any) -> Page:
        cursor = cursor or 0
        offset = cursor * _OFFSET_STEP
        end = self._today()
        start = end - timedelta(days=_WINDOW_DAYS)
        servers = servers_for(params.category)

        results = await asyncio.gather(
            *(self._fetch_server(server, start, end, offset) for server in servers)
        )

        papers: list[PreprintPaper] = []
        exhausted = True
        for server_papers, server_exhausted in results:
            papers.extend(server_papers)
            exhausted = exhausted and server_exhausted

        papers = [p for p in papers if matches_category(p, params.category)]
        papers.sort(key=lambda p: p.date, reverse=True)
        papers = papers[: self.batch_size]

        logger.info(
            "Fetched %d preprints (page %d, category=%s)",
            len(papers), cursor, params.category or "all",
        )
        return Page(
            items=tuple(papers),
            next_cursor=cursor + 1,
            has_more=bool(papers) and not exhausted,
        )

    async def _fetch_server(
        self, server: str, start: date, end: date, offset: int
    ) -> tuple[list[PreprintPaper], bool]:
        """Papers from one server plus whether that server has nothing further.

        A non-2xx answer degrades to an empty, exhausted result so the other
        server can still fill the page.
        """
        url = f"{PREPRINT_API_BASE}/{server}/{start.isoformat()}/{end.isoformat()}/{offset}"
        response = await get(self._client, url)
        try:
            ensure_success(response, url)
            data = response.json()
        except (UpstreamError, ValueError) as exc:
            logger.warning("Skipping %s for this page: %s", server, exc)
            return [], True

        records = data.get("collection") or []
        papers = [
            paper for paper in (_record_to_paper(r, server) for r in records)
            if paper is not None
        ]
        return papers, self._is_exhausted(data, offset, len(records))

    @staticmethod
    def _is_exhausted(data: dict, offset: int, count: int) -> bool:
        """True when the server reports no records beyond this window."""
        if count == 0:
            return True
        messages = data.get("messages") or [{}]
        try:
            total = int(messages[0].get("total"))
        except (TypeError, ValueError):
            return False
        return offset + count >= total
