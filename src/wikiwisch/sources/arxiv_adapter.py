"""arXiv source adapter — newest submissions for a subject category."""

from __future__ import annotations

import logging
from typing import Any

import feedparser
import httpx

from wikiwisch.sources.adapter import SourceAdapter
from wikiwisch.sources.http import get_text
from wikiwisch.sources.items import ArxivPaper, FeedParams, Page
from wikiwisch.sources.normalize import build_item, collapse_whitespace, text_or_empty

logger = logging.getLogger(__name__)

ARXIV_API_URL = "https://export.arxiv.org/api/query"
DEFAULT_SEARCH_QUERY = "cat:cs.AI+OR+cat:cs.LG+OR+cat:physics.pop-ph"

ARXIV_CATEGORIES = [
    {"id": "cs.AI", "label": "Artificial Intelligence", "group": "Computer Science"},
    {"id": "cs.LG", "label": "Machine Learning", "group": "Computer Science"},
    {"id": "cs.CV", "label": "Computer Vision", "group": "Computer Science"},
    {"id": "cs.CL", "label": "Computation & Language (NLP)", "group": "Computer Science"},
    {"id": "cs.CR", "label": "Cryptography & Security", "group": "Computer Science"},
    {"id": "cs.RO", "label": "Robotics", "group": "Computer Science"},
    {"id": "stat.ML", "label": "Machine Learning (Stats)", "group": "Statistics"},
    {"id": "math.ST", "label": "Statistics Theory", "group": "Mathematics"},
    {"id": "math.PR", "label": "Probability", "group": "Mathematics"},
    {"id": "physics.pop-ph", "label": "Popular Physics", "group": "Physics"},
    {"id": "astro-ph", "label": "Astrophysics", "group": "Physics"},
    {"id": "quant-ph", "label": "Quantum Physics", "group": "Physics"},
    {"id": "q-bio.NC", "label": "Neurons & Cognition", "group": "Biology"},
    {"id": "q-bio.GN", "label": "Genomics", "group": "Biology"},
    {"id": "econ.GN", "label": "General Economics", "group": "Economics"},
    {"id": "eess.SP", "label": "Signal Processing", "group": "Engineering"},
]


def build_search_query(category: str | None) -> str:
    """``cat:<id>`` for a selected category, the default mix otherwise."""
    if category:
        return f"cat:{category}"
    return DEFAULT_SEARCH_QUERY


def _arxiv_id(entry_id: str) -> str:
    if "/abs/" in entry_id:
        return entry_id.split("/abs/")[-1]
    return entry_id.rsplit("/", 1)[-1]


def _entry_to_paper(entry: dict) -> ArxivPaper | None:
    """Convert a feedparser entry; missing lists default to empty."""
    arxiv_id = _arxiv_id(text_or_empty(entry.get("id")))

    authors = tuple(
        text_or_empty(author.get("name"))
        for author in entry.get("authors") or []
        if author.get("name")
    )
    categories = tuple(
        tag["term"] for tag in entry.get("tags") or [] if tag.get("term")
    )

    pdf_link = ""
    abs_link = ""
    for link in entry.get("links") or []:
        if link.get("title") == "pdf":
            pdf_link = link.get("href", "")
        if link.get("type") == "text/html":
            abs_link = link.get("href", "")

    if arxiv_id:
        pdf_link = pdf_link or f"https://arxiv.org/pdf/{arxiv_id}"
        abs_link = abs_link or f"https://arxiv.org/abs/{arxiv_id}"

    return build_item(
        ArxivPaper,
        source="arxiv",
        id=arxiv_id,
        title=collapse_whitespace(entry.get("title")),
        body=collapse_whitespace(entry.get("summary")),
        authors=authors,
        categories=categories,
        published=text_or_empty(entry.get("published")),
        updated=text_or_empty(entry.get("updated")),
        pdf_link=pdf_link,
        abs_link=abs_link,
        link=abs_link or None,
    )


def papers_from_entries(entries: list) -> list[ArxivPaper]:
    """Convert parsed Atom entries into papers, dropping unusable ones."""
    papers: list[ArxivPaper] = []
    for entry in entries:
        paper = _entry_to_paper(entry)
        if paper is not None:
            papers.append(paper)
    return papers


class ArxivAdapter(SourceAdapter):
    """Adapter for the arXiv query API (directly or through the relay)."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        super().__init__(client)
        self._endpoint = ARXIV_API_URL

    @property
    def name(self) -> str:
        return "arxiv"

    def configure(self, config: dict) -> None:
        self._endpoint = config.get("endpoint", ARXIV_API_URL)

    async def fetch_page(self, params: FeedParams, cursor: Any) -> Page:
        cursor = cursor or 0
        query = {
            "search_query": build_search_query(params.category),
            "start": str(cursor * self.batch_size),
            "max_results": str(self.batch_size),
            "sortBy": "submittedDate",
            "sortOrder": "descending",
        }
        xml_text = await get_text(self._client, self._endpoint, params=query)
        entries = feedparser.parse(xml_text).entries
        papers = papers_from_entries(entries)

        logger.info(
            "Fetched %d arXiv papers (page %d, query=%s)",
            len(papers), cursor, query["search_query"],
        )
        return Page(
            items=tuple(papers),
            next_cursor=cursor + 1,
            has_more=len(entries) == self.batch_size,
        )
