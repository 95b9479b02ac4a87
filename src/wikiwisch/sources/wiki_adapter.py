"""Wikipedia source adapter — topic-driven article discovery.

Each page picks a few seed terms for the selected topics, expands them into
candidate titles through full-text search, and keeps the candidates whose
summaries are real articles with a usable extract. Short batches are topped
up with random articles. Deduplication is per batch only.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any
from urllib.parse import quote

import httpx

from wikiwisch.sources.adapter import SourceAdapter
from wikiwisch.sources.http import UpstreamError, get_json
from wikiwisch.sources.items import FeedParams, Page, WikiArticle
from wikiwisch.sources.normalize import build_item, shuffled, unique

logger = logging.getLogger(__name__)

WIKI_REST_BASE = "https://en.wikipedia.org/api/rest_v1"
WIKI_ACTION_API = "https://en.wikipedia.org/w/api.php"

_SEEDS_PER_PAGE = 3
_SEARCH_LIMIT = 20
_MIN_EXTRACT_LENGTH = 100
_DEFAULT_MAX_PADDING_ATTEMPTS = 15

TOPIC_SEEDS: dict[str, list[str]] = {
    "science": [
        "Physics", "Chemistry", "Biology", "Astronomy", "Mathematics",
        "Genetics", "Neuroscience", "Ecology", "Quantum_mechanics",
    ],
    "history": [
        "Ancient_history", "Medieval_history", "World_War_II", "Roman_Empire",
        "Renaissance", "Industrial_Revolution", "Ancient_Egypt", "Viking_Age",
    ],
    "technology": [
        "Computer_science", "Artificial_intelligence", "Internet",
        "Robotics", "Space_exploration", "Nuclear_technology", "Biotechnology",
    ],
    "arts": [
        "Renaissance_art", "Impressionism", "Classical_music", "Jazz",
        "Film_history", "Literature", "Architecture", "Photography",
    ],
    "geography": [
        "Mountain", "Ocean", "Desert", "River", "Island", "Volcano",
        "Rainforest", "National_park",
    ],
    "nature": [
        "Endangered_species", "Marine_biology", "Paleontology", "Botany",
        "Ornithology", "Climate", "Geology", "Evolution",
    ],
    "philosophy": [
        "Ethics", "Existentialism", "Logic", "Metaphysics",
        "Philosophy_of_mind", "Stoicism", "Eastern_philosophy",
    ],
    "sports": [
        "Olympic_Games", "Football", "Tennis", "Basketball",
        "Cricket", "Athletics_(sport)", "Swimming_(sport)",
    ],
}


def summary_url(title: str) -> str:
    """REST summary URL for an article title (spaces become underscores)."""
    return f"{WIKI_REST_BASE}/page/summary/{quote(title.replace(' ', '_'), safe='')}"


def parse_summary(data: dict) -> WikiArticle | None:
    """Map a REST summary payload onto a ``WikiArticle``."""
    thumbnail = (data.get("thumbnail") or {}).get("source")
    original = (data.get("originalimage") or {}).get("source")
    link = ((data.get("content_urls") or {}).get("desktop") or {}).get("page")
    return build_item(
        WikiArticle,
        source="wiki",
        id=data.get("pageid"),
        title=data.get("title"),
        body=data.get("extract") or "",
        description=data.get("description") or "",
        thumbnail=thumbnail,
        original_image=original,
        link=link,
        media=tuple(url for url in (thumbnail,) if url),
    )


class WikiAdapter(SourceAdapter):
    """Adapter for Wikipedia article summaries."""

    def __init__(self, client: httpx.AsyncClient, rng: random.Random | None = None) -> None:
        super().__init__(client)
        self._rng = rng or random.Random()
        self._max_padding_attempts = _DEFAULT_MAX_PADDING_ATTEMPTS

    @property
    def name(self) -> str:
        return "wiki"

    def configure(self, config: dict) -> None:
        self._max_padding_attempts = config.get(
            "max_padding_attempts", _DEFAULT_MAX_PADDING_ATTEMPTS
        )

    async def fetch_page(self, params: FeedParams, cursor: Any) -> Page:
        cursor = cursor or 0
        seeds = [seed for topic in params.topics for seed in TOPIC_SEEDS.get(topic, [])]

        if seeds:
            articles = await self._discover(seeds)
        else:
            articles = await self._random_batch()

        seen_titles = {article.title for article in articles}
        await self._pad(articles, seen_titles)

        logger.info(
            "Fetched %d Wikipedia articles (page %s, topics=%s)",
            len(articles), cursor, ",".join(params.topics) or "random",
        )
        return Page(items=tuple(articles), next_cursor=cursor + 1, has_more=True)

    async def _discover(self, seeds: list[str]) -> list[WikiArticle]:
        """Expand seed terms into accepted articles for one batch."""
        chosen = shuffled(seeds, self._rng)[:_SEEDS_PER_PAGE]

        candidates: list[str] = []
        for seed in chosen:
            try:
                candidates.extend(await self._search_titles(seed))
            except UpstreamError:
                logger.warning("Search failed for seed %s", seed)

        titles = unique(shuffled(candidates, self._rng))[: self.batch_size * 2]
        summaries = await asyncio.gather(*(self._fetch_summary(title) for title in titles))

        accepted: list[WikiArticle] = []
        seen_titles: set[str] = set()
        for summary in summaries:
            if len(accepted) >= self.batch_size:
                break
            article = self._accept(summary, seen_titles)
            if article is not None:
                seen_titles.add(article.title)
                accepted.append(article)
        return accepted

    async def _random_batch(self) -> list[WikiArticle]:
        """Pure random sampling when no topic is selected."""
        results = await asyncio.gather(
            *(self._fetch_random() for _ in range(self.batch_size)),
            return_exceptions=True,
        )
        accepted: list[WikiArticle] = []
        seen_titles: set[str] = set()
        for result in results:
            if isinstance(result, UpstreamError):
                logger.debug("Random article fetch failed: %s", result)
                continue
            if isinstance(result, BaseException):
                raise result
            article = self._accept(result, seen_titles)
            if article is not None:
                seen_titles.add(article.title)
                accepted.append(article)
        return accepted

    async def _pad(self, articles: list[WikiArticle], seen_titles: set[str]) -> None:
        """Top up a short batch with random articles.

        Bounded by ``max_padding_attempts``; the first failed fetch ends the
        padding and the batch is returned short.
        """
        attempts = 0
        while len(articles) < self.batch_size and attempts < self._max_padding_attempts:
            attempts += 1
            try:
                data = await self._fetch_random()
            except UpstreamError:
                logger.warning(
                    "Random article fetch failed; returning %d of %d articles",
                    len(articles), self.batch_size,
                )
                return
            article = self._accept(data, seen_titles)
            if article is not None:
                seen_titles.add(article.title)
                articles.append(article)

    def _accept(self, data: dict | None, seen_titles: set[str]) -> WikiArticle | None:
        """Keep standard articles with a long enough extract, once per batch."""
        if not data or data.get("type") != "standard":
            return None
        article = parse_summary(data)
        if article is None or article.title in seen_titles:
            return None
        if len(article.body) <= _MIN_EXTRACT_LENGTH:
            return None
        return article

    async def _search_titles(self, seed: str) -> list[str]:
        params = {
            "action": "query",
            "format": "json",
            "origin": "*",
            "list": "search",
            "srsearch": seed,
            "srlimit": str(_SEARCH_LIMIT),
            "srwhat": "text",
        }
        data = await get_json(self._client, WIKI_ACTION_API, params=params)
        results = (data.get("query") or {}).get("search") or []
        return [entry["title"] for entry in results if entry.get("title")]

    async def _fetch_summary(self, title: str) -> dict | None:
        """Summary for a candidate title; None when it cannot be fetched."""
        try:
            return await get_json(self._client, summary_url(title))
        except UpstreamError:
            logger.debug("Summary unavailable for %s", title)
            return None

    async def _fetch_random(self) -> dict:
        return await get_json(self._client, f"{WIKI_REST_BASE}/page/random/summary")
