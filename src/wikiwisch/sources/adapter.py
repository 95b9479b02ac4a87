"""Source adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from wikiwisch.sources.items import FeedParams, Page


class SourceAdapter(ABC):
    """Abstract base class for source adapters.

    Every adapter turns a page cursor into a batch of normalized items for
    one upstream API. Cursors are opaque to everything but the adapter that
    issued them. The pagination engine is written against this interface
    only.
    """

    batch_size: int = 5

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Feed identifier."""

    def initial_cursor(self) -> Any:
        """Cursor for the first page."""
        return 0

    def configure(self, config: dict) -> None:
        """Accept adapter-specific configuration."""

    @abstractmethod
    async def fetch_page(self, params: FeedParams, cursor: Any) -> Page:
        """Fetch the page at ``cursor``.

        Raises ``UpstreamError`` when the upstream cannot produce the page.
        Individual malformed items are dropped, never raised.
        """
