"""Pagination engine — incremental loading of one feed, independent of its source.

A ``FeedController`` owns the accumulated pages, the cursor for the next
page and the loading/error flags. ``fetch_next`` is the only operation that
talks to the adapter. At most one fetch is in flight; overlapping calls are
ignored. Each fetch runs as its own task tagged with a generation number so
``reset`` can cancel it and discard anything that arrives late.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

from wikiwisch.sources.adapter import SourceAdapter
from wikiwisch.sources.items import FeedItem, FeedParams, Page

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSnapshot:
    """What the presentation layer renders for one feed."""

    items: tuple[FeedItem, ...]
    loading: bool
    is_fetching_next: bool
    has_more: bool
    error: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "loading": self.loading,
            "is_fetching_next": self.is_fetching_next,
            "has_more": self.has_more,
            "error": self.error,
        }


class FeedController:
    """Feed State plus the operations that advance it."""

    def __init__(self, adapter: SourceAdapter, params: FeedParams | None = None) -> None:
        self._adapter = adapter
        self._generation = 0
        self._task: asyncio.Task | None = None
        self._init_state(params or FeedParams())

    def _init_state(self, params: FeedParams) -> None:
        self.params = params
        self.pages: list[Page] = []
        self.cursor: Any = self._adapter.initial_cursor()
        self.has_more = True
        self.loading = False
        self.is_fetching_next = False
        self.error: Exception | None = None

    @property
    def adapter(self) -> SourceAdapter:
        return self._adapter

    @property
    def items(self) -> list[FeedItem]:
        """All fetched items, in fetch order."""
        return [item for page in self.pages for item in page.items]

    @property
    def in_flight(self) -> bool:
        return self.loading or self.is_fetching_next

    async def fetch_next(self) -> Page | None:
        """Fetch and append the next page.

        Returns the appended page, or None when nothing was appended: a fetch
        was already in flight, the feed is exhausted, the fetch failed (see
        ``error``), or a ``reset`` superseded it.
        """
        if self.in_flight or not self.has_more:
            return None

        generation = self._generation
        first_page = not self.pages
        if first_page:
            self.loading = True
        else:
            self.is_fetching_next = True

        task = asyncio.ensure_future(self._adapter.fetch_page(self.params, self.cursor))
        self._task = task
        try:
            page = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("%s fetch cancelled by reset", self._adapter.name)
                return None
            self._clear_in_flight()
            raise
        except Exception as exc:
            if generation != self._generation:
                return None
            self._clear_in_flight()
            self.error = exc
            logger.warning("%s feed fetch failed: %s", self._adapter.name, exc)
            return None

        if generation != self._generation:
            logger.debug("Discarding stale %s page", self._adapter.name)
            return None

        self._clear_in_flight()
        self.pages.append(page)
        self.cursor = page.next_cursor
        self.has_more = page.has_more
        self.error = None
        return page

    def reset(self, params: FeedParams | None = None) -> None:
        """Drop all pages and start over, optionally with new filter params.

        Any in-flight fetch is cancelled and its result will never be applied.
        """
        self._cancel_in_flight()
        self._generation += 1
        self._init_state(params if params is not None else self.params)

    async def refetch(self) -> Page | None:
        """Discard everything and load the first page again."""
        self.reset()
        return await self.fetch_next()

    def snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(
            items=tuple(self.items),
            loading=self.loading,
            is_fetching_next=self.is_fetching_next,
            has_more=self.has_more,
            error=str(self.error) if self.error is not None else None,
        )

    def close(self) -> None:
        """Stop any upstream work still running for this feed."""
        self._cancel_in_flight()
        self._generation += 1

    def _clear_in_flight(self) -> None:
        self.loading = False
        self.is_fetching_next = False
        self._task = None

    def _cancel_in_flight(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None


class FeedPool:
    """Live controllers, one per feed id and filter params.

    Least recently used controllers are closed once more than ``max_feeds``
    are open.
    """

    def __init__(self, adapter_factory: Callable[[str], SourceAdapter], max_feeds: int = 32) -> None:
        self._adapter_factory = adapter_factory
        self._max_feeds = max_feeds
        self._controllers: OrderedDict[tuple[str, FeedParams], FeedController] = OrderedDict()

    def __len__(self) -> int:
        return len(self._controllers)

    def get(self, feed_id: str, params: FeedParams) -> FeedController:
        """The controller for ``feed_id`` with ``params``, created on first use."""
        key = (feed_id, params)
        controller = self._controllers.get(key)
        if controller is not None:
            self._controllers.move_to_end(key)
            return controller

        controller = FeedController(self._adapter_factory(feed_id), params)
        self._controllers[key] = controller
        while len(self._controllers) > self._max_feeds:
            (old_feed, _), old = self._controllers.popitem(last=False)
            old.close()
            logger.debug("Closed idle %s feed", old_feed)
        return controller

    def close(self) -> None:
        for controller in self._controllers.values():
            controller.close()
        self._controllers.clear()
