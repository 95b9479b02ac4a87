"""Shared normalization helpers used by every source adapter."""

from __future__ import annotations

import logging
import random
import re
from typing import Any, Iterable, Sequence, TypeVar

from wikiwisch.sources.items import FeedItem

logger = logging.getLogger(__name__)

T = TypeVar("T")
ItemT = TypeVar("ItemT", bound=FeedItem)

_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(text: str | None) -> str:
    """Collapse runs of whitespace (including newlines) into single spaces."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def text_or_empty(value: Any) -> str:
    """Return ``value`` as a stripped string, or ``""`` for missing values."""
    if value is None:
        return ""
    return str(value).strip()


def shuffled(values: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a shuffled copy of ``values``; the input is left untouched."""
    copy = list(values)
    (rng or random).shuffle(copy)
    return copy


def unique(values: Iterable[T]) -> list[T]:
    """Drop repeated values, keeping the first occurrence's position."""
    seen: set[T] = set()
    result: list[T] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def build_item(cls: type[ItemT], *, source: str, **fields: Any) -> ItemT | None:
    """Construct a feed item, or return None when a required field is missing.

    ``id`` and ``title`` are required; everything else already defaults to an
    empty value on the item class. Dropped items are logged, never raised.
    """
    item_id = text_or_empty(fields.get("id"))
    title = text_or_empty(fields.get("title"))
    if not item_id or not title:
        logger.debug(
            "Dropping %s item with missing id or title: id=%r title=%r",
            source, fields.get("id"), fields.get("title"),
        )
        return None
    fields["id"] = item_id
    fields["title"] = title
    return cls(**fields)
