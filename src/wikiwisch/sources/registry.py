"""Adapter registry — maps feed ids to adapter classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from wikiwisch.sources.adapter import SourceAdapter

_REGISTRY: dict[str, type[SourceAdapter]] = {}


def register_adapter(feed_id: str, cls: type[SourceAdapter]) -> None:
    """Register an adapter class for a given feed id."""
    _REGISTRY[feed_id] = cls


def get_adapter_class(feed_id: str) -> type[SourceAdapter] | None:
    """Look up an adapter class by feed id. Returns None if not found."""
    return _REGISTRY.get(feed_id)


def registered_feeds() -> list[str]:
    """Return a sorted list of all registered feed ids."""
    return sorted(_REGISTRY)


def build_adapter(
    feed_id: str,
    client: httpx.AsyncClient,
    settings: dict[str, dict] | None = None,
) -> SourceAdapter:
    """Instantiate and configure the adapter registered for ``feed_id``.

    Raises KeyError for unknown feed ids.
    """
    cls = get_adapter_class(feed_id)
    if cls is None:
        raise KeyError(feed_id)
    adapter = cls(client)
    adapter.configure((settings or {}).get(feed_id, {}))
    return adapter
