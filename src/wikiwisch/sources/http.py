"""Async HTTP helpers shared by the source adapters.

Every upstream failure leaves this module as an ``UpstreamError`` so the
pagination engine only has one error family to deal with.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """A content API could not be reached or returned an unusable response."""

    def __init__(self, message: str, *, url: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RateLimitError(UpstreamError):
    """The upstream rejected the request because of its rate limit."""


def create_client(timeout: float = 20.0, user_agent: str | None = None) -> httpx.AsyncClient:
    """Build the process-wide client every adapter shares."""
    headers = {"User-Agent": user_agent} if user_agent else None
    return httpx.AsyncClient(timeout=timeout, headers=headers, follow_redirects=True)


async def get(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """GET ``url`` and return the response, whatever its status code."""
    try:
        return await client.get(url, params=params, headers=headers)
    except httpx.HTTPError as exc:
        raise UpstreamError(f"Request to {url} failed: {exc}", url=url) from exc


def ensure_success(response: httpx.Response, url: str) -> None:
    """Raise ``UpstreamError`` for any non-2xx response."""
    if not response.is_success:
        raise UpstreamError(
            f"{url} returned HTTP {response.status_code}",
            url=url,
            status_code=response.status_code,
        )


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET ``url`` and decode a JSON body."""
    response = await get(client, url, params=params, headers=headers)
    ensure_success(response, url)
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError(f"Malformed JSON from {url}", url=url) from exc


async def get_text(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """GET ``url`` and return the body as text (XML feeds)."""
    response = await get(client, url, params=params, headers=headers)
    ensure_success(response, url)
    return response.text
