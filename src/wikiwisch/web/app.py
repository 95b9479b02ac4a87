"""FastAPI application factory for the wikiwisch web API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.responses import FileResponse
from starlette.types import Scope

import wikiwisch.sources  # noqa: F401  registers the feed adapters
from wikiwisch.config import Config
from wikiwisch.feed import FeedPool
from wikiwisch.sources.http import create_client
from wikiwisch.sources.registry import build_adapter
from wikiwisch.storage import StateStore, init_db
from wikiwisch.web.routes import health_router, relay_router, router

logger = logging.getLogger(__name__)

_MAX_LIVE_FEEDS = 32


class _SPAStaticFiles(StaticFiles):
    """StaticFiles that falls back to index.html for unknown paths.

    ``static_dir`` holds the built browser front end (``index.html`` and its
    assets), which is deployed next to the server rather than shipped in
    this package. Client-side routes such as ``/bookmarks`` resolve to
    ``index.html``.
    """

    async def get_response(self, path: str, scope: Scope) -> FileResponse:
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code == 404:
                return await super().get_response("index.html", scope)
            raise


def create_app(
    config: Config,
    *,
    store: StateStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build and return a configured FastAPI application.

    ``store`` and ``http_client`` are created in the lifespan unless given;
    whatever the lifespan creates it also closes. The feed pool always
    belongs to the lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_store = owned_client = None
        if app.state.store is None:
            init_db(config.database_path)
            owned_store = StateStore(config.database_path, config.storage_key)
            owned_store.load()
            app.state.store = owned_store
        if app.state.http_client is None:
            owned_client = create_client(
                timeout=config.request_timeout_seconds, user_agent=config.user_agent
            )
            app.state.http_client = owned_client

        settings = config.adapter_settings()
        feeds = FeedPool(
            lambda feed_id: build_adapter(feed_id, app.state.http_client, settings),
            max_feeds=_MAX_LIVE_FEEDS,
        )
        app.state.feeds = feeds
        logger.info("wikiwisch web app started")
        try:
            yield
        finally:
            feeds.close()
            app.state.feeds = None
            if owned_client is not None:
                await owned_client.aclose()
                app.state.http_client = None
            if owned_store is not None:
                owned_store.close()
                app.state.store = None
            logger.info("wikiwisch web app stopped")

    app = FastAPI(title="wikiwisch", docs_url="/api/docs", lifespan=lifespan)
    app.state.config = config
    app.state.store = store
    app.state.http_client = http_client
    app.state.feeds = None
    app.include_router(health_router)
    app.include_router(relay_router)
    app.include_router(router, prefix="/api/v1")

    static_path = Path(config.static_dir)
    if static_path.is_dir():
        app.mount("/", _SPAStaticFiles(directory=str(static_path), html=True), name="static")

    return app
