"""FastAPI application factory for the SSR edge.

The edge resolves tenant configuration for each request through the
EdgeTenantCache and exposes the browser-safe subset at
``GET /tenant-config``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse

from tessera.api.middleware import CorrelationMiddleware
from tessera.edge.cache import EdgeTenantCache
from tessera.edge.client import BackendClient
from tessera.edge.middleware import EdgeTenantMiddleware
from tessera.edge.resolver import EdgeTenantResolver, public_config
from tessera.edge.settings import EdgeSettings
from tessera.observability import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    cache: EdgeTenantCache = app.state.tenant_cache
    await cache.start()
    try:
        yield
    finally:
        await cache.stop()
        await cache.client.aclose()


def create_edge_app(
    settings: EdgeSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the edge application.

    Args:
        settings: Edge settings (defaults to the environment)
        transport: httpx transport for the backend client (tests)
    """
    settings = settings or EdgeSettings()
    configure_logging(json_format=settings.log_json, level=settings.log_level)

    cache = EdgeTenantCache(settings, BackendClient(settings, transport=transport))
    resolver = EdgeTenantResolver(cache, settings)

    app = FastAPI(
        title="tessera-edge",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tenant_cache = cache
    app.state.resolver = resolver

    app.add_middleware(EdgeTenantMiddleware, resolver=resolver)
    app.add_middleware(CorrelationMiddleware)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "healthy", "cache": cache.mode.value}

    @app.get("/tenant-config")
    async def tenant_config(request: Request) -> dict[str, Any]:
        return public_config(request.state.tenant_config)

    return app
