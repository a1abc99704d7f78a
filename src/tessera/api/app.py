"""FastAPI application factory for the Tessera backend.

Creates the application with:
- Tenant resolution and per-request configuration (TenantMiddleware)
- Tenant configuration endpoints for SSR servers and browsers
- Health endpoints
- Result/Message error handling
- ORJSON for fast JSON serialization

Every service object (registry database, resolver, pipeline, runtime
resources) is built here once per process and stored on ``app.state``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from tessera.api.errors import (
    ApiError,
    api_exception_handler,
    generic_exception_handler,
    tenant_exception_handler,
)
from tessera.api.middleware import CorrelationMiddleware
from tessera.api.routers import health, tenant
from tessera.config import Settings
from tessera.config import settings as default_settings
from tessera.observability import configure_logging
from tessera.persistence.db import Database
from tessera.persistence.repositories import DatabaseTenantLookup
from tessera.pipeline import ConfigurationPipeline, build_default_pipeline
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.errors import TenantError
from tessera.tenancy.memory_cache import TenantMemoryCache
from tessera.tenancy.middleware import TenantMiddleware
from tessera.tenancy.privacy import RequestPrivacy
from tessera.tenancy.resolver import HostResolver, TenantLookup

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Release pooled connections on shutdown."""
    logger.info("Starting Tessera backend")
    yield
    logger.info("Shutting down Tessera backend")
    await app.state.resources.close()
    if app.state.database is not None:
        await app.state.database.close()


def create_app(
    settings: Settings | None = None,
    lookup: TenantLookup | None = None,
    resources: RuntimeResources | None = None,
    pipeline: ConfigurationPipeline | None = None,
) -> FastAPI:
    """Create and configure the backend application.

    Args:
        settings: Settings to use (defaults to the environment)
        lookup: Tenant source; defaults to the registry database
        resources: Runtime resources; defaults to ones built from settings
        pipeline: Configuration pipeline; defaults to the built-in pipes
    """
    settings = settings or default_settings
    configure_logging(json_format=settings.log_json, level=settings.log_level)

    database: Database | None = None
    if lookup is None:
        database = Database.from_settings(settings)
        lookup = DatabaseTenantLookup(database)

    resources = resources or RuntimeResources.from_settings(settings)
    pipeline = pipeline or build_default_pipeline()
    resolver = HostResolver(
        lookup,
        RequestPrivacy.from_settings(settings),
        TenantMemoryCache(
            ttl=settings.tenant_resolver_ttl,
            max_size=settings.tenant_memory_cache_max_size,
        ),
    )

    app = FastAPI(
        title=settings.app_name,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.resources = resources
    app.state.pipeline = pipeline
    app.state.resolver = resolver

    # Added last runs first: correlation wraps tenant resolution
    app.add_middleware(
        TenantMiddleware,
        resolver=resolver,
        pipeline=pipeline,
        resources=resources,
        excluded_paths=settings.excluded_paths,
    )
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(TenantError, cast(ExceptionHandler, tenant_exception_handler))
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(tenant.router)

    return app
