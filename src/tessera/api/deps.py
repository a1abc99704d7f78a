"""Shared FastAPI dependencies.

The app factory stores its services on ``app.state``; these helpers
read them back for route handlers.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from tessera.api.errors import ForbiddenError
from tessera.config import Settings
from tessera.pipeline.pipeline import ConfigurationPipeline
from tessera.tenancy.context import TenantContext
from tessera.tenancy.resolver import HostResolver


def get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_pipeline(request: Request) -> ConfigurationPipeline:
    pipeline: ConfigurationPipeline = request.app.state.pipeline
    return pipeline


def get_resolver(request: Request) -> HostResolver:
    resolver: HostResolver = request.app.state.resolver
    return resolver


def get_tenant_context(request: Request) -> TenantContext:
    """Context set by TenantMiddleware; empty for excluded paths."""
    context = getattr(request.state, "tenant_context", None)
    if context is None:
        context = TenantContext()
        request.state.tenant_context = context
    return context


def require_internal(
    request: Request,
    resolver: Annotated[HostResolver, Depends(get_resolver)],
) -> None:
    """Reject requests that are not from a trusted internal caller.

    Raises:
        ForbiddenError: If the request is not internal
    """
    if not resolver.privacy.is_internal_request(request):
        raise ForbiddenError("Internal endpoint")
