"""Tenant configuration endpoints.

- GET /tenant         resolved tenant for the calling SSR server (internal only)
- GET /tenant/cache   every tenant, for edge preloading (internal only)
- GET /tenant/public  public subset for tenants that opted in
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from tessera.api.deps import (
    get_pipeline,
    get_resolver,
    get_settings,
    get_tenant_context,
    require_internal,
)
from tessera.api.errors import ApiError, BadRequestError, ForbiddenError, NotFoundError
from tessera.api.resources import build_tenant_resource
from tessera.config import Settings
from tessera.pipeline.pipeline import ConfigurationPipeline
from tessera.tenancy.context import TenantContext
from tessera.tenancy.errors import TenantNotFoundError
from tessera.tenancy.resolver import HostResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tenant"])

PUBLIC_API_FLAG = "allow_public_config_api"


@router.get("/tenant", dependencies=[Depends(require_internal)])
async def get_tenant(
    context: Annotated[TenantContext, Depends(get_tenant_context)],
    pipeline: Annotated[ConfigurationPipeline, Depends(get_pipeline)],
) -> dict[str, Any]:
    tenant = context.get()
    return {"data": build_tenant_resource(tenant, pipeline)}


@router.get("/tenant/cache", dependencies=[Depends(require_internal)])
async def get_tenant_cache(
    settings: Annotated[Settings, Depends(get_settings)],
    resolver: Annotated[HostResolver, Depends(get_resolver)],
    pipeline: Annotated[ConfigurationPipeline, Depends(get_pipeline)],
) -> dict[str, Any]:
    if not settings.tenant_preload_enabled:
        raise ApiError(status_code=404, code="NotFound", text="Tenant preloading is disabled")

    tenants = await resolver.lookup.list_all()
    logger.info("Serving tenant dump", extra={"tenant_count": len(tenants)})
    return {"data": [build_tenant_resource(tenant, pipeline) for tenant in tenants]}


@router.get("/tenant/public")
async def get_public_tenant(
    resolver: Annotated[HostResolver, Depends(get_resolver)],
    pipeline: Annotated[ConfigurationPipeline, Depends(get_pipeline)],
    domain: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    if not domain:
        raise BadRequestError("Query parameter 'domain' is required")

    try:
        tenant = await resolver.resolve_domain(domain.strip().lower())
    except TenantNotFoundError:
        raise NotFoundError("Tenant", domain)

    if tenant.effective_config().get(PUBLIC_API_FLAG) is not True:
        raise ForbiddenError("Public configuration is not enabled for this tenant")

    return {"data": build_tenant_resource(tenant, pipeline, public_only=True)}
