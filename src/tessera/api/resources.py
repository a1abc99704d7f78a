"""Tenant wire resource.

Shape:

    {
        "id": <public id>,
        "name": ...,
        "domain": ...,
        "parent_id": <parent public id> | None,
        "config": {<keys>, "__visibility": {...}},
        "tier": ...,
        "parent": {<same shape>}        # only when the tenant has a parent
    }

Only public and protected keys of the pipeline resolution are included;
the internal id and private values never leave the backend.
"""

from __future__ import annotations

from typing import Any

from tessera.pipeline.pipeline import ConfigurationPipeline
from tessera.tenancy.models import Tenant


def build_tenant_resource(
    tenant: Tenant,
    pipeline: ConfigurationPipeline,
    public_only: bool = False,
) -> dict[str, Any]:
    resolved = pipeline.resolve_tenant(tenant)
    resource: dict[str, Any] = {
        "id": tenant.public_id,
        "name": tenant.name,
        "domain": tenant.domain,
        "parent_id": tenant.parent.public_id if tenant.parent is not None else None,
        "config": resolved.public_wire() if public_only else resolved.protected_wire(),
        "tier": resolved.tier,
    }
    if tenant.parent is not None:
        resource["parent"] = build_tenant_resource(tenant.parent, pipeline, public_only)
    return resource
