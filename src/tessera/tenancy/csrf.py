"""Tenant-aware XSRF cookie naming."""

from __future__ import annotations

from tessera.runtime.managers import DEFAULT_XSRF_COOKIE
from tessera.tenancy.models import Tenant


def xsrf_cookie_name(tenant: Tenant | None) -> str:
    """``XSRF-TOKEN-{public_id}`` for a tenant, plain ``XSRF-TOKEN`` otherwise.

    Tenants sharing a parent domain must not overwrite each other's token.
    """
    if tenant is None:
        return DEFAULT_XSRF_COOKIE
    return f"{DEFAULT_XSRF_COOKIE}-{tenant.public_id}"
