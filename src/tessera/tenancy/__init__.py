"""Multi-tenancy for Tessera.

- Tenant / TenantConfig: tenant record and its visibility-aware configuration
- TenantContext: per-request tenant slot
- HostResolver: domain based tenant resolution
- TenantSessionGuard: keeps sessions bound to a single tenant
- Isolation helpers: tenant mismatch enforcement on records

The request middleware lives in ``tessera.tenancy.middleware``.
"""

from tessera.tenancy.config import TenantConfig
from tessera.tenancy.context import TenantContext, TenantScope
from tessera.tenancy.csrf import xsrf_cookie_name
from tessera.tenancy.errors import (
    ContributorApplyError,
    TenantError,
    TenantMismatchError,
    TenantNotFoundError,
    TenantNotResolvedError,
)
from tessera.tenancy.isolation import ensure_tenant_field, validate_tenant_access
from tessera.tenancy.memory_cache import TenantMemoryCache
from tessera.tenancy.models import Tenant
from tessera.tenancy.privacy import RequestPrivacy
from tessera.tenancy.resolver import HostResolver, TenantLookup
from tessera.tenancy.session_guard import MappingSession, SessionCheck, TenantSessionGuard
from tessera.tenancy.visibility import ConfigVisibility

__all__ = [
    "ConfigVisibility",
    "TenantConfig",
    "Tenant",
    "TenantContext",
    "TenantScope",
    "TenantError",
    "TenantNotFoundError",
    "TenantMismatchError",
    "TenantNotResolvedError",
    "ContributorApplyError",
    "HostResolver",
    "TenantLookup",
    "TenantMemoryCache",
    "RequestPrivacy",
    "TenantSessionGuard",
    "MappingSession",
    "SessionCheck",
    "validate_tenant_access",
    "ensure_tenant_field",
    "xsrf_cookie_name",
]
