"""Host-based tenant resolution for the backend.

The tenant is selected by the request host. Trusted internal callers
(the SSR edge) may name a different domain with ``X-Tenant-Domain``.
Resolved tenants are kept in a TenantMemoryCache owned by the resolver.
"""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import urlsplit

from starlette.requests import HTTPConnection

from tessera.tenancy.errors import TenantNotFoundError
from tessera.tenancy.memory_cache import TenantMemoryCache
from tessera.tenancy.models import Tenant
from tessera.tenancy.privacy import TENANT_DOMAIN_HEADER, RequestPrivacy

logger = logging.getLogger(__name__)


class TenantLookup(Protocol):
    """Source of truth for tenants (normally the database repository)."""

    async def find_by_domain(self, domain: str) -> Tenant | None: ...

    async def list_all(self) -> list[Tenant]: ...


def parse_host(value: str) -> str | None:
    """Host part of a header value that may be a bare host or a URL."""
    value = value.strip()
    if not value:
        return None
    if "://" not in value:
        value = f"//{value}"
    try:
        host = urlsplit(value).hostname
    except ValueError:
        return None
    return host or None


class HostResolver:
    """Resolves the Tenant for a request from its host."""

    def __init__(
        self,
        lookup: TenantLookup,
        privacy: RequestPrivacy,
        cache: TenantMemoryCache | None = None,
    ) -> None:
        self.lookup = lookup
        self.privacy = privacy
        self.cache = cache or TenantMemoryCache()

    def get_domain(self, request: HTTPConnection) -> str:
        """The domain used for resolution, lower-cased without port."""
        override = request.headers.get(TENANT_DOMAIN_HEADER)
        if override is not None and self.privacy.is_internal_request(request):
            host = parse_host(override)
            if host:
                return host.lower()

        return (parse_host(request.headers.get("host", "")) or request.url.hostname or "").lower()

    async def resolve_tenant(self, request: HTTPConnection) -> Tenant:
        """Resolve the tenant for a request.

        Raises:
            TenantNotFoundError: If no tenant is registered for the domain
        """
        return await self.resolve_domain(self.get_domain(request))

    async def resolve_domain(self, domain: str) -> Tenant:
        tenant = self.cache.get(domain)
        if tenant is not None:
            logger.debug("Tenant cache hit", extra={"domain": domain})
            return tenant

        tenant = await self.lookup.find_by_domain(domain)
        if tenant is None:
            logger.info("No tenant for domain", extra={"domain": domain})
            raise TenantNotFoundError(domain)

        self.cache.put(domain, tenant)
        return tenant
