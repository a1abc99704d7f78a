"""Edge tenant configuration cache.

Three modes, chosen by EdgeSettings:

- disabled (``enable_cache`` off): every lookup calls the backend
- lazy (``enable_cache`` on, ``preload_tenants`` off): per-domain results
  are kept for ``resolver_ttl`` seconds, expiry checked at read time
- preload (both on): every tenant is fetched from the bulk endpoint at
  start and every ``cache_ttl`` seconds; until the first preload
  succeeds, lookups fall back to per-domain fetches

In every mode a tenant with a parent is served its parent's
configuration. If the parent is unknown the lookup fails closed.

Example:
    cache = EdgeTenantCache(settings, BackendClient(settings))
    await cache.start()
    config = await cache.get_tenant_config("acme.example.com")
    await cache.stop()
"""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError

from tessera.edge.client import BackendClient
from tessera.edge.models import CachedTenantConfig, TenantPayload
from tessera.edge.settings import EdgeSettings

logger = logging.getLogger(__name__)

VISIBILITY_KEY = "__visibility"
FORCED_PUBLIC_KEYS = ("apiUrl", "tenantId", "tenantName")

# Failures that make a lookup fail closed instead of raising
FETCH_ERRORS = (httpx.HTTPError, ValidationError, ValueError)


class CacheMode(str, Enum):
    DISABLED = "disabled"
    LAZY = "lazy"
    PRELOAD = "preload"


@dataclass(frozen=True)
class _Snapshot:
    """Preloaded tenants; replaced as a whole on every refresh."""

    by_domain: dict[str, TenantPayload] = field(default_factory=dict)
    by_id: dict[str, TenantPayload] = field(default_factory=dict)


def normalize_config(tenant: TenantPayload) -> dict[str, Any]:
    """Tenant config with identity keys set and browser keys forced public."""
    config = copy.deepcopy(tenant.config)
    visibility = config.get(VISIBILITY_KEY)
    visibility = dict(visibility) if isinstance(visibility, Mapping) else {}

    config["tenantId"] = tenant.id
    config["tenantName"] = tenant.name
    for key in FORCED_PUBLIC_KEYS:
        visibility[key] = "public"
    config[VISIBILITY_KEY] = visibility
    return config


class EdgeTenantCache:
    def __init__(
        self,
        settings: EdgeSettings,
        client: BackendClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.client = client
        self._clock = clock
        self._domain_cache: dict[str, CachedTenantConfig] = {}
        self._snapshot: _Snapshot | None = None
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def mode(self) -> CacheMode:
        if not self.settings.enable_cache:
            return CacheMode.DISABLED
        if self.settings.preload_tenants:
            return CacheMode.PRELOAD
        return CacheMode.LAZY

    @property
    def preload_completed(self) -> bool:
        return self._snapshot is not None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Run the first preload and schedule refreshes (preload mode only)."""
        logger.info(
            "Initializing tenant cache",
            extra={
                "mode": self.mode.value,
                "resolver_ttl": self.settings.resolver_ttl,
                "cache_ttl": self.settings.cache_ttl,
            },
        )
        if self.mode is not CacheMode.PRELOAD:
            return
        await self.load_all_tenants()
        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Tenant cache refresh stopped")

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.cache_ttl)
            try:
                await self.load_all_tenants()
            except Exception:
                logger.exception("Tenant cache refresh failed, keeping previous snapshot")

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def get_tenant_config(self, domain: str) -> dict[str, Any] | None:
        """Protected configuration for a domain, or None when unavailable."""
        snapshot = self._snapshot
        if self.mode is CacheMode.PRELOAD and snapshot is not None:
            return self._from_snapshot(snapshot, domain)

        if self.mode is CacheMode.PRELOAD:
            logger.debug("Preload not completed, fetching directly", extra={"domain": domain})

        now = self._clock()
        if self.mode is not CacheMode.DISABLED:
            cached = self._domain_cache.get(domain)
            if cached is not None and not cached.is_expired(now):
                logger.debug("Tenant config cache hit", extra={"domain": domain})
                return copy.deepcopy(cached.config)

        try:
            tenant = await self.client.fetch_tenant(domain)
        except FETCH_ERRORS as e:
            logger.error(
                "Failed to fetch tenant config",
                extra={"domain": domain, "error": str(e)},
            )
            return None

        source = self._inherit(tenant, self._embedded_parent)
        if source is None:
            return None

        config = normalize_config(source)
        if self.mode is not CacheMode.DISABLED:
            self._domain_cache[domain] = CachedTenantConfig(
                copy.deepcopy(config), now + self.settings.resolver_ttl
            )
        return config

    def _from_snapshot(self, snapshot: _Snapshot, domain: str) -> dict[str, Any] | None:
        tenant = snapshot.by_domain.get(domain)
        if tenant is None:
            logger.warning("Tenant not found in preloaded cache", extra={"domain": domain})
            return None
        source = self._inherit(tenant, lambda child: snapshot.by_id.get(child.parent_id or ""))
        if source is None:
            return None
        return normalize_config(source)

    @staticmethod
    def _embedded_parent(tenant: TenantPayload) -> TenantPayload | None:
        parent = tenant.parent
        if parent is not None and parent.id == tenant.parent_id:
            return parent
        return None

    @staticmethod
    def _inherit(
        tenant: TenantPayload,
        find_parent: Callable[[TenantPayload], TenantPayload | None],
    ) -> TenantPayload | None:
        """The tenant whose config is served: its parent when it has one."""
        if not tenant.parent_id:
            return tenant
        parent = find_parent(tenant)
        if parent is None:
            logger.warning(
                "Parent tenant not found, refusing config",
                extra={"tenant": tenant.id, "parent": tenant.parent_id},
            )
            return None
        logger.debug(
            "Using parent tenant config",
            extra={"tenant": tenant.id, "parent": tenant.parent_id},
        )
        return parent

    # -------------------------------------------------------------------------
    # Preload
    # -------------------------------------------------------------------------

    async def load_all_tenants(self) -> bool:
        """Fetch every tenant and swap in a new snapshot.

        Returns:
            True if the snapshot was replaced
        """
        try:
            tenants = await self.client.fetch_all()
        except FETCH_ERRORS as e:
            logger.error("Failed to preload tenants", extra={"error": str(e)})
            return False

        by_domain = {tenant.domain: tenant for tenant in tenants}
        by_id = {tenant.id: tenant for tenant in tenants}
        self._snapshot = _Snapshot(by_domain, by_id)

        logger.info(
            "Tenants preloaded",
            extra={"count": len(by_domain), "domains": sorted(by_domain)[:10]},
        )
        return True

    def clear(self) -> None:
        self._domain_cache = {}
        self._snapshot = None
        logger.info("Tenant cache cleared")
