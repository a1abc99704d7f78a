"""In-process tenant resolution cache.

Maps domain to a resolved Tenant with a read-time TTL check and a size
bound. When full, the entry that expires soonest is evicted.

Example:
    cache = TenantMemoryCache(ttl=300, max_size=1000)
    cache.put("acme.example.com", tenant)
    cache.get("acme.example.com")  # tenant, until 300s have passed
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from tessera.tenancy.models import Tenant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    tenant: Tenant
    expires_at: float


class TenantMemoryCache:
    """Domain to Tenant cache owned by a single resolver."""

    def __init__(
        self,
        ttl: int = 300,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def get(self, domain: str) -> Tenant | None:
        entry = self._entries.get(domain)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[domain]
            return None
        return entry.tenant

    def put(self, domain: str, tenant: Tenant) -> None:
        if domain not in self._entries and len(self._entries) >= self.max_size:
            self._evict_oldest()
        self._entries[domain] = _Entry(tenant, self._clock() + self.ttl)

    def invalidate(self, domain: str) -> None:
        self._entries.pop(domain, None)

    def clear(self) -> None:
        self._entries.clear()

    def _evict_oldest(self) -> None:
        oldest = min(self._entries, key=lambda domain: self._entries[domain].expires_at)
        del self._entries[oldest]
        logger.debug("Evicted tenant cache entry", extra={"domain": oldest})

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and self.get(domain) is not None
