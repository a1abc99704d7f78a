"""Global pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from tessera.config import Settings
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.config import TenantConfig
from tessera.tenancy.models import Tenant


class InMemoryTenantLookup:
    """TenantLookup over a list of tenants, counting lookups."""

    def __init__(self, tenants: list[Tenant] | None = None) -> None:
        self.tenants = {tenant.domain: tenant for tenant in tenants or []}
        self.calls = 0

    def add(self, tenant: Tenant) -> None:
        self.tenants[tenant.domain] = tenant

    async def find_by_domain(self, domain: str) -> Tenant | None:
        self.calls += 1
        return self.tenants.get(domain)

    async def list_all(self) -> list[Tenant]:
        return list(self.tenants.values())


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        app_url="http://api.local",
        frontend_url="http://app.local",
        db_host="db.local",
        db_database="shared",
        redis_url="redis://cache.local:6379/0",
        cache_prefix="shared_",
        session_cookie="shared_session",
        trusted_ips=["127.0.0.1", "testclient"],
        ssr_api_key="ssr-secret",
        log_json=False,
        log_level="WARNING",
    )


@pytest.fixture
def resources(settings: Settings) -> Iterator[RuntimeResources]:
    yield RuntimeResources.from_settings(settings)


@pytest.fixture
def make_tenant() -> Callable[..., Tenant]:
    """Factory for tenants with plain-dict configuration."""

    def factory(
        id: int = 1,
        domain: str | None = None,
        name: str | None = None,
        public_id: str | None = None,
        config: dict[str, Any] | None = None,
        visibility: dict[str, str] | None = None,
        parent: Tenant | None = None,
        tier: str | None = None,
    ) -> Tenant:
        return Tenant(
            id=id,
            public_id=public_id or f"tnt_{id}",
            name=name or f"Tenant {id}",
            domain=domain or f"tenant{id}.test",
            parent=parent,
            config=TenantConfig(config or {}, visibility or {}),
            tier=tier,
        )

    return factory


@pytest.fixture
def lookup() -> InMemoryTenantLookup:
    return InMemoryTenantLookup()
