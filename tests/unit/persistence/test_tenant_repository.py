"""Tests for the tenant registry repository on an in-memory SQLite database."""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from tessera.persistence.db import Database
from tessera.persistence.repositories import DatabaseTenantLookup, TenantRepository
from tessera.tenancy.config import TenantConfig
from tessera.tenancy.models import Tenant


@pytest_asyncio.fixture
async def database() -> AsyncIterator[Database]:
    database = Database("sqlite+aiosqlite:///:memory:")
    await database.create_all()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def seeded(database: Database, make_tenant) -> Database:
    """Registry with a parent, a child and a grandchild."""
    root = make_tenant(
        1,
        domain="group.test",
        config={"app_url": "https://api.group.test", "app_name": "Group"},
        visibility={"app_url": "public"},
    )
    child = make_tenant(2, domain="acme.test", parent=root, config={"app_name": "Acme"})
    grandchild = make_tenant(3, domain="shop.acme.test", parent=child, tier="pro")
    async with database.session() as session:
        repo = TenantRepository(session)
        for tenant in (root, child, grandchild):
            await repo.create(tenant)
    return database


class TestTenantRepository:
    """Tests for TenantRepository."""

    @pytest.mark.asyncio
    async def test_find_by_domain_loads_parent_chain(self, seeded: Database) -> None:
        async with seeded.session() as session:
            tenant = await TenantRepository(session).find_by_domain("Shop.Acme.test")

        assert tenant is not None
        assert [t.id for t in tenant.ancestors()] == [2, 1]
        assert tenant.identity.id == 2
        effective = tenant.effective_config()
        assert effective.get("app_name") == "Acme"
        assert effective.get("app_url") == "https://api.group.test"
        assert effective.get_tier() == "pro"

    @pytest.mark.asyncio
    async def test_missing_domain(self, seeded: Database) -> None:
        async with seeded.session() as session:
            assert await TenantRepository(session).find_by_domain("nobody.test") is None

    @pytest.mark.asyncio
    async def test_find_by_public_id(self, seeded: Database) -> None:
        async with seeded.session() as session:
            tenant = await TenantRepository(session).find_by_public_id("tnt_2")
        assert tenant is not None
        assert tenant.domain == "acme.test"

    @pytest.mark.asyncio
    async def test_visibility_persisted(self, seeded: Database) -> None:
        async with seeded.session() as session:
            tenant = await TenantRepository(session).get(1)
        assert tenant is not None
        assert tenant.config.get_public_config() == {"app_url": "https://api.group.test"}

    @pytest.mark.asyncio
    async def test_list_all_links_parents(self, seeded: Database) -> None:
        async with seeded.session() as session:
            tenants = await TenantRepository(session).list_all()

        by_id = {tenant.id: tenant for tenant in tenants}
        assert sorted(by_id) == [1, 2, 3]
        assert by_id[3].parent is by_id[2]
        assert by_id[2].parent is by_id[1]

    @pytest.mark.asyncio
    async def test_update_config(self, seeded: Database) -> None:
        async with seeded.session() as session:
            repo = TenantRepository(session)
            tenant = await repo.get(2)
            assert tenant is not None
            tenant.config = TenantConfig({"app_name": "Acme Corp"})
            assert await repo.update_config(tenant)

        async with seeded.session() as session:
            reloaded = await TenantRepository(session).get(2)
        assert reloaded is not None
        assert reloaded.config.get("app_name") == "Acme Corp"

    @pytest.mark.asyncio
    async def test_update_missing_tenant(self, database: Database) -> None:
        async with database.session() as session:
            ghost = Tenant(id=99, public_id="tnt_99", name="Ghost", domain="ghost.test")
            assert not await TenantRepository(session).update_config(ghost)

    @pytest.mark.asyncio
    async def test_delete(self, seeded: Database) -> None:
        async with seeded.session() as session:
            assert await TenantRepository(session).delete(3)
            assert not await TenantRepository(session).delete(3)

    @pytest.mark.asyncio
    async def test_generates_public_id(self, database: Database) -> None:
        async with database.session() as session:
            created = await TenantRepository(session).create(
                Tenant(id=0, public_id="", name="Fresh", domain="fresh.test")
            )
        assert created.id > 0
        assert len(created.public_id) == 26


class TestDatabaseTenantLookup:
    """Tests for the resolver-facing lookup."""

    @pytest.mark.asyncio
    async def test_find_and_list(self, seeded: Database) -> None:
        lookup = DatabaseTenantLookup(seeded)
        tenant = await lookup.find_by_domain("acme.test")
        assert tenant is not None
        assert tenant.parent is not None
        assert len(await lookup.list_all()) == 3

    @pytest.mark.asyncio
    async def test_health_check(self, database: Database) -> None:
        assert await database.health_check()
