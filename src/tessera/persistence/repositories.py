"""Tenant registry repository.

Parent chains are loaded explicitly (one lookup per ancestor) so the
domain model never triggers lazy loads on the async session.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tessera.persistence.db import Database
from tessera.persistence.tables import TenantTable
from tessera.tenancy.models import Tenant

logger = logging.getLogger(__name__)

MAX_PARENT_DEPTH = 16


class TenantRepository:
    """Repository for tenant records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, tenant_id: int) -> Tenant | None:
        row = await self.session.get(TenantTable, tenant_id)
        if row is None:
            return None
        return await self._to_domain(row)

    async def find_by_domain(self, domain: str) -> Tenant | None:
        result = await self.session.execute(
            select(TenantTable).where(TenantTable.domain == domain.lower())
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return await self._to_domain(row)

    async def find_by_public_id(self, public_id: str) -> Tenant | None:
        result = await self.session.execute(
            select(TenantTable).where(TenantTable.public_id == public_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return await self._to_domain(row)

    async def list_all(self) -> list[Tenant]:
        """All tenants with parents linked from the same result set."""
        result = await self.session.execute(select(TenantTable).order_by(TenantTable.id))
        rows = {row.id: row for row in result.scalars()}

        built: dict[int, Tenant] = {}

        def build(row_id: int, depth: int = 0) -> Tenant | None:
            if row_id in built:
                return built[row_id]
            row = rows.get(row_id)
            if row is None or depth > MAX_PARENT_DEPTH:
                return None
            parent = build(row.parent_id, depth + 1) if row.parent_id is not None else None
            tenant = row.to_domain(parent)
            built[row_id] = tenant
            return tenant

        return [tenant for row_id in rows if (tenant := build(row_id)) is not None]

    async def create(self, tenant: Tenant) -> Tenant:
        row = TenantTable.from_domain(tenant)
        self.session.add(row)
        await self.session.flush()
        return row.to_domain(tenant.parent)

    async def update_config(self, tenant: Tenant) -> bool:
        row = await self.session.get(TenantTable, tenant.id)
        if row is None:
            return False
        record = tenant.config.to_dict()
        row.config = {"config": record["config"], "visibility": record["visibility"]}
        row.tier = tenant.tier
        await self.session.flush()
        tenant.invalidate_effective_config()
        return True

    async def delete(self, tenant_id: int) -> bool:
        row = await self.session.get(TenantTable, tenant_id)
        if row is None:
            return False
        await self.session.delete(row)
        await self.session.flush()
        return True

    async def _to_domain(self, row: TenantTable) -> Tenant:
        chain = [row]
        seen = {row.id}
        parent_id = row.parent_id
        while parent_id is not None:
            if parent_id in seen or len(chain) > MAX_PARENT_DEPTH:
                logger.warning("Tenant parent chain truncated", extra={"tenant_row": row.id})
                break
            parent_row = await self.session.get(TenantTable, parent_id)
            if parent_row is None:
                break
            seen.add(parent_id)
            chain.append(parent_row)
            parent_id = parent_row.parent_id

        tenant: Tenant | None = None
        for link in reversed(chain):
            tenant = link.to_domain(tenant)
        assert tenant is not None
        return tenant


class DatabaseTenantLookup:
    """TenantLookup backed by the registry database."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def find_by_domain(self, domain: str) -> Tenant | None:
        async with self.database.session() as session:
            return await TenantRepository(session).find_by_domain(domain)

    async def list_all(self) -> list[Tenant]:
        async with self.database.session() as session:
            return await TenantRepository(session).list_all()
