"""SQLAlchemy ORM models for the tenant registry.

Tenant configuration is stored as one JSON document holding the values
and their visibility map:

    {"config": {...}, "visibility": {...}}

JSON is stored as JSONB on PostgreSQL and plain JSON elsewhere.
"""

from __future__ import annotations

import secrets
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tessera.tenancy.config import TenantConfig
from tessera.tenancy.models import Tenant

JsonDocument = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_public_id() -> str:
    return secrets.token_hex(13)


class TenantTable(Base):
    """Tenant registry table."""

    __tablename__ = "tenants"

    # Internal id, never exposed to clients
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    public_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, default=generate_public_id
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tenants.id", ondelete="SET NULL"), nullable=True, index=True
    )

    config: Mapped[dict[str, Any]] = mapped_column(JsonDocument, nullable=False, default=dict)
    tier: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def to_domain(self, parent: Tenant | None = None) -> Tenant:
        """Convert to the domain model; the caller supplies the resolved parent."""
        document = self.config or {}
        return Tenant(
            id=self.id,
            public_id=self.public_id,
            name=self.name,
            domain=self.domain,
            parent=parent,
            config=TenantConfig(document.get("config") or {}, document.get("visibility") or {}),
            tier=self.tier,
        )

    @classmethod
    def from_domain(cls, tenant: Tenant) -> TenantTable:
        record = tenant.config.to_dict()
        row = cls(
            public_id=tenant.public_id or generate_public_id(),
            name=tenant.name,
            domain=tenant.domain,
            parent_id=tenant.parent_id,
            config={"config": record["config"], "visibility": record["visibility"]},
            tier=tenant.tier,
        )
        if tenant.id:
            row.id = tenant.id
        return row
