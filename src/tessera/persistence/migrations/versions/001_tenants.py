"""Tenant registry.

Revision ID: 001_tenants
Revises:
Create Date: 2026-10-19

Creates the tenants table. The config column holds one JSON document
``{"config": {...}, "visibility": {...}}`` (JSONB on PostgreSQL).
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001_tenants"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("public_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column(
            "parent_id",
            sa.Integer(),
            sa.ForeignKey("tenants.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "config",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column("tier", sa.String(64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_tenants_public_id", "tenants", ["public_id"], unique=True)
    op.create_index("idx_tenants_domain", "tenants", ["domain"], unique=True)
    op.create_index("idx_tenants_parent_id", "tenants", ["parent_id"])


def downgrade() -> None:
    op.drop_index("idx_tenants_parent_id", table_name="tenants")
    op.drop_index("idx_tenants_domain", table_name="tenants")
    op.drop_index("idx_tenants_public_id", table_name="tenants")
    op.drop_table("tenants")
