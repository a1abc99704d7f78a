"""Tenant registry persistence (SQLAlchemy async)."""

from tessera.persistence.db import Database
from tessera.persistence.repositories import DatabaseTenantLookup, TenantRepository
from tessera.persistence.tables import Base, TenantTable

__all__ = ["Base", "Database", "DatabaseTenantLookup", "TenantRepository", "TenantTable"]
