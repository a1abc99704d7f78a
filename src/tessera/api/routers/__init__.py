"""API routers."""

from tessera.api.routers import health, tenant

__all__ = ["health", "tenant"]
