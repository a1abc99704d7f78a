"""SSR edge: tenant configuration cache in front of the backend.

- EdgeTenantCache: disabled / lazy / preload caching of tenant configs
- BackendClient: httpx client for the backend tenant endpoints
- EdgeTenantResolver: host to configuration, with logging
- create_edge_app: FastAPI app serving the public config subset
"""

from tessera.edge.cache import CacheMode, EdgeTenantCache, normalize_config
from tessera.edge.client import BackendClient
from tessera.edge.models import CachedTenantConfig, TenantPayload
from tessera.edge.resolver import EdgeTenantResolver, public_config
from tessera.edge.settings import EdgeSettings

__all__ = [
    "BackendClient",
    "CacheMode",
    "CachedTenantConfig",
    "EdgeSettings",
    "EdgeTenantCache",
    "EdgeTenantResolver",
    "TenantPayload",
    "normalize_config",
    "public_config",
]
