from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EdgeSettings(BaseSettings):
    """Settings for the SSR edge server (env prefix ``TESSERA_EDGE_``)."""

    model_config = SettingsConfigDict(env_prefix="TESSERA_EDGE_", env_file=".env", extra="ignore")

    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 3000

    # Backend
    api_url: str = "http://localhost:8080"
    ssr_api_key: str | None = None
    backend_timeout: float = 5.0
    tenant_endpoint: str = "/tenant"
    tenant_cache_endpoint: str = "/tenant/cache"

    # Caching
    enable_cache: bool = False
    preload_tenants: bool = False
    resolver_ttl: int = Field(default=300, ge=0)
    cache_ttl: int = Field(default=300, gt=0)

    # Single-tenant deployments serve this configuration for every host
    multi_tenant: bool = True
    app_name: str = ""
    app_url: str = ""
    public_api_url: str = ""
    internal_api_url: str | None = None
    tenant_id: str = ""
    tenant_name: str = ""
    pusher_app_key: str = ""
    pusher_app_cluster: str = ""
    session_cookie: str = ""

    log_level: str = "INFO"
    log_json: bool = True
