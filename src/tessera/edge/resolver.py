"""Edge tenant resolution and browser-safe config filtering."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tessera.edge.cache import VISIBILITY_KEY, EdgeTenantCache
from tessera.edge.settings import EdgeSettings

logger = logging.getLogger(__name__)


def normalize_domain(host: str) -> str:
    """Lower-cased host without port."""
    host = host.strip().lower()
    if host.startswith("["):
        return host.split("]")[0] + "]"
    return host.split(":")[0]


def config_from_settings(settings: EdgeSettings) -> dict[str, Any]:
    """Configuration served by single-tenant deployments."""
    config: dict[str, Any] = {
        "apiUrl": settings.public_api_url,
        "appUrl": settings.app_url,
        "appName": settings.app_name,
        "tenantId": settings.tenant_id,
        "tenantName": settings.tenant_name,
        "pusherAppKey": settings.pusher_app_key,
        "pusherAppCluster": settings.pusher_app_cluster,
        "sessionCookie": settings.session_cookie,
        "internalApiUrl": settings.internal_api_url or settings.public_api_url,
    }
    visibility = {key: "public" for key in config}
    visibility["sessionCookie"] = "protected"
    visibility["internalApiUrl"] = "protected"
    config[VISIBILITY_KEY] = visibility
    return config


def public_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Only the keys marked public, without the visibility map.

    Keys without a visibility entry and keys whose value is None are
    dropped.
    """
    visibility = config.get(VISIBILITY_KEY)
    if not isinstance(visibility, Mapping):
        return {}
    return {
        key: config[key]
        for key, level in visibility.items()
        if level == "public" and key in config and config[key] is not None
    }


class EdgeTenantResolver:
    def __init__(self, cache: EdgeTenantCache, settings: EdgeSettings) -> None:
        self.cache = cache
        self.settings = settings

    async def get_tenant_config(self, domain: str) -> dict[str, Any] | None:
        if not self.settings.multi_tenant:
            return config_from_settings(self.settings)

        domain = normalize_domain(domain)
        logger.debug("Resolving tenant config", extra={"domain": domain})
        config = await self.cache.get_tenant_config(domain)
        if config is None:
            logger.warning("No tenant config found", extra={"domain": domain})
        else:
            logger.debug(
                "Tenant config resolved",
                extra={"domain": domain, "tenant": config.get("tenantId")},
            )
        return config
