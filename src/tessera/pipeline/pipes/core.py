"""Application identity, URLs, locale and timezone."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from zoneinfo import ZoneInfo

from tessera.pipeline.base import ConfigurationPipe, PipeResult
from tessera.runtime.bindings import BindingToken
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant
from tessera.tenancy.visibility import ConfigVisibility

_FIELDS = {
    "app_name": "name",
    "app_env": "env",
    "app_url": "url",
    "app_timezone": "timezone",
    "app_locale": "locale",
    "app_fallback_locale": "fallback_locale",
    "frontend_url": "frontend_url",
    "internal_api_url": "internal_api_url",
}


class CoreConfigPipe(ConfigurationPipe):
    priority = 10
    resource = "app"

    def handles(self) -> list[str]:
        return list(_FIELDS)

    def resolve(self, tenant: Tenant, config: Mapping[str, Any]) -> PipeResult:
        result = PipeResult()
        if self.has_value(config, "app_url"):
            result.expose("apiUrl", config["app_url"], ConfigVisibility.PUBLIC)
        if self.has_value(config, "frontend_url"):
            result.expose("appUrl", config["frontend_url"], ConfigVisibility.PUBLIC)
        if self.has_value(config, "app_name"):
            result.expose("appName", config["app_name"], ConfigVisibility.PUBLIC)
        if self.has_value(config, "internal_api_url"):
            result.expose("internalApiUrl", config["internal_api_url"], ConfigVisibility.PROTECTED)
        return result

    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        changes = self.pick(config, _FIELDS)
        if not changes:
            return None

        if "timezone" in changes:
            # Raises on unknown zones before anything is rebound
            ZoneInfo(changes["timezone"])

        origins = tuple(
            config[key] for key in ("app_url", "frontend_url") if self.has_value(config, key)
        )
        if origins:
            changes["cors_origins"] = origins

        return resources.app.rebind(**changes)
