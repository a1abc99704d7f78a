"""Pusher broadcasting credentials."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tessera.pipeline.base import ConfigurationPipe, PipeResult
from tessera.runtime.bindings import BindingToken
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant
from tessera.tenancy.visibility import ConfigVisibility

_FIELDS = {
    "pusher_app_id": "app_id",
    "pusher_app_key": "key",
    "pusher_app_secret": "secret",
    "pusher_app_cluster": "cluster",
}


class BroadcastingConfigPipe(ConfigurationPipe):
    priority = 60
    resource = "broadcasting"

    def handles(self) -> list[str]:
        return list(_FIELDS)

    def resolve(self, tenant: Tenant, config: Mapping[str, Any]) -> PipeResult:
        result = PipeResult()
        if self.has_value(config, "pusher_app_key"):
            result.expose("pusherAppKey", config["pusher_app_key"], ConfigVisibility.PUBLIC)
        if self.has_value(config, "pusher_app_cluster"):
            result.expose(
                "pusherAppCluster", config["pusher_app_cluster"], ConfigVisibility.PUBLIC
            )
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
        return resources.broadcasting.rebind(**changes)
