"""Redis connection used by the cache manager."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tessera.pipeline.base import ConfigurationPipe
from tessera.runtime.bindings import BindingToken
from tessera.runtime.managers import validate_host, validate_port
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant

_FIELDS = {
    "redis_client": "client",
    "redis_host": "host",
    "redis_port": "port",
    "redis_password": "password",
    "redis_prefix": "prefix",
}


class RedisConfigPipe(ConfigurationPipe):
    priority = 35
    resource = "redis"

    def handles(self) -> list[str]:
        return list(_FIELDS)

    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        changes = self.pick(config, _FIELDS)
        if not changes:
            return None

        if "host" in changes:
            changes["host"] = validate_host(changes["host"])
        if "port" in changes:
            changes["port"] = validate_port(changes["port"])
        changes.setdefault("prefix", f"tenant_{tenant.id}:")

        return resources.redis.rebind(**changes)
