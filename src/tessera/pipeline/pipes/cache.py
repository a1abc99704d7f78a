"""Cache store and key prefix."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tessera.pipeline.base import ConfigurationPipe
from tessera.runtime.bindings import BindingToken
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant


class CacheConfigPipe(ConfigurationPipe):
    """Gives every tenant its own cache key space.

    Without an explicit ``cache_prefix`` the prefix is ``tenant_{id}_``.
    """

    priority = 30
    resource = "cache"

    def handles(self) -> list[str]:
        return ["cache_store", "cache_prefix"]

    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        if not any(self.has_value(config, key) for key in self.handles()):
            return None

        changes = self.pick(config, {"cache_store": "store", "cache_prefix": "prefix"})
        changes.setdefault("prefix", f"tenant_{tenant.id}_")
        return resources.cache.rebind(**changes)
