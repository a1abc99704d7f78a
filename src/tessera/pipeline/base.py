"""Configuration pipe contract.

A pipe owns one infrastructure concern. It has two halves:

- ``resolve``: pure. Computes the frontend-facing values (and their
  visibility) that this concern contributes for a tenant.
- ``apply`` / ``reset``: the live side effect. ``apply`` rebinds the
  pipe's resource manager for the current request and returns a token;
  ``reset`` restores the previous binding from that token.

Pipes hold no per-request state, so one instance serves every request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from tessera.runtime.bindings import BindingToken
from tessera.runtime.managers import ResourceManager
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant
from tessera.tenancy.visibility import ConfigVisibility


@dataclass
class PipeResult:
    """Values and visibility contributed by one pipe's ``resolve``."""

    values: dict[str, Any] = field(default_factory=dict)
    visibility: dict[str, ConfigVisibility] = field(default_factory=dict)

    def expose(
        self,
        key: str,
        value: Any,
        visibility: ConfigVisibility | str = ConfigVisibility.PRIVATE,
    ) -> PipeResult:
        self.values[key] = value
        self.visibility[key] = ConfigVisibility.parse(visibility)
        return self


class ConfigurationPipe(ABC):
    """Base class for configuration pipes.

    Subclasses set ``priority`` (lower runs first) and ``resource`` (the
    attribute name of the manager on RuntimeResources they rebind).
    """

    priority: int = 100
    resource: str = ""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def handles(self) -> list[str]:
        """Tenant configuration keys this pipe reads."""

    def resolve(self, tenant: Tenant, config: Mapping[str, Any]) -> PipeResult:
        """Compute frontend-facing values without side effects."""
        return PipeResult()

    @abstractmethod
    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        """Rebind this pipe's resource for the current request.

        Returns:
            Token for ``reset``, or None when nothing was rebound
        """

    def reset(self, resources: RuntimeResources, token: BindingToken[Any]) -> None:
        """Restore the binding that was active before ``apply``."""
        self.manager(resources).reset(token)

    def manager(self, resources: RuntimeResources) -> ResourceManager[Any]:
        manager: ResourceManager[Any] = getattr(resources, self.resource)
        return manager

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def has_value(config: Mapping[str, Any], key: str) -> bool:
        """True when ``key`` is set to something other than None or ''."""
        value = config.get(key)
        return value is not None and value != ""

    @staticmethod
    def get_value(config: Mapping[str, Any], key: str, default: Any = None) -> Any:
        value = config.get(key)
        if value is None or value == "":
            return default
        return value

    def pick(self, config: Mapping[str, Any], mapping: Mapping[str, str]) -> dict[str, Any]:
        """Translate present tenant keys into settings field names.

        Example:
            self.pick(config, {"mail_host": "host", "mail_port": "port"})
        """
        return {
            field_name: config[key]
            for key, field_name in mapping.items()
            if self.has_value(config, key)
        }

    def __repr__(self) -> str:
        return f"{self.name}(priority={self.priority})"
