"""Effective tenant configuration value object.

TenantConfig holds three things:
- a dot-addressable map of configuration values
- a parallel map of per-key visibility (public / protected / private)
- an optional tier tag

Unset visibility is always PRIVATE. The public and protected views are
the only way values cross a trust boundary.

Example:
    cfg = TenantConfig()
    cfg.set("app_name", "Acme").set_visibility("app_name", "public")
    cfg.set("db_password", "s3cret")  # private by default

    cfg.get_public_config()     # {"app_name": "Acme"}
    cfg.get_protected_config()  # {"app_name": "Acme"}
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import Any

from tessera.tenancy.visibility import ConfigVisibility

VISIBILITY_WIRE_KEY = "__visibility"

_MISSING = object()
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    """Convert ``appName`` to ``app_name``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    """Convert ``app_name`` to ``appName``."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class TenantConfig:
    """Dot-addressable tenant configuration with per-key visibility."""

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        visibility: Mapping[str, ConfigVisibility | str] | None = None,
        tier: str | None = None,
    ) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(data or {}))
        self._visibility: dict[str, ConfigVisibility] = {
            key: ConfigVisibility.parse(value) for key, value in (visibility or {}).items()
        }
        self._tier = tier

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Read a value using dot notation (``mail.from.address``)."""
        if key in self._data:
            return self._data[key]

        node: Any = self._data
        for segment in key.split("."):
            if not isinstance(node, Mapping) or segment not in node:
                return default
            node = node[segment]
        return node

    def set(self, key: str, value: Any) -> TenantConfig:
        """Write a value using dot notation, creating intermediate maps."""
        segments = key.split(".")
        node = self._data
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[segments[-1]] = value
        return self

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def forget(self, key: str) -> TenantConfig:
        """Remove a value using dot notation. Missing keys are ignored."""
        if key in self._data:
            del self._data[key]
            return self

        segments = key.split(".")
        node: Any = self._data
        for segment in segments[:-1]:
            if not isinstance(node, dict) or segment not in node:
                return self
            node = node[segment]
        if isinstance(node, dict):
            node.pop(segments[-1], None)
        return self

    def attr(self, name: str, default: Any = None) -> Any:
        """Read a key by name, falling back from camelCase to snake_case.

        ``cfg.attr("appName")`` returns ``app_name`` when ``appName``
        itself is not set.
        """
        if self.has(name):
            return self.get(name)
        return self.get(camel_to_snake(name), default)

    def keys(self) -> list[str]:
        return list(self._data.keys())

    # -------------------------------------------------------------------------
    # Visibility and tier
    # -------------------------------------------------------------------------

    def get_visibility(self, key: str) -> ConfigVisibility:
        return self._visibility.get(key, ConfigVisibility.PRIVATE)

    def set_visibility(self, key: str, visibility: ConfigVisibility | str) -> TenantConfig:
        self._visibility[key] = ConfigVisibility.parse(visibility)
        return self

    def visibility_map(self) -> dict[str, str]:
        """Visibility map as wire strings."""
        return {key: value.value for key, value in self._visibility.items()}

    def get_tier(self) -> str | None:
        return self._tier

    def set_tier(self, tier: str | None) -> TenantConfig:
        self._tier = tier
        return self

    # -------------------------------------------------------------------------
    # Composition and views
    # -------------------------------------------------------------------------

    def merge(self, other: TenantConfig | Mapping[str, Any]) -> TenantConfig:
        """Merge another configuration into this one.

        Values and visibility from ``other`` overwrite matching keys.
        The tier is replaced only when ``other`` carries one. A plain
        mapping contributes values only.
        """
        if isinstance(other, TenantConfig):
            self._data.update(copy.deepcopy(other._data))
            self._visibility.update(other._visibility)
            if other._tier is not None:
                self._tier = other._tier
        else:
            self._data.update(copy.deepcopy(dict(other)))
        return self

    def get_public_config(self) -> dict[str, Any]:
        """Values whose visibility is PUBLIC."""
        return {
            key: copy.deepcopy(value)
            for key, value in self._data.items()
            if self.get_visibility(key) is ConfigVisibility.PUBLIC
        }

    def get_protected_config(self) -> dict[str, Any]:
        """Values whose visibility is PUBLIC or PROTECTED.

        PRIVATE values are always excluded.
        """
        return {
            key: copy.deepcopy(value)
            for key, value in self._data.items()
            if self.get_visibility(key) is not ConfigVisibility.PRIVATE
        }

    def copy(self) -> TenantConfig:
        return TenantConfig(self._data, self._visibility, self._tier)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Persisted record: ``{config, visibility, tier}``."""
        return {
            "config": copy.deepcopy(self._data),
            "visibility": self.visibility_map(),
            "tier": self._tier,
        }

    @classmethod
    def from_dict(cls, record: Mapping[str, Any] | None) -> TenantConfig:
        record = record or {}
        visibility = record.get("visibility") or {}
        if not isinstance(visibility, Mapping):
            visibility = {}
        return cls(record.get("config") or {}, visibility, record.get("tier"))

    def to_wire(self) -> dict[str, Any]:
        """Wire fragment: ``{"config": {..., "__visibility": {...}}, "tier": ...}``."""
        config = copy.deepcopy(self._data)
        config[VISIBILITY_WIRE_KEY] = self.visibility_map()
        return {"config": config, "tier": self._tier}

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any] | None) -> TenantConfig:
        """Build from a wire fragment or a full wire tenant record.

        Visibility tokens that cannot be parsed become PRIVATE.
        """
        payload = payload or {}
        config = dict(payload.get("config") or {})
        visibility = config.pop(VISIBILITY_WIRE_KEY, None) or {}
        if not isinstance(visibility, Mapping):
            visibility = {}
        return cls(config, visibility, payload.get("tier"))

    # -------------------------------------------------------------------------
    # Dunder helpers
    # -------------------------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TenantConfig):
            return NotImplemented
        return (
            self._data == other._data
            and self._visibility == other._visibility
            and self._tier == other._tier
        )

    def __repr__(self) -> str:
        return f"TenantConfig(keys={sorted(self._data)!r}, tier={self._tier!r})"
