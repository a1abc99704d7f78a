"""Tenant domain model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tessera.tenancy.config import TenantConfig


@dataclass(eq=False)
class Tenant:
    """An isolated organization selected by its domain.

    Attributes:
        id: Internal identifier (never exposed to clients)
        public_id: Externally-safe identifier
        name: Display name
        domain: Unique resolution key
        parent: Optional parent tenant the configuration inherits from
        config: The tenant's own configuration overrides
        tier: Optional tier tag
    """

    id: int
    public_id: str
    name: str
    domain: str
    parent: Tenant | None = None
    config: TenantConfig = field(default_factory=TenantConfig)
    tier: str | None = None
    _effective: TenantConfig | None = field(default=None, init=False, repr=False)

    @property
    def parent_id(self) -> int | None:
        return self.parent.id if self.parent is not None else None

    @property
    def identity(self) -> Tenant:
        """The tenant whose identity is shown to clients (parent if any)."""
        return self.parent if self.parent is not None else self

    def ancestors(self) -> list[Tenant]:
        """Parent chain, nearest first.

        Raises:
            ValueError: If the parent chain contains a cycle
        """
        chain: list[Tenant] = []
        seen = {self.id}
        node = self.parent
        while node is not None:
            if node.id in seen:
                raise ValueError(f"Tenant {self.id} has a cyclic parent chain")
            seen.add(node.id)
            chain.append(node)
            node = node.parent
        return chain

    def effective_config(self) -> TenantConfig:
        """Configuration with the parent chain merged in, root first.

        The tenant's own keys override inherited ones. The result is
        memoised; call ``invalidate_effective_config`` after mutating.
        """
        if self._effective is None:
            merged = TenantConfig()
            for ancestor in reversed(self.ancestors()):
                merged.merge(ancestor.config)
            merged.merge(self.config)
            if self.tier is not None and merged.get_tier() is None:
                merged.set_tier(self.tier)
            self._effective = merged
        return self._effective.copy()

    def invalidate_effective_config(self) -> None:
        self._effective = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for session storage and logging."""
        return {
            "id": self.id,
            "public_id": self.public_id,
            "name": self.name,
            "domain": self.domain,
            "parent_id": self.parent_id,
            "tier": self.tier,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tenant):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
