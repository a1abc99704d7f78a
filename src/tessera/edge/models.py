"""Wire models for tenant records received from the backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TenantPayload(BaseModel):
    """Tenant resource as returned by ``GET /tenant`` and ``GET /tenant/cache``.

    Identifiers are strings on the wire; numeric ids are accepted and
    converted.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    domain: str
    parent_id: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    tier: str | None = None
    parent: TenantPayload | None = None

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


@dataclass(frozen=True)
class CachedTenantConfig:
    """A resolved configuration and the clock time it stops being valid."""

    config: dict[str, Any]
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
