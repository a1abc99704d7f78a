"""Request-scoped tenant context.

One TenantContext is created per request by TenantMiddleware and stored
on ``request.state.tenant_context``. Handlers and services receive it
explicitly (see ``tessera.api.deps.get_tenant_context``) instead of
reading a process global.

Example:
    context = TenantContext()
    context.set(tenant)

    if context.has():
        tenant = context.get()

    # System/internal calls skip tenant scoping
    context.set_bypassed(True)
"""

from __future__ import annotations

from typing import Any

from tessera.tenancy.errors import TenantNotResolvedError
from tessera.tenancy.models import Tenant


class TenantContext:
    """Single slot holding the current tenant or a bypass flag."""

    def __init__(self, tenant: Tenant | None = None, bypassed: bool = False) -> None:
        self._tenant = tenant
        self._bypassed = bypassed

    def set(self, tenant: Tenant) -> None:
        self._tenant = tenant

    def get(self) -> Tenant:
        """Get the current tenant.

        Raises:
            TenantNotResolvedError: If no tenant is set
        """
        if self._tenant is None:
            raise TenantNotResolvedError()
        return self._tenant

    def get_or_none(self) -> Tenant | None:
        return self._tenant

    def has(self) -> bool:
        return self._tenant is not None

    def unset(self) -> None:
        self._tenant = None

    def clear(self) -> None:
        """Reset the slot at request end."""
        self._tenant = None
        self._bypassed = False

    def set_bypassed(self, bypassed: bool = True) -> None:
        self._bypassed = bypassed

    def is_bypassed(self) -> bool:
        return self._bypassed

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenant": self._tenant.to_dict() if self._tenant is not None else None,
            "bypassed": self._bypassed,
        }

    def __repr__(self) -> str:
        tenant = self._tenant.public_id if self._tenant is not None else None
        return f"TenantContext(tenant={tenant!r}, bypassed={self._bypassed})"


class TenantScope:
    """Context manager for temporarily setting a tenant on a context.

    Example:
        with TenantScope(context, tenant):
            ...  # context.get() is tenant here
    """

    def __init__(self, context: TenantContext, tenant: Tenant) -> None:
        self.context = context
        self.tenant = tenant
        self._previous: Tenant | None = None

    def __enter__(self) -> TenantContext:
        self._previous = self.context.get_or_none()
        self.context.set(self.tenant)
        return self.context

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._previous is not None:
            self.context.set(self._previous)
        else:
            self.context.unset()
