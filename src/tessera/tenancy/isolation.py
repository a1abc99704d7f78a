"""Tenant isolation for stored records.

Example:
    from tessera.tenancy.isolation import validate_tenant_access

    validate_tenant_access(order.tenant_id, context, operation="update")
"""

from __future__ import annotations

from typing import Any

from tessera.tenancy.context import TenantContext
from tessera.tenancy.errors import TenantMismatchError


def validate_tenant_access(
    record_tenant_id: Any,
    context: TenantContext,
    operation: str = "access",
) -> None:
    """Validate that the active tenant owns a record.

    A bypassed context skips the check.

    Raises:
        TenantMismatchError: If the record belongs to another tenant
        TenantNotResolvedError: If no tenant is active
    """
    if context.is_bypassed():
        return

    current = context.get().id
    if record_tenant_id != current:
        raise TenantMismatchError(current, record_tenant_id, operation)


def ensure_tenant_field(
    data: dict[str, Any],
    context: TenantContext,
    field: str = "tenant_id",
) -> dict[str, Any]:
    """Stamp the active tenant id on data that has none.

    Raises:
        TenantMismatchError: If data already carries a different tenant id
    """
    current = context.get().id
    existing = data.get(field)
    if existing is None:
        data[field] = current
    elif existing != current:
        raise TenantMismatchError(current, existing, "write")
    return data
