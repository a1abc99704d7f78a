"""Tenant error hierarchy.

Each error carries the HTTP status and machine-readable code the API
layer renders it with.
"""

from __future__ import annotations


class TenantError(Exception):
    """Base class for tenant resolution and isolation failures."""

    status_code = 500
    code = "TenantError"


class TenantNotFoundError(TenantError):
    """No tenant matches the request domain."""

    status_code = 403
    code = "TenantNotFound"

    def __init__(self, domain: str):
        self.domain = domain
        super().__init__(f"Tenant not found for hostname '{domain}'")


class TenantMismatchError(TenantError):
    """A tenant-scoped record belongs to a different tenant than the active one."""

    status_code = 403
    code = "TenantMismatch"

    def __init__(self, expected: object, actual: object, operation: str = "access"):
        self.expected = expected
        self.actual = actual
        self.operation = operation
        super().__init__(
            f"Tenant '{expected}' cannot {operation} a record belonging to tenant '{actual}'"
        )


class TenantNotResolvedError(TenantError):
    """The tenant context was read before a tenant was resolved."""

    code = "TenantNotResolved"

    def __init__(self) -> None:
        super().__init__("No tenant context set. Ensure TenantMiddleware is active.")


class ContributorApplyError(TenantError):
    """A configuration pipe failed to apply. Logged, never propagated."""

    code = "ContributorApplyFailed"

    def __init__(self, pipe: str, reason: str):
        self.pipe = pipe
        self.reason = reason
        super().__init__(f"Configuration pipe '{pipe}' failed to apply: {reason}")
