"""Session/tenant consistency guard.

A session created on one tenant must never be honoured on another. The
guard stamps the resolved tenant id into the session and, when a session
or authenticated user belongs to a different tenant, invalidates the
session, regenerates its CSRF token and logs the user out.

The session and authenticator are protocols so the guard works with any
session backend; ``MappingSession`` adapts a plain dict such as
Starlette's ``request.session``.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from tessera.tenancy.context import TenantContext

logger = logging.getLogger(__name__)

SESSION_TENANT_KEY = "tenant_id"
SESSION_TOKEN_KEY = "_token"


class Session(Protocol):
    def has(self, key: str) -> bool: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def put(self, key: str, value: Any) -> None: ...

    def invalidate(self) -> None: ...

    def regenerate_token(self) -> None: ...


class Authenticator(Protocol):
    def check(self) -> bool: ...

    def user_tenant_id(self) -> Any: ...

    def logout(self) -> None: ...


class MappingSession:
    """Session protocol over a mutable mapping."""

    def __init__(self, data: MutableMapping[str, Any]) -> None:
        self.data = data

    def has(self, key: str) -> bool:
        return key in self.data

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self.data[key] = value

    def invalidate(self) -> None:
        self.data.clear()

    def regenerate_token(self) -> None:
        self.data[SESSION_TOKEN_KEY] = secrets.token_urlsafe(32)

    def token(self) -> str | None:
        return self.data.get(SESSION_TOKEN_KEY)


class SessionOutcome(str, Enum):
    SKIPPED = "skipped"
    STAMPED = "stamped"
    VALID = "valid"
    RESET = "reset"


@dataclass(frozen=True)
class SessionCheck:
    """What the guard did to a session."""

    outcome: SessionOutcome
    logged_out: bool = False

    @property
    def invalidated(self) -> bool:
        return self.outcome is SessionOutcome.RESET


class TenantSessionGuard:
    def validate(
        self,
        context: TenantContext,
        session: Session,
        auth: Authenticator | None = None,
    ) -> SessionCheck:
        """Bring the session in line with the resolved tenant.

        Raises:
            TenantNotResolvedError: If the context holds no tenant and is
                not bypassed
        """
        if context.is_bypassed():
            return SessionCheck(SessionOutcome.SKIPPED)

        tenant_id = context.get().id
        outcome = SessionOutcome.VALID
        logged_out = False

        if not session.has(SESSION_TENANT_KEY):
            session.put(SESSION_TENANT_KEY, tenant_id)
            outcome = SessionOutcome.STAMPED
        elif session.get(SESSION_TENANT_KEY) != tenant_id:
            logger.warning(
                "Session belongs to another tenant, invalidating",
                extra={"session_tenant": session.get(SESSION_TENANT_KEY)},
            )
            self._reset(session, tenant_id)
            if auth is not None and auth.check():
                auth.logout()
                logged_out = True
            outcome = SessionOutcome.RESET

        if auth is not None and auth.check() and auth.user_tenant_id() != tenant_id:
            logger.warning("Authenticated user belongs to another tenant, logging out")
            auth.logout()
            self._reset(session, tenant_id)
            logged_out = True
            outcome = SessionOutcome.RESET

        return SessionCheck(outcome, logged_out)

    @staticmethod
    def _reset(session: Session, tenant_id: Any) -> None:
        session.invalidate()
        session.regenerate_token()
        session.put(SESSION_TENANT_KEY, tenant_id)
