"""Session driver, lifetime and cookie names."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tessera.pipeline.base import ConfigurationPipe, PipeResult
from tessera.runtime.bindings import BindingToken
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.csrf import xsrf_cookie_name
from tessera.tenancy.models import Tenant
from tessera.tenancy.visibility import ConfigVisibility

logger = logging.getLogger(__name__)

_FIELDS = {
    "session_driver": "driver",
    "session_lifetime": "lifetime",
    "session_encrypt": "encrypt",
    "session_path": "path",
    "session_domain": "domain",
    "session_cookie": "cookie",
}


def default_session_cookie(tenant: Tenant) -> str:
    return f"tenant_{tenant.id}_session"


class SessionConfigPipe(ConfigurationPipe):
    """Isolates session cookies per tenant.

    Always rebinds: the session cookie falls back to ``tenant_{id}_session``
    and the XSRF cookie to ``XSRF-TOKEN-{public_id}``. With the database
    driver, sessions are stored on the tenant's active connection.
    """

    priority = 40
    resource = "session"

    def handles(self) -> list[str]:
        return list(_FIELDS)

    def resolve(self, tenant: Tenant, config: Mapping[str, Any]) -> PipeResult:
        result = PipeResult()
        result.expose(
            "sessionCookie",
            self.get_value(config, "session_cookie", default_session_cookie(tenant)),
            ConfigVisibility.PROTECTED,
        )
        if self.has_value(config, "session_lifetime"):
            result.expose(
                "sessionLifetime", config["session_lifetime"], ConfigVisibility.PROTECTED
            )
        return result

    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        changes = self.pick(config, _FIELDS)
        changes.setdefault("cookie", default_session_cookie(tenant))
        if "lifetime" in changes:
            try:
                changes["lifetime"] = int(changes["lifetime"])
            except (TypeError, ValueError):
                logger.warning(
                    "Ignoring malformed session lifetime",
                    extra={"tenant": tenant.public_id, "lifetime": changes.pop("lifetime")},
                )
        changes["xsrf_cookie"] = xsrf_cookie_name(tenant)

        driver = changes.get("driver", resources.session.current.driver)
        if driver == "database":
            connection = resources.database.current.url().render_as_string(hide_password=True)
            changes["connection"] = connection
            logger.debug("Session store follows tenant database", extra={"connection": connection})

        return resources.session.rebind(**changes)
