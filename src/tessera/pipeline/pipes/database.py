"""Tenant data connection."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tessera.pipeline.base import ConfigurationPipe
from tessera.runtime.bindings import BindingToken
from tessera.runtime.managers import validate_host, validate_port
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant

_FIELDS = {
    "db_connection": "connection",
    "db_host": "host",
    "db_port": "port",
    "db_database": "database",
    "db_username": "username",
    "db_password": "password",
}

# Any of these marks the tenant as owning a dedicated connection
_TRIGGERS = ("db_host", "db_database", "db_connection")


class DatabaseConfigPipe(ConfigurationPipe):
    """Points the database manager at the tenant's own database.

    Tenants that only override credentials keep the shared connection.
    A malformed host or port raises ValueError; the pipeline logs it and
    the default connection stays bound.
    """

    priority = 20
    resource = "database"

    def handles(self) -> list[str]:
        return list(_FIELDS)

    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        if not any(self.has_value(config, key) for key in _TRIGGERS):
            return None

        changes = self.pick(config, _FIELDS)
        if "host" in changes:
            changes["host"] = validate_host(changes["host"])
        if "port" in changes:
            changes["port"] = validate_port(changes["port"])

        return resources.database.rebind(**changes)
