"""Outgoing mail transport and sender."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tessera.pipeline.base import ConfigurationPipe
from tessera.runtime.bindings import BindingToken
from tessera.runtime.managers import validate_host, validate_port
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant

_FIELDS = {
    "mail_mailer": "mailer",
    "mail_host": "host",
    "mail_port": "port",
    "mail_username": "username",
    "mail_password": "password",
    "mail_encryption": "encryption",
    "mail_from_address": "from_address",
    "mail_from_name": "from_name",
}


class MailConfigPipe(ConfigurationPipe):
    priority = 50
    resource = "mail"

    def handles(self) -> list[str]:
        return list(_FIELDS)

    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        changes = self.pick(config, _FIELDS)
        if not changes:
            return None
        if "host" in changes:
            changes["host"] = validate_host(changes["host"])
        if "port" in changes:
            changes["port"] = validate_port(changes["port"])
        return resources.mail.rebind(**changes)
