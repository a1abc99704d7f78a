"""Queue connection, queue name and failed-job table."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tessera.pipeline.base import ConfigurationPipe
from tessera.runtime.bindings import BindingToken
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant

DEFAULT_QUEUE = "default"
DEFAULT_RETRY_AFTER = 90
DEFAULT_SQS_REGION = "us-east-1"


class QueueConfigPipe(ConfigurationPipe):
    """Routes a tenant's jobs to its own queue.

    Connection specific keys only apply together with the matching
    ``queue_connection``: ``queue_database_table`` for ``database``,
    ``redis_queue_database`` for ``redis`` and ``aws_sqs_*`` for ``sqs``.
    """

    priority = 45
    resource = "queue"

    def handles(self) -> list[str]:
        return [
            "queue_default",
            "queue_connection",
            "queue_database_table",
            "queue_name",
            "queue_retry_after",
            "queue_failed_table",
            "redis_queue_database",
            "aws_sqs_queue",
            "aws_sqs_region",
            "aws_sqs_key",
            "aws_sqs_secret",
        ]

    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        changes: dict[str, Any] = {}
        if self.has_value(config, "queue_default"):
            changes["default"] = config["queue_default"]

        connection = self.get_value(config, "queue_connection")
        if connection is not None:
            changes["connection"] = connection

        if connection == "database" and self.has_value(config, "queue_database_table"):
            changes["table"] = config["queue_database_table"]
            changes.update(self._queue_name(config))
        elif connection == "redis":
            changes.update(self._queue_name(config))
            if self.has_value(config, "redis_queue_database"):
                changes["redis_database"] = int(config["redis_queue_database"])
        elif connection == "sqs" and self.has_value(config, "aws_sqs_queue"):
            changes["sqs_queue"] = config["aws_sqs_queue"]
            changes["sqs_region"] = self.get_value(config, "aws_sqs_region", DEFAULT_SQS_REGION)
            if self.has_value(config, "aws_sqs_key"):
                changes["sqs_key"] = config["aws_sqs_key"]
                changes["sqs_secret"] = self.get_value(config, "aws_sqs_secret")

        if self.has_value(config, "queue_failed_table"):
            changes["failed_table"] = config["queue_failed_table"]

        if not changes:
            return None
        return resources.queue.rebind(**changes)

    def _queue_name(self, config: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "name": self.get_value(config, "queue_name", DEFAULT_QUEUE),
            "retry_after": int(self.get_value(config, "queue_retry_after", DEFAULT_RETRY_AFTER)),
        }
