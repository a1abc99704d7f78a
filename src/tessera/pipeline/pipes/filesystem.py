"""Tenant-isolated storage roots and S3 prefix."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from tessera.pipeline.base import ConfigurationPipe
from tessera.runtime.bindings import BindingToken
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.models import Tenant

_S3_FIELDS = {
    "aws_s3_bucket": "s3_bucket",
    "aws_s3_region": "s3_region",
    "aws_s3_url": "s3_url",
}


class FilesystemConfigPipe(ConfigurationPipe):
    """Keeps every tenant's files apart.

    Always rebinds. Without explicit roots the local, public and temp disks
    move to ``tenants/{public_id}`` below their shared roots, and an S3
    bucket gets the path prefix ``tenants/{public_id}``. Nothing is exposed
    to the frontend.
    """

    priority = 55
    resource = "filesystem"

    def handles(self) -> list[str]:
        return [
            "filesystem_default",
            "filesystem_cloud",
            "filesystem_local_root",
            "filesystem_public_root",
            "aws_s3_bucket",
            "aws_s3_path_prefix",
            "aws_s3_key",
            "aws_s3_secret",
            "aws_s3_region",
            "aws_s3_url",
            "disable_temp_isolation",
        ]

    def apply(
        self,
        tenant: Tenant,
        config: Mapping[str, Any],
        resources: RuntimeResources,
    ) -> BindingToken[Any] | None:
        defaults = resources.filesystem.defaults
        tenant_dir = Path("tenants") / tenant.public_id
        changes = self.pick(
            config, {"filesystem_default": "default", "filesystem_cloud": "cloud"}
        )

        if self.has_value(config, "filesystem_local_root"):
            changes["local_root"] = Path(config["filesystem_local_root"])
        else:
            changes["local_root"] = defaults.local_root / tenant_dir

        if self.has_value(config, "filesystem_public_root"):
            changes["public_root"] = Path(config["filesystem_public_root"])
        else:
            changes["public_root"] = defaults.public_root / tenant_dir
            changes["public_url"] = resources.app.url(f"storage/{tenant_dir.as_posix()}")

        if self.has_value(config, "aws_s3_bucket"):
            changes.update(self.pick(config, _S3_FIELDS))
            changes["s3_path_prefix"] = self.get_value(
                config, "aws_s3_path_prefix", tenant_dir.as_posix()
            )
            if self.has_value(config, "aws_s3_key"):
                changes["s3_key"] = config["aws_s3_key"]
                changes["s3_secret"] = self.get_value(config, "aws_s3_secret")

        if not config.get("disable_temp_isolation"):
            changes["temp_root"] = defaults.temp_root / tenant_dir

        return resources.filesystem.rebind(**changes)
