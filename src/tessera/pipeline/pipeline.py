"""Configuration pipeline.

Runs the registered configuration pipes against a tenant:

- ``resolve`` composes the tenant's frontend-facing values and their
  visibility (pure, no side effects)
- ``apply`` rebinds runtime resources for the current request and returns
  an AppliedConfiguration whose ``revert_all`` undoes every rebind

Pipes run in ascending priority. Pipes with equal priority run in
registration order, so the one registered last wins on conflicting keys.

Example:
    pipeline = build_default_pipeline()
    resolved = pipeline.resolve(tenant, tenant.effective_config().to_dict()["config"])

    applied = pipeline.apply(tenant, resources)
    try:
        ...  # handle the request
    finally:
        applied.revert_all()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tessera.pipeline.base import ConfigurationPipe
from tessera.runtime.bindings import BindingToken
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.config import VISIBILITY_WIRE_KEY, TenantConfig
from tessera.tenancy.context import TenantContext
from tessera.tenancy.errors import ContributorApplyError
from tessera.tenancy.models import Tenant
from tessera.tenancy.visibility import ConfigVisibility

logger = logging.getLogger(__name__)


@dataclass
class ResolvedConfig:
    """Output of ``ConfigurationPipeline.resolve``."""

    values: dict[str, Any] = field(default_factory=dict)
    visibility: dict[str, ConfigVisibility] = field(default_factory=dict)
    tier: str | None = None

    def to_config(self) -> TenantConfig:
        return TenantConfig(self.values, self.visibility, self.tier)

    def protected_wire(self) -> dict[str, Any]:
        """Public and protected values plus their ``__visibility`` map."""
        config = self.to_config()
        protected = config.get_protected_config()
        protected[VISIBILITY_WIRE_KEY] = {
            key: config.get_visibility(key).value for key in protected
        }
        return protected

    def public_wire(self) -> dict[str, Any]:
        """Public values plus their ``__visibility`` map."""
        public = self.to_config().get_public_config()
        public[VISIBILITY_WIRE_KEY] = {key: ConfigVisibility.PUBLIC.value for key in public}
        return public


class AppliedConfiguration:
    """Revert actions registered while applying a tenant configuration.

    ``revert_all`` runs them in reverse priority order. It must be called
    exactly once per request; later calls are no-ops.
    """

    def __init__(self, tenant: Tenant | None, resources: RuntimeResources) -> None:
        self.tenant = tenant
        self.resources = resources
        self._reverts: list[tuple[ConfigurationPipe, BindingToken[Any]]] = []
        self._failed: list[str] = []
        self._reverted = False

    def register(self, pipe: ConfigurationPipe, token: BindingToken[Any]) -> None:
        self._reverts.append((pipe, token))

    def mark_failed(self, pipe: ConfigurationPipe) -> None:
        self._failed.append(pipe.name)

    @property
    def applied_pipes(self) -> list[str]:
        return [pipe.name for pipe, _ in self._reverts]

    @property
    def failed_pipes(self) -> list[str]:
        return list(self._failed)

    @property
    def reverted(self) -> bool:
        return self._reverted

    def revert_all(self) -> None:
        if self._reverted:
            logger.debug("Tenant configuration already reverted")
            return
        self._reverted = True

        for pipe, token in reversed(self._reverts):
            try:
                pipe.reset(self.resources, token)
            except Exception:
                logger.error(
                    "Failed to reset configuration pipe %s",
                    pipe.name,
                    exc_info=True,
                    extra={"pipe": pipe.name},
                )

    def __enter__(self) -> AppliedConfiguration:
        return self

    def __exit__(self, *args: Any) -> None:
        self.revert_all()


class ConfigurationPipeline:
    """Ordered registry of configuration pipes."""

    def __init__(self, pipes: Iterable[ConfigurationPipe] | None = None) -> None:
        self._pipes: list[ConfigurationPipe] = []
        if pipes is not None:
            self.register_many(pipes)

    def register(self, pipe: ConfigurationPipe) -> ConfigurationPipeline:
        self._pipes.append(pipe)
        return self

    def register_many(self, pipes: Iterable[ConfigurationPipe]) -> ConfigurationPipeline:
        for pipe in pipes:
            self.register(pipe)
        return self

    @property
    def pipes(self) -> list[ConfigurationPipe]:
        """Registered pipes in execution order (stable ascending priority)."""
        return sorted(self._pipes, key=lambda pipe: pipe.priority)

    def resolve(self, tenant: Tenant, raw_config: Mapping[str, Any]) -> ResolvedConfig:
        """Compose frontend-facing values and visibility for a tenant."""
        resolved = ResolvedConfig(tier=tenant.tier)

        for pipe in self.pipes:
            try:
                result = pipe.resolve(tenant, raw_config)
            except Exception:
                logger.error(
                    "Configuration pipe %s failed to resolve",
                    pipe.name,
                    exc_info=True,
                    extra={"pipe": pipe.name, "tenant": tenant.public_id},
                )
                continue
            resolved.values.update(result.values)
            resolved.visibility.update(result.visibility)

        identity = tenant.identity
        resolved.values["tenantId"] = identity.public_id
        resolved.values["tenantName"] = identity.name
        resolved.visibility["tenantId"] = ConfigVisibility.PUBLIC
        resolved.visibility["tenantName"] = ConfigVisibility.PUBLIC

        return resolved

    def resolve_tenant(self, tenant: Tenant) -> ResolvedConfig:
        """Resolve using the tenant's effective (inherited) configuration."""
        return self.resolve(tenant, tenant.effective_config().to_dict()["config"])

    def apply(
        self,
        tenant: Tenant,
        resources: RuntimeResources,
        raw_config: Mapping[str, Any] | None = None,
        context: TenantContext | None = None,
    ) -> AppliedConfiguration:
        """Rebind runtime resources for ``tenant``.

        A pipe that raises is logged and skipped; its resource keeps the
        process default and the remaining pipes still run.
        """
        applied = AppliedConfiguration(tenant, resources)

        if context is not None and context.is_bypassed():
            logger.debug("Tenant context bypassed, skipping configuration pipeline")
            return applied

        config = raw_config
        if config is None:
            config = tenant.effective_config().to_dict()["config"]

        for pipe in self.pipes:
            try:
                token = pipe.apply(tenant, config, resources)
            except Exception as e:
                error = ContributorApplyError(pipe.name, str(e))
                logger.error(
                    str(error),
                    exc_info=True,
                    extra={"pipe": pipe.name, "tenant": tenant.public_id},
                )
                applied.mark_failed(pipe)
                continue
            if token is not None:
                applied.register(pipe, token)

        logger.debug(
            "Applied tenant configuration",
            extra={"tenant": tenant.public_id, "pipes": applied.applied_pipes},
        )
        return applied
