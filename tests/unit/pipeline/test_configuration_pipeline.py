"""Tests for ConfigurationPipeline ordering, apply and revert."""

import logging
from collections.abc import Mapping
from typing import Any

import pytest

from tessera.pipeline import ConfigurationPipe, ConfigurationPipeline, PipeResult
from tessera.pipeline import build_default_pipeline
from tessera.runtime.bindings import BindingToken
from tessera.tenancy.context import TenantContext
from tessera.tenancy.visibility import ConfigVisibility


class RecordingPipe(ConfigurationPipe):
    """Rebinds the app name and records every call."""

    resource = "app"

    def __init__(self, label: str, priority: int, log: list[str], fail: bool = False) -> None:
        self.label = label
        self.priority = priority
        self.log = log
        self.fail = fail

    @property
    def name(self) -> str:
        return self.label

    def handles(self) -> list[str]:
        return ["app_name"]

    def resolve(self, tenant, config: Mapping[str, Any]) -> PipeResult:
        return PipeResult().expose("appName", self.label, ConfigVisibility.PUBLIC)

    def apply(self, tenant, config, resources) -> BindingToken[Any] | None:
        self.log.append(f"apply:{self.label}")
        if self.fail:
            raise ValueError("broken")
        return resources.app.rebind(name=self.label)

    def reset(self, resources, token) -> None:
        self.log.append(f"reset:{self.label}")
        super().reset(resources, token)


@pytest.fixture
def log() -> list[str]:
    return []


class TestOrdering:
    """Tests for pipe execution order."""

    def test_ascending_priority(self, log) -> None:
        """Lower priority runs first regardless of registration order."""
        pipeline = ConfigurationPipeline(
            [RecordingPipe("late", 50, log), RecordingPipe("early", 10, log)]
        )
        assert [pipe.name for pipe in pipeline.pipes] == ["early", "late"]

    def test_equal_priority_last_registered_wins(self, log, make_tenant) -> None:
        """Ties keep registration order so the last one wins."""
        pipeline = ConfigurationPipeline()
        pipeline.register(RecordingPipe("first", 10, log)).register(
            RecordingPipe("second", 10, log)
        )
        resolved = pipeline.resolve(make_tenant(1), {})
        assert resolved.values["appName"] == "second"

    def test_default_pipeline_order(self) -> None:
        """Built-in pipes run in ascending priority."""
        names = [pipe.name for pipe in build_default_pipeline().pipes]
        assert names == [
            "CoreConfigPipe",
            "DatabaseConfigPipe",
            "CacheConfigPipe",
            "RedisConfigPipe",
            "SessionConfigPipe",
            "QueueConfigPipe",
            "MailConfigPipe",
            "FilesystemConfigPipe",
            "BroadcastingConfigPipe",
        ]


class TestApply:
    """Tests for ConfigurationPipeline.apply."""

    def test_revert_runs_in_reverse_once(self, log, resources, make_tenant) -> None:
        """revert_all resets in reverse order, and only once."""
        pipeline = ConfigurationPipeline(
            [RecordingPipe("a", 10, log), RecordingPipe("b", 20, log)]
        )
        applied = pipeline.apply(make_tenant(1), resources, raw_config={})
        assert resources.app.current.name == "b"

        applied.revert_all()
        applied.revert_all()
        assert log == ["apply:a", "apply:b", "reset:b", "reset:a"]
        assert resources.all_default()

    def test_failed_pipe_is_skipped(self, log, resources, make_tenant, caplog) -> None:
        """A failing pipe is logged, recorded and never reverted."""
        pipeline = ConfigurationPipeline(
            [
                RecordingPipe("ok", 10, log),
                RecordingPipe("broken", 20, log, fail=True),
                RecordingPipe("after", 30, log),
            ]
        )
        with caplog.at_level(logging.ERROR, logger="tessera.pipeline.pipeline"):
            applied = pipeline.apply(make_tenant(1), resources, raw_config={})

        assert applied.failed_pipes == ["broken"]
        assert applied.applied_pipes == ["ok", "after"]
        assert "broken" in caplog.text

        applied.revert_all()
        assert "reset:broken" not in log

    def test_bypassed_context_applies_nothing(self, log, resources, make_tenant) -> None:
        """Bypassed contexts leave every resource at its default."""
        pipeline = ConfigurationPipeline([RecordingPipe("a", 10, log)])
        applied = pipeline.apply(
            make_tenant(1), resources, context=TenantContext(bypassed=True)
        )
        assert log == []
        assert applied.applied_pipes == []
        assert resources.all_default()

    def test_context_manager_reverts(self, resources, make_tenant) -> None:
        """Leaving the with-block reverts the default pipeline."""
        tenant = make_tenant(
            3,
            config={
                "app_name": "Acme",
                "db_host": "acme-db.local",
                "cache_prefix": "acme_",
                "redis_host": "acme-redis.local",
                "queue_connection": "redis",
                "mail_host": "smtp.acme.test",
                "pusher_app_key": "key",
            },
        )
        with build_default_pipeline().apply(tenant, resources) as applied:
            assert len(applied.applied_pipes) == 9
            assert not resources.all_default()
        assert applied.reverted
        assert resources.all_default()

    def test_uses_effective_config(self, resources, make_tenant) -> None:
        """Without raw_config the tenant's inherited configuration is applied."""
        parent = make_tenant(1, config={"app_name": "Parent", "app_timezone": "Europe/Berlin"})
        child = make_tenant(2, parent=parent, config={"app_name": "Child"})
        with build_default_pipeline().apply(child, resources):
            assert resources.app.current.name == "Child"
            assert resources.app.current.timezone == "Europe/Berlin"


class TestResolve:
    """Tests for ConfigurationPipeline.resolve."""

    def test_identity_keys_are_public(self, make_tenant) -> None:
        """tenantId and tenantName are always added as public."""
        tenant = make_tenant(4, public_id="tnt_four", name="Four")
        resolved = build_default_pipeline().resolve(tenant, {})
        assert resolved.values["tenantId"] == "tnt_four"
        assert resolved.values["tenantName"] == "Four"
        assert resolved.visibility["tenantId"] is ConfigVisibility.PUBLIC

    def test_child_shows_parent_identity(self, make_tenant) -> None:
        """A child tenant is presented with its parent's identity."""
        parent = make_tenant(1, public_id="tnt_parent", name="Parent")
        child = make_tenant(2, parent=parent)
        resolved = build_default_pipeline().resolve_tenant(child)
        assert resolved.values["tenantId"] == "tnt_parent"
        assert resolved.values["tenantName"] == "Parent"

    def test_frontend_keys(self, make_tenant) -> None:
        """Infrastructure keys map to frontend keys with their visibility."""
        tenant = make_tenant(
            1,
            config={
                "app_url": "https://api.acme.test",
                "frontend_url": "https://acme.test",
                "app_name": "Acme",
                "internal_api_url": "http://backend:8000",
                "session_lifetime": 60,
                "pusher_app_key": "pk",
                "pusher_app_cluster": "eu",
                "db_password": "secret",
            },
        )
        resolved = build_default_pipeline().resolve_tenant(tenant)
        public = resolved.public_wire()
        protected = resolved.protected_wire()

        assert public["apiUrl"] == "https://api.acme.test"
        assert public["appUrl"] == "https://acme.test"
        assert public["pusherAppCluster"] == "eu"
        assert "internalApiUrl" not in public
        assert protected["internalApiUrl"] == "http://backend:8000"
        assert protected["sessionCookie"] == "tenant_1_session"
        assert protected["sessionLifetime"] == 60
        assert protected["__visibility"]["sessionCookie"] == "protected"
        assert all("secret" != value for value in protected.values())

    def test_failing_resolve_is_skipped(self, make_tenant, log) -> None:
        """A pipe whose resolve raises contributes nothing."""

        class BrokenResolve(RecordingPipe):
            def resolve(self, tenant, config):
                raise RuntimeError("nope")

        pipeline = ConfigurationPipeline([BrokenResolve("broken", 10, log)])
        resolved = pipeline.resolve(make_tenant(1), {})
        assert "appName" not in resolved.values
        assert resolved.values["tenantId"] == "tnt_1"
