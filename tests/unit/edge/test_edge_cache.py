"""Tests for EdgeTenantCache in its three modes."""

import asyncio
import logging

import httpx
import pytest

from tessera.edge.cache import CacheMode, EdgeTenantCache, normalize_config
from tessera.edge.client import BackendClient
from tessera.edge.models import TenantPayload


def make_cache(settings, backend, clock, **overrides) -> EdgeTenantCache:
    settings = settings.model_copy(update=overrides)
    return EdgeTenantCache(settings, BackendClient(settings, backend.transport), clock=clock)


@pytest.fixture
def parent_and_child(backend):
    parent = backend.add(
        backend.resource(
            "1",
            "parent.app",
            name="Acme Group",
            config={"apiUrl": "https://api.acme.app"},
            visibility={"apiUrl": "protected"},
        )
    )
    child = backend.add(
        backend.resource(
            "2",
            "acme.app",
            config={"apiUrl": "https://child.override"},
            visibility={"apiUrl": "public"},
            parent=parent,
        )
    )
    return parent, child


class TestNormalizeConfig:
    """Tests for normalize_config."""

    def test_forces_identity_keys_public(self) -> None:
        tenant = TenantPayload(
            id="9",
            name="Nine",
            domain="nine.app",
            config={"apiUrl": "x", "__visibility": {"apiUrl": "private"}},
        )
        config = normalize_config(tenant)
        assert config["tenantId"] == "9"
        assert config["tenantName"] == "Nine"
        assert config["__visibility"] == {
            "apiUrl": "public",
            "tenantId": "public",
            "tenantName": "public",
        }
        assert tenant.config["__visibility"] == {"apiUrl": "private"}


class TestModes:
    """Tests for mode selection."""

    @pytest.mark.parametrize(
        ("enable", "preload", "mode"),
        [
            (False, False, CacheMode.DISABLED),
            (False, True, CacheMode.DISABLED),
            (True, False, CacheMode.LAZY),
            (True, True, CacheMode.PRELOAD),
        ],
    )
    def test_mode(self, edge_settings, backend, clock, enable, preload, mode) -> None:
        cache = make_cache(
            edge_settings, backend, clock, enable_cache=enable, preload_tenants=preload
        )
        assert cache.mode is mode


class TestDisabledMode:
    """Tests with caching disabled."""

    @pytest.mark.asyncio
    async def test_every_lookup_fetches(self, edge_settings, backend, clock) -> None:
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(edge_settings, backend, clock)
        await cache.get_tenant_config("one.app")
        await cache.get_tenant_config("one.app")
        assert backend.calls("/tenant") == 2

    @pytest.mark.asyncio
    async def test_sends_domain_and_key(self, edge_settings, backend, clock) -> None:
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(edge_settings, backend, clock)
        await cache.get_tenant_config("one.app")
        request = backend.requests[0]
        assert request.headers["X-Tenant-Domain"] == "one.app"
        assert request.headers["X-SSR-Key"] == "ssr-secret"

    @pytest.mark.asyncio
    async def test_fetch_failure_returns_none(self, edge_settings, backend, clock) -> None:
        """Backend errors fail closed."""
        backend.fail = True
        cache = make_cache(edge_settings, backend, clock)
        assert await cache.get_tenant_config("one.app") is None

    @pytest.mark.asyncio
    async def test_unknown_domain_returns_none(self, edge_settings, backend, clock) -> None:
        cache = make_cache(edge_settings, backend, clock)
        assert await cache.get_tenant_config("nobody.app") is None


class TestLazyMode:
    """Tests for per-domain TTL caching."""

    @pytest.mark.asyncio
    async def test_entry_reused_within_ttl(self, edge_settings, backend, clock) -> None:
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(edge_settings, backend, clock, enable_cache=True)

        await cache.get_tenant_config("one.app")
        clock.advance(299)
        await cache.get_tenant_config("one.app")
        assert backend.calls("/tenant") == 1

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, edge_settings, backend, clock) -> None:
        """An entry cached at T with TTL 300 is refetched at T+301."""
        backend.add(backend.resource("1", "one.app", config={"appName": "Old"}))
        cache = make_cache(edge_settings, backend, clock, enable_cache=True)
        await cache.get_tenant_config("one.app")

        backend.add(backend.resource("1", "one.app", config={"appName": "New"}))
        clock.advance(301)
        config = await cache.get_tenant_config("one.app")

        assert backend.calls("/tenant") == 2
        assert config["appName"] == "New"

    @pytest.mark.asyncio
    async def test_returned_config_is_a_copy(self, edge_settings, backend, clock) -> None:
        backend.add(backend.resource("1", "one.app", config={"appName": "One"}))
        cache = make_cache(edge_settings, backend, clock, enable_cache=True)
        first = await cache.get_tenant_config("one.app")
        first["appName"] = "mutated"
        second = await cache.get_tenant_config("one.app")
        assert second["appName"] == "One"

    @pytest.mark.asyncio
    async def test_child_gets_parent_config(
        self, edge_settings, backend, clock, parent_and_child
    ) -> None:
        """A child tenant is served exactly its parent's configuration."""
        cache = make_cache(edge_settings, backend, clock, enable_cache=True)
        config = await cache.get_tenant_config("acme.app")
        assert config["apiUrl"] == "https://api.acme.app"
        assert config["tenantId"] == "1"
        assert config["tenantName"] == "Acme Group"
        for key in ("apiUrl", "tenantId", "tenantName"):
            assert config["__visibility"][key] == "public"

    @pytest.mark.asyncio
    async def test_missing_parent_fails_closed(self, edge_settings, backend, clock) -> None:
        """A child whose parent is not embedded gets no configuration."""
        orphan = backend.resource("2", "orphan.app")
        orphan["parent_id"] = "1"
        backend.add(orphan)
        cache = make_cache(edge_settings, backend, clock, enable_cache=True)
        assert await cache.get_tenant_config("orphan.app") is None


class TestPreloadMode:
    """Tests for bulk preloading."""

    @pytest.mark.asyncio
    async def test_serves_from_snapshot(self, edge_settings, backend, clock) -> None:
        backend.add(backend.resource("1", "one.app"))
        backend.add(backend.resource("2", "two.app"))
        cache = make_cache(edge_settings, backend, clock, enable_cache=True, preload_tenants=True)

        assert await cache.load_all_tenants() is True
        assert cache.preload_completed
        assert (await cache.get_tenant_config("two.app"))["tenantId"] == "2"
        assert await cache.get_tenant_config("nobody.app") is None
        assert backend.calls("/tenant") == 0

    @pytest.mark.asyncio
    async def test_child_gets_parent_config(
        self, edge_settings, backend, clock, parent_and_child
    ) -> None:
        cache = make_cache(edge_settings, backend, clock, enable_cache=True, preload_tenants=True)
        await cache.load_all_tenants()
        config = await cache.get_tenant_config("acme.app")
        assert config["apiUrl"] == "https://api.acme.app"
        assert config["tenantId"] == "1"

    @pytest.mark.asyncio
    async def test_missing_parent_fails_closed(self, edge_settings, backend, clock) -> None:
        orphan = backend.resource("2", "orphan.app")
        orphan["parent_id"] = "1"
        backend.add(orphan)
        cache = make_cache(edge_settings, backend, clock, enable_cache=True, preload_tenants=True)
        await cache.load_all_tenants()
        assert await cache.get_tenant_config("orphan.app") is None

    @pytest.mark.asyncio
    async def test_falls_back_before_preload(self, edge_settings, backend, clock) -> None:
        """Until the first preload succeeds, lookups go to the backend."""
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(edge_settings, backend, clock, enable_cache=True, preload_tenants=True)
        assert not cache.preload_completed
        assert (await cache.get_tenant_config("one.app"))["tenantId"] == "1"
        assert backend.calls("/tenant") == 1

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_snapshot(self, edge_settings, backend, clock) -> None:
        """A failed reload leaves the previous snapshot in place."""
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(edge_settings, backend, clock, enable_cache=True, preload_tenants=True)
        await cache.load_all_tenants()

        backend.fail = True
        assert await cache.load_all_tenants() is False
        assert (await cache.get_tenant_config("one.app"))["tenantId"] == "1"

    @pytest.mark.asyncio
    async def test_refresh_replaces_snapshot(self, edge_settings, backend, clock) -> None:
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(edge_settings, backend, clock, enable_cache=True, preload_tenants=True)
        await cache.load_all_tenants()

        del backend.tenants["one.app"]
        backend.add(backend.resource("3", "three.app"))
        await cache.load_all_tenants()
        assert await cache.get_tenant_config("one.app") is None
        assert (await cache.get_tenant_config("three.app"))["tenantId"] == "3"

    @pytest.mark.asyncio
    async def test_start_and_stop(self, edge_settings, backend, clock) -> None:
        """start preloads and schedules refreshes; stop cancels them."""
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(
            edge_settings,
            backend,
            clock,
            enable_cache=True,
            preload_tenants=True,
            cache_ttl=1,
        )
        await cache.start()
        try:
            assert cache.preload_completed
            assert backend.calls("/tenant/cache") == 1
            await asyncio.sleep(0)
        finally:
            await cache.stop()
        await cache.stop()

    @pytest.mark.asyncio
    async def test_refresh_loop_survives_errors(
        self, edge_settings, backend, clock, caplog
    ) -> None:
        """An unexpected refresh error is logged and the next refresh still runs."""
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(
            edge_settings,
            backend,
            clock,
            enable_cache=True,
            preload_tenants=True,
            cache_ttl=0.01,
        )
        attempts = []
        refreshed = asyncio.Event()

        async def flaky_reload() -> bool:
            attempts.append(1)
            if len(attempts) == 1:
                raise httpx.InvalidURL("Invalid URL")
            refreshed.set()
            return True

        await cache.start()
        cache.load_all_tenants = flaky_reload
        try:
            with caplog.at_level(logging.ERROR):
                await asyncio.wait_for(refreshed.wait(), timeout=2)
        finally:
            await cache.stop()
        assert len(attempts) == 2
        assert "refresh failed" in caplog.text
        assert (await cache.get_tenant_config("one.app"))["tenantId"] == "1"

    @pytest.mark.asyncio
    async def test_clear(self, edge_settings, backend, clock) -> None:
        backend.add(backend.resource("1", "one.app"))
        cache = make_cache(edge_settings, backend, clock, enable_cache=True, preload_tenants=True)
        await cache.load_all_tenants()
        cache.clear()
        assert not cache.preload_completed
