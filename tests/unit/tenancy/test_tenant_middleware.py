"""Tests for TenantMiddleware."""

from typing import Any

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from tessera.pipeline import ConfigurationPipeline, CoreConfigPipe, build_default_pipeline
from tessera.tenancy.middleware import TenantMiddleware
from tessera.tenancy.privacy import RequestPrivacy
from tessera.tenancy.resolver import HostResolver


@pytest.fixture
def seen() -> list[dict[str, Any]]:
    return []


@pytest.fixture
def pipeline() -> ConfigurationPipeline:
    return build_default_pipeline()


@pytest.fixture
def app(settings, resources, lookup, make_tenant, seen, pipeline) -> FastAPI:
    lookup.add(
        make_tenant(
            1,
            domain="acme.test",
            config={"app_name": "Acme", "db_host": "acme-db.local", "db_database": "acme"},
        )
    )
    lookup.add(make_tenant(2, domain="globex.test", config={"app_name": "Globex"}))
    lookup.add(
        make_tenant(
            3,
            domain="broken.test",
            public_id="tnt_abc",
            config={"session_lifetime": "two hours"},
        )
    )

    app = FastAPI()
    app.add_middleware(
        TenantMiddleware,
        resolver=HostResolver(lookup, RequestPrivacy.from_settings(settings)),
        pipeline=pipeline,
        resources=resources,
        excluded_paths=["/health"],
    )

    @app.get("/whoami")
    async def whoami(request: Request) -> dict[str, Any]:
        applied = request.state.applied_configuration
        seen.append({"applied": applied})
        return {
            "tenant": request.state.tenant_context.get().public_id,
            "app_name": resources.app.current.name,
            "db_host": resources.database.current.host,
            "session_cookie": resources.session.current.cookie,
        }

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        return {
            "bypassed": request.state.tenant_context.is_bypassed(),
            "app_name": resources.app.current.name,
        }

    @app.get("/boom")
    async def boom(request: Request) -> None:
        seen.append({"applied": request.state.applied_configuration})
        raise RuntimeError("handler failed")

    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestTenantMiddleware:
    """Tests for per-request tenant scoping."""

    def test_resources_rebound_inside_request(self, client) -> None:
        """Handlers see the tenant's configuration."""
        response = client.get("/whoami", headers={"host": "acme.test"})
        assert response.status_code == 200
        assert response.json() == {
            "tenant": "tnt_1",
            "app_name": "Acme",
            "db_host": "acme-db.local",
            "session_cookie": "tenant_1_session",
        }

    def test_tenant_without_database_keeps_shared(self, client) -> None:
        """A tenant without db_host uses the shared database."""
        response = client.get("/whoami", headers={"host": "globex.test"})
        body = response.json()
        assert body["app_name"] == "Globex"
        assert body["db_host"] == "db.local"

    def test_sequential_requests_do_not_leak(self, client) -> None:
        """The second tenant never sees the first tenant's values."""
        client.get("/whoami", headers={"host": "acme.test"})
        body = client.get("/whoami", headers={"host": "globex.test"}).json()
        assert body["tenant"] == "tnt_2"
        assert body["db_host"] == "db.local"
        assert body["session_cookie"] == "tenant_2_session"

    def test_configuration_reverted_after_request(self, client, resources, seen) -> None:
        """Every rebind is reverted once the response is produced."""
        client.get("/whoami", headers={"host": "acme.test"})
        applied = seen[0]["applied"]
        assert applied.reverted
        assert "DatabaseConfigPipe" in applied.applied_pipes
        assert resources.all_default()

    def test_reverted_when_handler_fails(self, client, seen) -> None:
        """A failing handler still triggers the revert."""
        response = client.get("/boom", headers={"host": "acme.test"})
        assert response.status_code == 500
        assert seen[0]["applied"].reverted

    def test_unknown_host_is_forbidden(self, client, seen) -> None:
        """An unknown domain is rejected before any handler runs."""
        response = client.get("/whoami", headers={"host": "nobody.test"})
        assert response.status_code == 403
        message = response.json()["messages"][0]
        assert message["code"] == "TenantNotFound"
        assert message["messageType"] == "Error"
        assert "nobody.test" in message["text"]
        assert seen == []

    def test_excluded_path_is_bypassed(self, client) -> None:
        """Excluded paths run without a tenant and with default resources."""
        response = client.get("/health", headers={"host": "nobody.test"})
        assert response.status_code == 200
        assert response.json() == {"bypassed": True, "app_name": "tessera"}

    def test_sets_tenant_xsrf_cookie(self, client) -> None:
        """The XSRF cookie is named after the tenant's public id."""
        response = client.get("/whoami", headers={"host": "acme.test"})
        assert "XSRF-TOKEN-tnt_1" in response.cookies
        assert "XSRF-TOKEN" not in response.cookies

    def test_reuses_existing_xsrf_cookie(self, client) -> None:
        """An existing token is kept."""
        response = client.get(
            "/whoami",
            headers={"host": "acme.test", "cookie": "XSRF-TOKEN-tnt_1=keep-me"},
        )
        assert response.cookies["XSRF-TOKEN-tnt_1"] == "keep-me"

    def test_malformed_session_key_keeps_tenant_xsrf_cookie(self, client) -> None:
        """A bad session_lifetime never falls back to the shared cookie name."""
        response = client.get("/whoami", headers={"host": "broken.test"})
        assert response.status_code == 200
        assert "XSRF-TOKEN-tnt_abc" in response.cookies
        assert "XSRF-TOKEN" not in response.cookies


class TestTenantMiddlewareWithoutSessionPipe:
    """The XSRF cookie name does not depend on the session binding."""

    @pytest.fixture
    def pipeline(self) -> ConfigurationPipeline:
        return ConfigurationPipeline([CoreConfigPipe()])

    def test_xsrf_cookie_follows_tenant(self, client, resources) -> None:
        """The tenant's name is used even though nothing rebound the session."""
        response = client.get("/whoami", headers={"host": "globex.test"})
        assert response.status_code == 200
        assert "XSRF-TOKEN-tnt_2" in response.cookies
        assert "XSRF-TOKEN" not in response.cookies
        assert resources.session.is_default()
