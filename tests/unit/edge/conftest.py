"""Fixtures for the edge tests: a fake backend behind httpx.MockTransport."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from tessera.edge.settings import EdgeSettings


class FakeBackend:
    """Serves /tenant and /tenant/cache from an in-memory tenant list."""

    def __init__(self) -> None:
        self.tenants: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.fail = False

    @staticmethod
    def resource(
        id: str,
        domain: str,
        name: str | None = None,
        config: dict[str, Any] | None = None,
        visibility: dict[str, str] | None = None,
        parent: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Tenant resource in the backend wire shape."""
        wire_config = dict(config or {})
        wire_config["__visibility"] = visibility or {}
        resource: dict[str, Any] = {
            "id": id,
            "name": name or f"Tenant {id}",
            "domain": domain,
            "parent_id": parent["id"] if parent is not None else None,
            "config": wire_config,
            "tier": None,
        }
        if parent is not None:
            resource["parent"] = parent
        return resource

    def add(self, resource: dict[str, Any]) -> dict[str, Any]:
        self.tenants[resource["domain"]] = resource
        return resource

    def calls(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            return httpx.Response(500, json={"messages": []})
        if request.url.path == "/tenant/cache":
            return httpx.Response(200, json={"data": list(self.tenants.values())})
        if request.url.path == "/tenant":
            tenant = self.tenants.get(request.headers.get("X-Tenant-Domain", ""))
            if tenant is None:
                return httpx.Response(403, json={"messages": []})
            return httpx.Response(200, json={"data": tenant})
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def edge_settings() -> EdgeSettings:
    return EdgeSettings(
        _env_file=None,
        api_url="http://backend.test",
        ssr_api_key="ssr-secret",
        log_json=False,
        log_level="WARNING",
    )
