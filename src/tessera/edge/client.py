"""HTTP client for the backend tenant endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tessera.edge.models import TenantPayload
from tessera.edge.settings import EdgeSettings

logger = logging.getLogger(__name__)

TENANT_DOMAIN_HEADER = "X-Tenant-Domain"
SSR_KEY_HEADER = "X-SSR-Key"


class BackendClient:
    """Fetches tenant resources from the backend.

    Errors are raised as ``httpx.HTTPError`` (transport and status) or
    ``pydantic.ValidationError`` / ``ValueError`` (payload); callers decide
    how to fail.
    """

    def __init__(
        self,
        settings: EdgeSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        headers = {"Accept": "application/json"}
        if settings.ssr_api_key:
            headers[SSR_KEY_HEADER] = settings.ssr_api_key
        self._client = httpx.AsyncClient(
            base_url=settings.api_url,
            timeout=settings.backend_timeout,
            headers=headers,
            transport=transport,
        )

    async def fetch_tenant(self, domain: str) -> TenantPayload:
        response = await self._client.get(
            self.settings.tenant_endpoint,
            headers={TENANT_DOMAIN_HEADER: domain},
        )
        response.raise_for_status()
        return TenantPayload.model_validate(self._data(response))

    async def fetch_all(self) -> list[TenantPayload]:
        response = await self._client.get(self.settings.tenant_cache_endpoint)
        response.raise_for_status()
        data = self._data(response)
        if not isinstance(data, list):
            raise ValueError("Tenant dump is not a list")
        return [TenantPayload.model_validate(item) for item in data]

    @staticmethod
    def _data(response: httpx.Response) -> Any:
        body = response.json()
        if not isinstance(body, dict) or "data" not in body:
            raise ValueError("Backend response has no 'data' member")
        return body["data"]

    async def aclose(self) -> None:
        await self._client.aclose()
