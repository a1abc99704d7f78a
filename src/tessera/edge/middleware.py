"""Edge tenant middleware.

Resolves the tenant configuration for the request host into
``request.state.tenant_config``. Requests for unknown tenants are
answered with 503 and never rendered with a default configuration.
"""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from tessera.edge.resolver import EdgeTenantResolver
from tessera.observability.logging import tenant_id_var

logger = logging.getLogger(__name__)


class EdgeTenantMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        resolver: EdgeTenantResolver,
        excluded_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.resolver = resolver
        self.excluded_paths = excluded_paths if excluded_paths is not None else ["/health"]

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        host = request.headers.get("host") or request.url.hostname or ""
        config = await self.resolver.get_tenant_config(host)
        if config is None:
            return JSONResponse({"error": "Tenant unavailable"}, status_code=503)

        request.state.tenant_config = config
        token = tenant_id_var.set(str(config.get("tenantId", "")))
        try:
            return await call_next(request)
        finally:
            tenant_id_var.reset(token)
