"""Tenant middleware for FastAPI.

For every non-excluded request:
1. resolve the tenant from the host (HostResolver)
2. store a fresh TenantContext on ``request.state.tenant_context``
3. apply the tenant configuration pipeline to the runtime resources
4. check the session against the tenant (TenantSessionGuard)
5. call the handler and set the tenant's XSRF cookie
6. revert every rebind and clear the context, even on error

Example:
    from fastapi import FastAPI
    from tessera.tenancy.middleware import TenantMiddleware

    app = FastAPI()
    app.add_middleware(
        TenantMiddleware,
        resolver=resolver,
        pipeline=pipeline,
        resources=resources,
    )
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from tessera.api.errors import tenant_error_response
from tessera.observability.logging import tenant_id_var
from tessera.pipeline.pipeline import AppliedConfiguration, ConfigurationPipeline
from tessera.runtime.resources import RuntimeResources
from tessera.tenancy.context import TenantContext
from tessera.tenancy.csrf import xsrf_cookie_name
from tessera.tenancy.errors import TenantError
from tessera.tenancy.resolver import HostResolver
from tessera.tenancy.session_guard import (
    SESSION_TOKEN_KEY,
    Authenticator,
    MappingSession,
    TenantSessionGuard,
)

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_PATHS = ["/health", "/docs", "/openapi.json"]


class TenantMiddleware(BaseHTTPMiddleware):
    """Resolves the tenant and scopes runtime resources to it per request."""

    def __init__(
        self,
        app: ASGIApp,
        resolver: HostResolver,
        pipeline: ConfigurationPipeline,
        resources: RuntimeResources,
        guard: TenantSessionGuard | None = None,
        authenticator: Callable[[Request], Authenticator | None] | None = None,
        excluded_paths: list[str] | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application
            resolver: Host based tenant resolver
            pipeline: Configuration pipeline applied for each tenant
            resources: Process-wide runtime resources
            guard: Session consistency guard
            authenticator: Returns the request's authenticator, if any
            excluded_paths: Path prefixes served without a tenant
        """
        super().__init__(app)
        self.resolver = resolver
        self.pipeline = pipeline
        self.resources = resources
        self.guard = guard or TenantSessionGuard()
        self.authenticator = authenticator
        self.excluded_paths = (
            excluded_paths if excluded_paths is not None else DEFAULT_EXCLUDED_PATHS
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        context = TenantContext()
        request.state.tenant_context = context

        if self._is_excluded(request.url.path):
            context.set_bypassed(True)
            return await call_next(request)

        applied: AppliedConfiguration | None = None
        log_token = None
        try:
            try:
                tenant = await self.resolver.resolve_tenant(request)
            except TenantError as e:
                logger.info("Tenant resolution failed: %s", e)
                return tenant_error_response(e)

            context.set(tenant)
            log_token = tenant_id_var.set(tenant.public_id)

            applied = self.pipeline.apply(tenant, self.resources, context=context)
            request.state.applied_configuration = applied

            if "session" in request.scope:
                auth = self.authenticator(request) if self.authenticator else None
                self.guard.validate(context, MappingSession(request.session), auth)

            response = await call_next(request)
            self._set_xsrf_cookie(request, response, context)
            return response
        except TenantError as e:
            return tenant_error_response(e)
        finally:
            if applied is not None:
                applied.revert_all()
            if log_token is not None:
                tenant_id_var.reset(log_token)
            context.clear()

    def _is_excluded(self, path: str) -> bool:
        return any(path.startswith(excluded) for excluded in self.excluded_paths)

    def _set_xsrf_cookie(
        self, request: Request, response: Response, context: TenantContext
    ) -> None:
        """Issue the XSRF token under the tenant's cookie name.

        The name follows the active tenant, independent of the session
        binding. Readable by JavaScript so the frontend can echo it in
        X-XSRF-TOKEN.
        """
        session = self.resources.session
        name = xsrf_cookie_name(context.get_or_none())

        token: Any = None
        if "session" in request.scope:
            token = request.session.get(SESSION_TOKEN_KEY)
            if token is None:
                token = secrets.token_urlsafe(32)
                request.session[SESSION_TOKEN_KEY] = token
        else:
            token = request.cookies.get(name) or secrets.token_urlsafe(32)

        response.set_cookie(name, token, httponly=False, samesite="lax", **session.cookie_params())
