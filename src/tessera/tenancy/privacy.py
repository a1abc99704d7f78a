"""Internal (server-side rendering) request detection."""

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from starlette.requests import HTTPConnection

from tessera.config import Settings

logger = logging.getLogger(__name__)

SSR_KEY_HEADER = "X-SSR-Key"
TENANT_DOMAIN_HEADER = "X-Tenant-Domain"


@dataclass
class RequestPrivacy:
    """Decides whether a request comes from a trusted internal caller.

    A request is internal when both checks pass:
    - its client IP is in ``trusted_ips``
    - its ``X-SSR-Key`` header equals ``ssr_api_key``

    Either check can be disabled. With the key check enabled and no key
    configured, no request is internal.
    """

    trusted_ips: frozenset[str] = field(default_factory=frozenset)
    ssr_api_key: str | None = None
    disable_ip_check: bool = False
    disable_key_check: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> RequestPrivacy:
        return cls(
            trusted_ips=frozenset(settings.trusted_ips),
            ssr_api_key=settings.ssr_api_key,
            disable_ip_check=settings.disable_ip_check,
            disable_key_check=settings.disable_key_check,
        )

    @classmethod
    def build(
        cls,
        trusted_ips: Iterable[str] = (),
        ssr_api_key: str | None = None,
        disable_ip_check: bool = False,
        disable_key_check: bool = False,
    ) -> RequestPrivacy:
        return cls(frozenset(trusted_ips), ssr_api_key, disable_ip_check, disable_key_check)

    def is_internal_request(self, request: HTTPConnection) -> bool:
        return self._is_trusted_ip(request) and self._is_correct_key(request)

    def _is_trusted_ip(self, request: HTTPConnection) -> bool:
        if self.disable_ip_check:
            return True
        client = request.client
        return client is not None and client.host in self.trusted_ips

    def _is_correct_key(self, request: HTTPConnection) -> bool:
        if self.disable_key_check:
            return True
        if not self.ssr_api_key:
            return False
        provided = request.headers.get(SSR_KEY_HEADER)
        if provided is None:
            return False
        return hmac.compare_digest(provided.encode(), self.ssr_api_key.encode())
