"""Observability module for Tessera.

Provides JSON structured logging with request and tenant correlation.
"""

from tessera.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    configure_logging,
    request_id_var,
    tenant_id_var,
)

__all__ = [
    "configure_logging",
    "LogContext",
    "JsonFormatter",
    "ConsoleFormatter",
    "request_id_var",
    "tenant_id_var",
]
