"""Structured logging with request and tenant correlation.

The request id (set by CorrelationMiddleware) and the active tenant's
public id (set by TenantMiddleware and EdgeTenantMiddleware) live in
ContextVars, so every log line emitted while a request is being handled
carries them without threading a logger adapter through the call chain.

Usage:
    from tessera.observability.logging import configure_logging

    configure_logging(json_format=True, level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Applied tenant configuration", extra={"pipes": ["CoreConfigPipe"]})
"""

from __future__ import annotations

import contextvars
import logging
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
tenant_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("tenant_id", default="")

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

# Loggers that are too chatty at INFO for per-request output
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


def context_fields() -> dict[str, str]:
    """Correlation ids of the current request, omitting unset ones."""
    fields = {}
    request_id = request_id_var.get()
    if request_id:
        fields["request_id"] = request_id
    tenant_id = tenant_id_var.get()
    if tenant_id:
        fields["tenant_id"] = tenant_id
    return fields


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Values passed to the logging call through ``extra``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Example:
        {"timestamp": "2026-10-19T09:12:44.120Z", "level": "WARNING",
         "logger": "tessera.edge.cache", "message": "Parent tenant not found,
         refusing config", "tenant": "2", "parent": "1", "request_id": "..."}

    Values orjson cannot serialize are written with ``str()``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        payload.update(context_fields())
        payload.update(extra_fields(record))

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return orjson.dumps(payload, default=str).decode()


class ConsoleFormatter(logging.Formatter):
    """Readable single-line output for development.

    Example:
        09:12:44 WARNING  tessera.edge.cache  Parent tenant not found [tenant=2 parent=1]
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        time_part = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<8}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        fields = {**context_fields(), **extra_fields(record)}
        line = f"{time_part} {level} {record.name}  {record.getMessage()}"
        if fields:
            line += " [" + " ".join(f"{key}={value}" for key, value in fields.items()) + "]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    json_format: bool = True,
    level: str = "INFO",
    use_colors: bool = True,
) -> None:
    """Install a single stderr handler on the root logger.

    Safe to call more than once; earlier handlers are replaced.

    Args:
        json_format: JSON lines (production) instead of console lines
        level: Root log level name
        use_colors: Colorize console output when stderr is a terminal
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ConsoleFormatter(use_colors))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LogContext:
    """Temporarily set correlation ids, e.g. in CLI commands or background jobs.

    Usage:
        with LogContext(tenant_id="tnt_abc"):
            logger.info("Preloading tenant")
    """

    def __init__(self, request_id: str | None = None, tenant_id: str | None = None) -> None:
        self._values = [(request_id_var, request_id), (tenant_id_var, tenant_id)]
        self._tokens: list[tuple[contextvars.ContextVar[str], contextvars.Token[str]]] = []

    def __enter__(self) -> LogContext:
        for var, value in self._values:
            if value is not None:
                self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *args: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
