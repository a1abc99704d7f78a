"""Runtime resources that tenant configuration is applied to.

- Binding: ContextVar-backed per-request value with a process default
- *Manager: one manager per infrastructure concern
- RuntimeResources: the managers built once per process
"""

from tessera.runtime.bindings import Binding, BindingToken
from tessera.runtime.managers import (
    DEFAULT_XSRF_COOKIE,
    AppManager,
    AppSettings,
    BroadcastManager,
    BroadcastSettings,
    CacheManager,
    CacheSettings,
    DatabaseManager,
    DatabaseSettings,
    MailManager,
    MailSettings,
    RedisManager,
    RedisSettings,
    ResourceManager,
    SessionManager,
    SessionSettings,
    validate_host,
    validate_port,
)
from tessera.runtime.resources import RuntimeResources

__all__ = [
    "Binding",
    "BindingToken",
    "ResourceManager",
    "RuntimeResources",
    "AppManager",
    "AppSettings",
    "DatabaseManager",
    "DatabaseSettings",
    "RedisManager",
    "RedisSettings",
    "CacheManager",
    "CacheSettings",
    "SessionManager",
    "SessionSettings",
    "MailManager",
    "MailSettings",
    "BroadcastManager",
    "BroadcastSettings",
    "DEFAULT_XSRF_COOKIE",
    "validate_host",
    "validate_port",
]
