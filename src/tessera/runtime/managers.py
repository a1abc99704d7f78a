"""Runtime resource managers reconfigured per tenant.

Each manager owns a Binding of a frozen settings dataclass. Configuration
pipes call ``rebind`` with the tenant's values and ``reset`` with the
returned token; everything else reads ``current``.

The managers wrap third-party drivers (SQLAlchemy async engines, redis-py
clients) and create them lazily per distinct connection target, so a
rebind never opens a connection by itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any, Generic, TypeVar
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

import redis.asyncio as redis
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from tessera.runtime.bindings import Binding, BindingToken

logger = logging.getLogger(__name__)

S = TypeVar("S")

_HOSTNAME = re.compile(r"^(?=.{1,253}$)[A-Za-z0-9]([A-Za-z0-9.-]*[A-Za-z0-9])?$")
_IPV6 = re.compile(r"^\[?[0-9A-Fa-f:]+\]?$")


def validate_host(host: Any) -> str:
    """Validate a network host name or address.

    Raises:
        ValueError: If the host is empty or malformed
    """
    if not isinstance(host, str) or not host:
        raise ValueError(f"Malformed host: {host!r}")
    if _HOSTNAME.match(host) or _IPV6.match(host):
        return host
    raise ValueError(f"Malformed host: {host!r}")


def validate_port(port: Any) -> int:
    """Coerce and range-check a TCP port.

    Raises:
        ValueError: If the port is not an integer in 1..65535
    """
    try:
        value = int(port)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Malformed port: {port!r}") from e
    if not 0 < value < 65536:
        raise ValueError(f"Port out of range: {value}")
    return value


class ResourceManager(Generic[S]):
    """Base class: a named Binding of a settings dataclass."""

    name = "resource"

    def __init__(self, defaults: S) -> None:
        self._binding: Binding[S] = Binding(f"tessera.runtime.{self.name}", defaults)

    @property
    def current(self) -> S:
        return self._binding.get()

    @property
    def defaults(self) -> S:
        return self._binding.default

    def is_default(self) -> bool:
        return not self._binding.is_bound()

    def rebind(self, **changes: Any) -> BindingToken[S]:
        """Bind a copy of the current settings with ``changes`` applied."""
        updated = replace(self.current, **changes)  # type: ignore[type-var]
        token = self._binding.bind(updated)
        logger.debug("Rebound %s", self.name, extra={"resource": self.name})
        return token

    def reset(self, token: BindingToken[S]) -> None:
        self._binding.restore(token)
        logger.debug("Reset %s", self.name, extra={"resource": self.name})


# -----------------------------------------------------------------------------
# Application identity
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class AppSettings:
    name: str
    env: str
    url: str
    frontend_url: str
    internal_api_url: str | None = None
    locale: str = "en"
    fallback_locale: str = "en"
    timezone: str = "UTC"
    cors_origins: tuple[str, ...] = ()


class AppManager(ResourceManager[AppSettings]):
    """Application name, URLs, locale and timezone."""

    name = "app"

    def url(self, path: str = "") -> str:
        """Absolute URL under the current application root."""
        root = self.current.url.rstrip("/")
        if not path:
            return root
        return f"{root}/{path.lstrip('/')}"

    def now(self) -> datetime:
        """Current time in the bound timezone."""
        return datetime.now(ZoneInfo(self.current.timezone))


# -----------------------------------------------------------------------------
# Database
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    connection: str
    host: str
    port: int
    database: str
    username: str
    password: str = field(repr=False, default="")

    def url(self) -> URL:
        return URL.create(
            drivername=self.connection,
            username=self.username or None,
            password=self.password or None,
            host=self.host or None,
            port=self.port,
            database=self.database,
        )


class DatabaseManager(ResourceManager[DatabaseSettings]):
    """Active tenant data connection.

    Engines are created on first use and reused for every request that
    binds the same URL.
    """

    name = "database"

    def __init__(self, defaults: DatabaseSettings, **engine_options: Any) -> None:
        super().__init__(defaults)
        self._engine_options = engine_options or {"pool_pre_ping": True}
        self._engines: dict[str, AsyncEngine] = {}

    def engine(self) -> AsyncEngine:
        url = self.current.url()
        key = url.render_as_string(hide_password=False)
        engine = self._engines.get(key)
        if engine is None:
            engine = create_async_engine(url, **self._engine_options)
            self._engines[key] = engine
            logger.info(
                "Created database engine",
                extra={"db_host": self.current.host, "db_database": self.current.database},
            )
        return engine

    @property
    def engine_count(self) -> int:
        return len(self._engines)

    async def dispose(self) -> None:
        """Dispose every engine created by this manager."""
        engines, self._engines = self._engines, {}
        for engine in engines.values():
            await engine.dispose()


# -----------------------------------------------------------------------------
# Redis connection
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class RedisSettings:
    host: str
    port: int = 6379
    db: int = 0
    password: str | None = field(default=None, repr=False)
    client: str = "redis"
    prefix: str = ""

    def url(self) -> str:
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"

    @classmethod
    def from_url(cls, url: str, prefix: str = "") -> RedisSettings:
        parts = urlparse(url)
        db = parts.path.lstrip("/") or "0"
        return cls(
            host=parts.hostname or "localhost",
            port=parts.port or 6379,
            db=int(db),
            password=parts.password,
            prefix=prefix,
        )


class RedisManager(ResourceManager[RedisSettings]):
    """Redis connection backing the cache manager.

    One client (with its own connection pool) per distinct URL.
    """

    name = "redis"

    def __init__(self, defaults: RedisSettings) -> None:
        super().__init__(defaults)
        self._clients: dict[str, redis.Redis] = {}

    def client(self) -> redis.Redis:
        return self.client_for(self.current)

    def client_for(self, settings: RedisSettings) -> redis.Redis:
        url = settings.url()
        client = self._clients.get(url)
        if client is None:
            client = redis.from_url(url, decode_responses=False)  # type: ignore[no-untyped-call]
            self._clients[url] = client
        return client

    def key(self, name: str) -> str:
        return f"{self.current.prefix}{name}"

    async def close(self) -> None:
        clients, self._clients = self._clients, {}
        for client in clients.values():
            await client.aclose()


# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class CacheSettings:
    store: str
    prefix: str


class CacheManager(ResourceManager[CacheSettings]):
    """Key-prefixed cache over the active Redis connection."""

    name = "cache"

    def __init__(self, defaults: CacheSettings, redis_manager: RedisManager) -> None:
        super().__init__(defaults)
        self.redis = redis_manager

    def key(self, name: str) -> str:
        return f"{self.current.prefix}{name}"

    async def get(self, name: str) -> bytes | None:
        result: bytes | None = await self.redis.client().get(self.key(name))
        return result

    async def set(self, name: str, value: bytes | str, ttl: int | None = None) -> None:
        if ttl:
            await self.redis.client().setex(self.key(name), ttl, value)
        else:
            await self.redis.client().set(self.key(name), value)

    async def delete(self, name: str) -> None:
        await self.redis.client().delete(self.key(name))


# -----------------------------------------------------------------------------
# Sessions
# -----------------------------------------------------------------------------

DEFAULT_XSRF_COOKIE = "XSRF-TOKEN"


@dataclass(frozen=True)
class SessionSettings:
    driver: str
    lifetime: int
    cookie: str
    path: str = "/"
    domain: str | None = None
    encrypt: bool = False
    connection: str | None = None
    xsrf_cookie: str = DEFAULT_XSRF_COOKIE


class SessionManager(ResourceManager[SessionSettings]):
    """Session driver, lifetime and cookie names."""

    name = "session"

    def cookie_params(self) -> dict[str, Any]:
        """Keyword arguments for ``Response.set_cookie``."""
        current = self.current
        return {
            "max_age": current.lifetime * 60,
            "path": current.path,
            "domain": current.domain,
        }


# -----------------------------------------------------------------------------
# Queue
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class QueueSettings:
    default: str
    connection: str
    name: str = "default"
    retry_after: int = 90
    table: str = "jobs"
    failed_table: str = "failed_jobs"
    redis_database: int | None = None
    sqs_queue: str | None = None
    sqs_region: str = "us-east-1"
    sqs_key: str | None = None
    sqs_secret: str | None = field(default=None, repr=False)


class QueueManager(ResourceManager[QueueSettings]):
    """Job queue connection and queue name.

    Redis queues are lists named ``queues:{name}`` under the active Redis
    key prefix, optionally on a dedicated Redis database.
    """

    name = "queue"

    def __init__(self, defaults: QueueSettings, redis_manager: RedisManager) -> None:
        super().__init__(defaults)
        self.redis = redis_manager

    def pending_key(self) -> str:
        return self.redis.key(f"queues:{self.current.name}")

    def client(self) -> redis.Redis:
        """Redis client for the queue, honouring a dedicated queue database."""
        database = self.current.redis_database
        if database is None:
            return self.redis.client()
        return self.redis.client_for(replace(self.redis.current, db=database))

    async def push(self, payload: bytes | str) -> int:
        """Append a serialized job to the pending list.

        Returns:
            Length of the pending list after the push
        """
        if self.current.connection != "redis":
            raise RuntimeError(f"Queue connection {self.current.connection!r} cannot push jobs")
        length: int = await self.client().lpush(self.pending_key(), payload)
        return length


# -----------------------------------------------------------------------------
# Mail and broadcasting
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class MailSettings:
    mailer: str
    host: str
    port: int
    from_address: str
    from_name: str
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    encryption: str | None = None


class MailManager(ResourceManager[MailSettings]):
    name = "mail"


@dataclass(frozen=True)
class BroadcastSettings:
    app_id: str | None = None
    key: str | None = None
    secret: str | None = field(default=None, repr=False)
    cluster: str = "mt1"


class BroadcastManager(ResourceManager[BroadcastSettings]):
    name = "broadcasting"


# -----------------------------------------------------------------------------
# Filesystem
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class FilesystemSettings:
    storage_root: Path
    local_root: Path
    public_root: Path
    temp_root: Path
    default: str = "local"
    cloud: str = "s3"
    public_url: str | None = None
    s3_bucket: str | None = None
    s3_path_prefix: str = ""
    s3_key: str | None = None
    s3_secret: str | None = field(default=None, repr=False)
    s3_region: str = "us-east-1"
    s3_url: str | None = None

    @classmethod
    def under(cls, storage_path: str | Path, app_url: str, **overrides: Any) -> FilesystemSettings:
        """Default disk layout below a storage directory."""
        root = Path(storage_path)
        return cls(
            storage_root=root,
            local_root=root / "app",
            public_root=root / "app" / "public",
            temp_root=root / "app" / "temp",
            public_url=f"{app_url.rstrip('/')}/storage",
            **overrides,
        )


class FilesystemManager(ResourceManager[FilesystemSettings]):
    """Disk roots and object storage prefix for file storage."""

    name = "filesystem"

    def root(self, disk: str | None = None) -> Path:
        current = self.current
        disk = disk or current.default
        roots = {
            "local": current.local_root,
            "public": current.public_root,
            "temp": current.temp_root,
        }
        if disk not in roots:
            raise ValueError(f"Not a local disk: {disk!r}")
        return roots[disk]

    def path(self, relative: str, disk: str | None = None) -> Path:
        """Absolute path of ``relative`` on a local disk.

        Raises:
            ValueError: If the path is absolute or leaves the disk root
        """
        parts = PurePosixPath(relative)
        if parts.is_absolute() or ".." in parts.parts:
            raise ValueError(f"Path escapes disk root: {relative!r}")
        return self.root(disk).joinpath(*parts.parts)

    def url(self, relative: str) -> str | None:
        """Public URL of a file on the public disk."""
        base = self.current.public_url
        if base is None:
            return None
        return f"{base.rstrip('/')}/{relative.lstrip('/')}"

    def object_key(self, relative: str) -> str:
        """S3 object key with the bound path prefix."""
        prefix = self.current.s3_path_prefix.strip("/")
        relative = relative.lstrip("/")
        return f"{prefix}/{relative}" if prefix else relative
