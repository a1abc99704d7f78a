"""The set of runtime resources a tenant configuration is applied to."""

from __future__ import annotations

from dataclasses import dataclass

from tessera.config import Settings
from tessera.runtime.managers import (
    AppManager,
    AppSettings,
    BroadcastManager,
    BroadcastSettings,
    CacheManager,
    CacheSettings,
    DatabaseManager,
    DatabaseSettings,
    FilesystemManager,
    FilesystemSettings,
    MailManager,
    MailSettings,
    QueueManager,
    QueueSettings,
    RedisManager,
    RedisSettings,
    SessionManager,
    SessionSettings,
)


@dataclass
class RuntimeResources:
    """Resource managers constructed once per process.

    Passed explicitly to the configuration pipeline; there is no
    module-level instance.
    """

    app: AppManager
    database: DatabaseManager
    redis: RedisManager
    cache: CacheManager
    session: SessionManager
    queue: QueueManager
    mail: MailManager
    filesystem: FilesystemManager
    broadcasting: BroadcastManager

    @classmethod
    def from_settings(cls, settings: Settings) -> RuntimeResources:
        redis_manager = RedisManager(RedisSettings.from_url(settings.redis_url))
        return cls(
            app=AppManager(
                AppSettings(
                    name=settings.app_name,
                    env=settings.env,
                    url=settings.app_url,
                    frontend_url=settings.frontend_url,
                    internal_api_url=settings.internal_api_url,
                    locale=settings.app_locale,
                    fallback_locale=settings.app_fallback_locale,
                    timezone=settings.app_timezone,
                    cors_origins=(settings.app_url, settings.frontend_url),
                )
            ),
            database=DatabaseManager(
                DatabaseSettings(
                    connection=settings.db_connection,
                    host=settings.db_host,
                    port=settings.db_port,
                    database=settings.db_database,
                    username=settings.db_username,
                    password=settings.db_password,
                ),
                pool_pre_ping=True,
            ),
            redis=redis_manager,
            cache=CacheManager(
                CacheSettings(store=settings.cache_store, prefix=settings.cache_prefix),
                redis_manager,
            ),
            session=SessionManager(
                SessionSettings(
                    driver=settings.session_driver,
                    lifetime=settings.session_lifetime,
                    cookie=settings.session_cookie,
                    path=settings.session_path,
                    domain=settings.session_domain,
                    encrypt=settings.session_encrypt,
                )
            ),
            queue=QueueManager(
                QueueSettings(
                    default=settings.queue_connection,
                    connection=settings.queue_connection,
                    name=settings.queue_name,
                    retry_after=settings.queue_retry_after,
                    failed_table=settings.queue_failed_table,
                    sqs_region=settings.aws_default_region,
                ),
                redis_manager,
            ),
            mail=MailManager(
                MailSettings(
                    mailer=settings.mail_mailer,
                    host=settings.mail_host,
                    port=settings.mail_port,
                    from_address=settings.mail_from_address,
                    from_name=settings.mail_from_name,
                )
            ),
            filesystem=FilesystemManager(
                FilesystemSettings.under(
                    settings.storage_path,
                    settings.app_url,
                    default=settings.filesystem_disk,
                    cloud=settings.filesystem_cloud,
                    s3_region=settings.aws_default_region,
                )
            ),
            broadcasting=BroadcastManager(BroadcastSettings()),
        )

    def all_default(self) -> bool:
        """True when no manager carries a request binding."""
        return all(
            manager.is_default()
            for manager in (
                self.app,
                self.database,
                self.redis,
                self.cache,
                self.session,
                self.queue,
                self.mail,
                self.filesystem,
                self.broadcasting,
            )
        )

    async def close(self) -> None:
        await self.database.dispose()
        await self.redis.close()
