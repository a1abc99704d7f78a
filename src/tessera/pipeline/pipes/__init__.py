"""Built-in configuration pipes, one per infrastructure concern."""

from tessera.pipeline.pipes.broadcasting import BroadcastingConfigPipe
from tessera.pipeline.pipes.cache import CacheConfigPipe
from tessera.pipeline.pipes.core import CoreConfigPipe
from tessera.pipeline.pipes.database import DatabaseConfigPipe
from tessera.pipeline.pipes.filesystem import FilesystemConfigPipe
from tessera.pipeline.pipes.mail import MailConfigPipe
from tessera.pipeline.pipes.queue import QueueConfigPipe
from tessera.pipeline.pipes.redis import RedisConfigPipe
from tessera.pipeline.pipes.session import SessionConfigPipe

__all__ = [
    "CoreConfigPipe",
    "DatabaseConfigPipe",
    "CacheConfigPipe",
    "RedisConfigPipe",
    "SessionConfigPipe",
    "QueueConfigPipe",
    "MailConfigPipe",
    "FilesystemConfigPipe",
    "BroadcastingConfigPipe",
]
