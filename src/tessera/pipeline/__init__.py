"""Tenant configuration pipeline.

- ConfigurationPipe: base class for one infrastructure concern
- ConfigurationPipeline: ordered registry that resolves and applies pipes
- build_default_pipeline: the built-in pipes in their standard order
"""

from tessera.pipeline.base import ConfigurationPipe, PipeResult
from tessera.pipeline.pipeline import (
    AppliedConfiguration,
    ConfigurationPipeline,
    ResolvedConfig,
)
from tessera.pipeline.pipes import (
    BroadcastingConfigPipe,
    CacheConfigPipe,
    CoreConfigPipe,
    DatabaseConfigPipe,
    FilesystemConfigPipe,
    MailConfigPipe,
    QueueConfigPipe,
    RedisConfigPipe,
    SessionConfigPipe,
)


def build_default_pipeline() -> ConfigurationPipeline:
    """Pipeline with every built-in pipe registered."""
    return ConfigurationPipeline(
        [
            CoreConfigPipe(),
            DatabaseConfigPipe(),
            CacheConfigPipe(),
            RedisConfigPipe(),
            SessionConfigPipe(),
            QueueConfigPipe(),
            MailConfigPipe(),
            FilesystemConfigPipe(),
            BroadcastingConfigPipe(),
        ]
    )


__all__ = [
    "ConfigurationPipe",
    "PipeResult",
    "ConfigurationPipeline",
    "AppliedConfiguration",
    "ResolvedConfig",
    "build_default_pipeline",
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
