"""アプリケーションの組み立て"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from .cache import FlagCache
from .config import AppConfig
from .exceptions import ConfigError, FeatureFlagErrorCodes
from .logger import new_logger
from .memory import InMemoryDocumentStore
from .models import Context
from .repository import environment_repository, feature_flag_repository
from .resolver import OverlayResolver
from .services import EnvironmentService, FeatureFlagService
from .store import DocumentStore


@dataclass
class FlagApplication:
    """サービス・リゾルバ・ロガーをまとめたコンテナ。"""

    config: AppConfig
    store: DocumentStore
    flags: FeatureFlagService
    environments: EnvironmentService
    resolver: OverlayResolver
    logger: structlog.stdlib.BoundLogger

    async def evaluate(self, context: Context) -> dict[str, bool]:
        """グローバル有効フラグを評価する。"""
        return await self.resolver.resolve(context)

    async def evaluate_environment(self, environment_name: str, context: Context) -> dict[str, bool]:
        """環境のローカル定義を優先してフラグを評価する。"""
        return await self.resolver.resolve(context, environment_name)


def _create_store(config: AppConfig) -> DocumentStore:
    if config.store.backend == "memory":
        return InMemoryDocumentStore()
    raise ConfigError(
        FeatureFlagErrorCodes.VALIDATION_ERROR,
        f"unsupported store backend: {config.store.backend}",
    )


def build_application(config: AppConfig, store: DocumentStore | None = None) -> FlagApplication:
    """設定から FlagApplication を組み立てる。

    store を渡した場合は store.backend の設定より優先する。
    """
    logger = new_logger(
        level=config.observability.log.level,
        format=config.observability.log.format,
    ).bind(app=config.app.name, environment=config.app.environment)

    if store is None:
        store = _create_store(config)

    flags = FeatureFlagService(
        feature_flag_repository(store, config.store.flags_collection),
        FlagCache(enabled=config.cache.enabled),
    )
    environments = EnvironmentService(
        environment_repository(store, config.store.environments_collection)
    )
    logger.info("application initialized", store=type(store).__name__)
    return FlagApplication(
        config=config,
        store=store,
        flags=flags,
        environments=environments,
        resolver=OverlayResolver(flags, environments),
        logger=logger,
    )
