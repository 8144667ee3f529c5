"""フィーチャーフラグ・環境のサービス層"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable

import structlog

from .cache import FlagCache
from .exceptions import ApplicationError, NotFoundError
from .models import Environment, FeatureFlag, Filters, Rule, utcnow
from .repository import Repository

logger = structlog.get_logger(__name__)


class FeatureFlagService:
    """フィーチャーフラグの CRUD と有効フラグキャッシュを扱う。

    書き込みが成功するたびにキャッシュを破棄する。
    """

    def __init__(self, repository: Repository[FeatureFlag], cache: FlagCache | None = None) -> None:
        self._repository = repository
        self._cache = cache or FlagCache()

    @property
    def cache(self) -> FlagCache:
        return self._cache

    async def create(
        self,
        name: str,
        label: str = "",
        enabled: bool = False,
        rules: Iterable[Rule] = (),
    ) -> FeatureFlag:
        """フラグを作成する。同名が存在すれば AlreadyExistsError。"""
        flag = FeatureFlag(name=name, label=label, enabled=enabled, rules=list(rules))
        await self._repository.create(flag)
        await self._cache.invalidate()
        logger.info("feature flag created", name=name, id=flag.id)
        return flag

    async def get(self, flag_id: str) -> FeatureFlag:
        return await self._repository.get(flag_id)

    async def find(self, filters: Filters | None = None) -> list[FeatureFlag]:
        return await self._repository.find(filters.to_query() if filters else None)

    async def find_all(self) -> list[FeatureFlag]:
        """一覧表示用。ストア障害時は空リストを返す。"""
        try:
            return await self.find()
        except ApplicationError as e:
            logger.warning("listing feature flags failed", error=str(e))
            return []

    async def update(
        self,
        flag_id: str,
        *,
        label: str | None = None,
        enabled: bool | None = None,
        rules: Iterable[Rule] | None = None,
    ) -> FeatureFlag:
        """フラグを更新する。None の引数は現在の値を保持する。"""
        flag = await self._repository.get(flag_id)
        if label is not None:
            flag.label = label
        if enabled is not None:
            flag.enabled = enabled
        if rules is not None:
            flag.rules = list(rules)
        flag.updated_at = utcnow()
        await self._repository.update(flag_id, flag)
        await self._cache.invalidate()
        logger.info("feature flag updated", id=flag_id)
        return flag

    async def delete(self, flag_id: str) -> None:
        await self._repository.delete(flag_id)
        await self._cache.invalidate()
        logger.info("feature flag deleted", id=flag_id)

    async def enabled_flags(self) -> list[FeatureFlag]:
        """グローバルに有効なフラグ一覧をキャッシュ経由で返す。"""
        return await self._cache.get_or_refresh(self._load_enabled)

    async def _load_enabled(self) -> list[FeatureFlag]:
        return await self._repository.find({"enabled": True})


class EnvironmentService:
    """環境の CRUD とローカルフラグ定義の操作を扱う。"""

    def __init__(self, repository: Repository[Environment]) -> None:
        self._repository = repository

    async def create(self, name: str) -> Environment:
        environment = Environment(name=name)
        await self._repository.create(environment)
        logger.info("environment created", name=name, id=environment.id)
        return environment

    async def get(self, environment_id: str) -> Environment:
        return await self._repository.get(environment_id)

    async def get_by_name(self, name: str) -> Environment:
        """名前で環境を取得する。なければ NotFoundError。"""
        found = await self._repository.find({"name": name})
        if not found:
            logger.info("environment not found", name=name)
            raise NotFoundError(f"Environment not found with name {name}")
        return found[0]

    async def find(self, filters: Filters | None = None) -> list[Environment]:
        return await self._repository.find(filters.to_query() if filters else None)

    async def find_all(self) -> list[Environment]:
        """一覧表示用。ストア障害時は空リストを返す。"""
        try:
            return await self.find()
        except ApplicationError as e:
            logger.warning("listing environments failed", error=str(e))
            return []

    async def update(self, environment_id: str, environment: Environment) -> Environment:
        environment.touch()
        await self._repository.update(environment_id, environment)
        environment.id = environment_id
        return environment

    async def delete(self, environment_id: str) -> None:
        await self._repository.delete(environment_id)
        logger.info("environment deleted", id=environment_id)

    async def set_flag(self, environment_id: str, flag: FeatureFlag) -> Environment:
        """環境にフラグ定義を追加する。同名の定義は置き換える。"""
        environment = await self._repository.get(environment_id)
        environment.add_flag(dataclasses.replace(flag, id=None, updated_at=utcnow()))
        environment.touch()
        await self._repository.update(environment_id, environment)
        logger.info("environment flag set", id=environment_id, flag=flag.name)
        return environment

    async def remove_flag(self, environment_id: str, flag_name: str) -> Environment:
        """環境からフラグ定義を削除する。定義がなければ NotFoundError。"""
        environment = await self._repository.get(environment_id)
        if not environment.remove_flag_by_name(flag_name):
            raise NotFoundError(
                f"Feature flag {flag_name} not found in environment {environment.name}"
            )
        environment.touch()
        await self._repository.update(environment_id, environment)
        logger.info("environment flag removed", id=environment_id, flag=flag_name)
        return environment
