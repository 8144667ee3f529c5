"""汎用リポジトリ

エンティティ型ごとに Create / Get / Find / Update / Delete を提供する。
名前の一意性チェックは ``UniqueNameRepository`` としてラップして付与する。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Mapping
from typing import Any, Generic, TypeVar

import structlog

from .documents import DocumentCodec, EnvironmentCodec, FeatureFlagCodec
from .exceptions import AlreadyExistsError, ApplicationError, FeatureFlagError, NotFoundError
from .models import Environment, FeatureFlag
from .store import ID_FIELD, DocumentCollection, DocumentStore, StoreError, is_valid_id

T = TypeVar("T")
R = TypeVar("R")

FEATURE_FLAGS_COLLECTION = "feature_flags"
ENVIRONMENTS_COLLECTION = "environments"

logger = structlog.get_logger(__name__)


class Repository(ABC, Generic[T]):
    """エンティティ型 T のリポジトリ抽象基底クラス。"""

    @abstractmethod
    async def create(self, entity: T) -> str:
        """エンティティを保存し、採番された ID を返す。"""
        ...

    @abstractmethod
    async def get(self, entity_id: str) -> T:
        """ID でエンティティを取得する。なければ NotFoundError。"""
        ...

    @abstractmethod
    async def find(self, query: Mapping[str, Any] | None = None) -> list[T]:
        """条件に一致するエンティティを返す。0 件は空リスト。"""
        ...

    @abstractmethod
    async def update(self, entity_id: str, entity: T) -> None:
        """ID のドキュメントをエンティティの内容で全置換する。"""
        ...

    @abstractmethod
    async def delete(self, entity_id: str) -> None:
        """エンティティを削除する。なければ NotFoundError。"""
        ...


class DocumentRepository(Repository[T]):
    """DocumentCollection に保存するリポジトリ。"""

    def __init__(self, collection: DocumentCollection, codec: DocumentCodec[T]) -> None:
        self._collection = collection
        self._codec = codec

    @property
    def codec(self) -> DocumentCodec[T]:
        return self._codec

    async def create(self, entity: T) -> str:
        document = self._codec.to_document(entity)
        document.pop(ID_FIELD, None)
        entity_id = await self._call("create", self._collection.insert_one(document))
        self._codec.with_id(entity, entity_id)
        logger.debug("entity created", entity=self._codec.entity_name, id=entity_id)
        return entity_id

    async def get(self, entity_id: str) -> T:
        self._check_id(entity_id)
        document = await self._call("get", self._collection.find_one({ID_FIELD: entity_id}))
        if document is None:
            raise NotFoundError(f"{self._codec.entity_name} not found with id {entity_id}")
        return self._decode(document)

    async def find(self, query: Mapping[str, Any] | None = None) -> list[T]:
        documents = await self._call("find", self._collection.find(dict(query or {})))
        return [self._decode(d) for d in documents]

    async def update(self, entity_id: str, entity: T) -> None:
        self._check_id(entity_id)
        document = self._codec.to_document(entity)
        document.pop(ID_FIELD, None)
        matched = await self._call("update", self._collection.replace_one(entity_id, document))
        if not matched:
            raise NotFoundError(f"{self._codec.entity_name} not found with id {entity_id}")
        logger.debug("entity updated", entity=self._codec.entity_name, id=entity_id)

    async def delete(self, entity_id: str) -> None:
        self._check_id(entity_id)
        deleted = await self._call("delete", self._collection.delete_one(entity_id))
        if not deleted:
            raise NotFoundError(f"{self._codec.entity_name} not found with id {entity_id}")
        logger.debug("entity deleted", entity=self._codec.entity_name, id=entity_id)

    def _decode(self, document: dict[str, Any]) -> T:
        try:
            return self._codec.from_document(document)
        except FeatureFlagError as e:
            logger.error(
                "stored document is invalid",
                entity=self._codec.entity_name,
                id=document.get(ID_FIELD),
                error=str(e),
            )
            raise ApplicationError(
                f"failed to read {self._codec.entity_name}: {e}", cause=e
            ) from e

    def _check_id(self, entity_id: str) -> None:
        if not is_valid_id(entity_id):
            raise NotFoundError(f"invalid {self._codec.entity_name} id: {entity_id!r}")

    async def _call(self, action: str, awaitable: Awaitable[R]) -> R:
        try:
            return await awaitable
        except StoreError as e:
            logger.error(
                "store operation failed",
                entity=self._codec.entity_name,
                action=action,
                error=str(e),
            )
            raise ApplicationError(
                f"failed to {action} {self._codec.entity_name}: {e}", cause=e
            ) from e


class UniqueNameRepository(Repository[T]):
    """create 時に同名エンティティの存在を確認するラッパー。

    読み取り後に書き込むため、同名の並行 create は両方成功しうる。
    ストア側の一意制約がない限りこの競合は防げない。
    """

    def __init__(self, inner: Repository[T], codec: DocumentCodec[T]) -> None:
        self._inner = inner
        self._codec = codec

    async def create(self, entity: T) -> str:
        name = self._codec.name_of(entity)
        existing = await self._inner.find({"name": name})
        if existing:
            logger.info("duplicate name rejected", entity=self._codec.entity_name, name=name)
            raise AlreadyExistsError(name, self._codec.entity_name)
        return await self._inner.create(entity)

    async def get(self, entity_id: str) -> T:
        return await self._inner.get(entity_id)

    async def find(self, query: Mapping[str, Any] | None = None) -> list[T]:
        return await self._inner.find(query)

    async def update(self, entity_id: str, entity: T) -> None:
        await self._inner.update(entity_id, entity)

    async def delete(self, entity_id: str) -> None:
        await self._inner.delete(entity_id)


def feature_flag_repository(
    store: DocumentStore, collection_name: str = FEATURE_FLAGS_COLLECTION
) -> Repository[FeatureFlag]:
    codec = FeatureFlagCodec()
    return UniqueNameRepository(DocumentRepository(store.collection(collection_name), codec), codec)


def environment_repository(
    store: DocumentStore, collection_name: str = ENVIRONMENTS_COLLECTION
) -> Repository[Environment]:
    codec = EnvironmentCodec()
    return UniqueNameRepository(DocumentRepository(store.collection(collection_name), codec), codec)
