"""共通フィクスチャ"""

from typing import Any

import pytest
from envflag import InMemoryDocumentStore, StoreError
from envflag.memory import InMemoryDocumentCollection


class FailingCollection(InMemoryDocumentCollection):
    """全操作で StoreError を送出するコレクション。"""

    async def insert_one(self, document: dict[str, Any]) -> str:
        raise StoreError("connection refused")

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        raise StoreError("connection refused")

    async def find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        raise StoreError("connection refused")

    async def replace_one(self, entity_id: str, document: dict[str, Any]) -> bool:
        raise StoreError("connection refused")

    async def delete_one(self, entity_id: str) -> bool:
        raise StoreError("connection refused")


class FailingStore(InMemoryDocumentStore):
    """FailingCollection を払い出すストア。"""

    def collection(self, name: str) -> InMemoryDocumentCollection:
        return FailingCollection()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


CORRUPT_FLAG_DOCUMENT: dict[str, Any] = {
    "name": "broken_flag",
    "label": "Broken",
    "enabled": True,
    "rules": [{"parameter": "tenant", "operator": {"Unknown": "tenant1"}}],
    "created_at": "2024-01-01 00:00:00",
    "updated_at": "2024-01-01 00:00:00",
}


@pytest.fixture
async def corrupt_flag_id(store: InMemoryDocumentStore) -> str:
    """解釈できない演算子を持つフラグドキュメントを直接投入する。"""
    return await store.collection("feature_flags").insert_one(dict(CORRUPT_FLAG_DOCUMENT))
