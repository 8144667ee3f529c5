"""InMemoryDocumentStore 実装"""

from __future__ import annotations

import copy
from typing import Any

from .store import ID_FIELD, DocumentCollection, DocumentStore, new_id


def _matches(document: dict[str, Any], query: dict[str, Any]) -> bool:
    return all(key in document and document[key] == value for key, value in query.items())


class InMemoryDocumentCollection(DocumentCollection):
    """テスト用インメモリコレクション。"""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    async def insert_one(self, document: dict[str, Any]) -> str:
        entity_id = new_id()
        stored = copy.deepcopy(document)
        stored[ID_FIELD] = entity_id
        self._documents[entity_id] = stored
        return entity_id

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        for document in self._documents.values():
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    async def find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        return [copy.deepcopy(d) for d in self._documents.values() if _matches(d, query)]

    async def replace_one(self, entity_id: str, document: dict[str, Any]) -> bool:
        if entity_id not in self._documents:
            return False
        stored = copy.deepcopy(document)
        stored[ID_FIELD] = entity_id
        self._documents[entity_id] = stored
        return True

    async def delete_one(self, entity_id: str) -> bool:
        return self._documents.pop(entity_id, None) is not None

    def __len__(self) -> int:
        return len(self._documents)


class InMemoryDocumentStore(DocumentStore):
    """テスト用インメモリドキュメントストア。"""

    def __init__(self) -> None:
        self._collections: dict[str, InMemoryDocumentCollection] = {}

    def collection(self, name: str) -> InMemoryDocumentCollection:
        if name not in self._collections:
            self._collections[name] = InMemoryDocumentCollection()
        return self._collections[name]
