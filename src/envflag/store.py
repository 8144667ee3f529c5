"""DocumentStore 抽象基底クラス"""

from __future__ import annotations

import re
import secrets
from abc import ABC, abstractmethod
from typing import Any

ID_FIELD = "_id"
_ID_RE = re.compile(r"[0-9a-f]{24}")


class StoreError(Exception):
    """ドキュメントストアのバックエンド障害。"""


def new_id() -> str:
    """24 桁の 16 進文字列 ID を生成する。"""
    return secrets.token_hex(12)


def is_valid_id(value: str) -> bool:
    return isinstance(value, str) and _ID_RE.fullmatch(value) is not None


class DocumentCollection(ABC):
    """ドキュメントコレクション抽象基底クラス。

    query はトップレベルフィールドの等価条件の辞書。空辞書は全件。
    """

    @abstractmethod
    async def insert_one(self, document: dict[str, Any]) -> str:
        """ドキュメントを挿入し、採番した ID を返す。"""
        ...

    @abstractmethod
    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        """条件に一致する最初のドキュメントを返す。なければ None。"""
        ...

    @abstractmethod
    async def find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        """条件に一致する全ドキュメントを返す。"""
        ...

    @abstractmethod
    async def replace_one(self, entity_id: str, document: dict[str, Any]) -> bool:
        """ID のドキュメントを置き換える。一致したら True。"""
        ...

    @abstractmethod
    async def delete_one(self, entity_id: str) -> bool:
        """ID のドキュメントを削除する。削除できたら True。"""
        ...


class DocumentStore(ABC):
    """コレクションを名前で払い出すストア。"""

    @abstractmethod
    def collection(self, name: str) -> DocumentCollection:
        ...
