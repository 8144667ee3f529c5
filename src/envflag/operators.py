"""ルール演算子の定義と評価"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


class Operator(ABC):
    """ルール演算子の基底クラス。

    各バリアントは比較対象のオペランドを保持し、コンテキスト値 1 つに対する
    判定 ``matches`` を実装する。値が存在しない場合は ``None`` が渡される。
    """

    @abstractmethod
    def matches(self, value: str | None) -> bool:
        """単一の文字列値（または欠損）を判定する。"""
        ...


@dataclass(frozen=True)
class Is(Operator):
    """値がオペランドと一致する。"""

    value: str

    def matches(self, value: str | None) -> bool:
        return value is not None and value == self.value


@dataclass(frozen=True)
class IsNot(Operator):
    """値がオペランドと一致しない。欠損は一致しないものとして扱う。"""

    value: str

    def matches(self, value: str | None) -> bool:
        return value is None or value != self.value


@dataclass(frozen=True)
class Contains(Operator):
    """値がオペランドを部分文字列として含む。"""

    value: str

    def matches(self, value: str | None) -> bool:
        # 欠損は空文字列として扱う
        return self.value in (value or "")


@dataclass(frozen=True)
class IsOneOf(Operator):
    """値がオペランド集合のいずれかに含まれる。"""

    values: tuple[str, ...]

    def __init__(self, values: Iterable[str]) -> None:
        object.__setattr__(self, "values", tuple(values))

    def matches(self, value: str | None) -> bool:
        return value is not None and value in self.values


@dataclass(frozen=True)
class IsNotOneOf(Operator):
    """値がオペランド集合のどれにも含まれない。"""

    values: tuple[str, ...]

    def __init__(self, values: Iterable[str]) -> None:
        object.__setattr__(self, "values", tuple(values))

    def matches(self, value: str | None) -> bool:
        return value is None or value not in self.values


OPERATOR_TYPES: dict[str, type[Operator]] = {
    "Is": Is,
    "IsNot": IsNot,
    "Contains": Contains,
    "IsOneOf": IsOneOf,
    "IsNotOneOf": IsNotOneOf,
}


def evaluate(operator: Operator, value: Any) -> bool:
    """コンテキスト値の形に応じて演算子を評価する。

    - ``None``: 欠損として評価
    - ``str``: そのまま評価
    - ``list`` / ``tuple``: ``match_all`` で全要素を評価
    - それ以外（数値・真偽値・オブジェクト）: 常に False
    """
    if value is None:
        return operator.matches(None)
    if isinstance(value, str):
        return operator.matches(value)
    if isinstance(value, (list, tuple)):
        return match_all(operator, value)
    return False


def match_all(operator: Operator, values: Iterable[Any]) -> bool:
    """配列値の全要素が演算子を満たす場合のみ True を返す。

    1 要素でも失敗すればルール全体が失敗する（論理積）。空配列は True。
    """
    return all(evaluate(operator, v) for v in values)
