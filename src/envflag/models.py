"""envflag データモデル"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .exceptions import FeatureFlagError, FeatureFlagErrorCodes
from .operators import Operator, evaluate

# リクエスト単位の評価コンテキスト。値は str / None / str のシーケンス。
Context = Mapping[str, Any]


def utcnow() -> datetime:
    """秒精度の現在時刻 (UTC) を返す。"""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _require_name(value: str, field_name: str) -> None:
    if not value:
        raise FeatureFlagError(
            FeatureFlagErrorCodes.VALIDATION_ERROR,
            f"{field_name} cannot be empty",
        )


@dataclass(frozen=True)
class Rule:
    """コンテキストのパラメータ 1 つに対する述語。"""

    parameter: str
    operator: Operator

    def __post_init__(self) -> None:
        _require_name(self.parameter, "parameter")

    def check(self, context: Context) -> bool:
        """コンテキストに対してルールを評価する。"""
        return evaluate(self.operator, context.get(self.parameter))


@dataclass
class FeatureFlag:
    """フィーチャーフラグ。"""

    name: str
    label: str = ""
    enabled: bool = False
    rules: list[Rule] = field(default_factory=list)
    id: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        _require_name(self.name, "name")
        self.rules = list(self.rules)

    def is_context_valid(self, context: Context) -> bool:
        """フラグがコンテキストに対して有効か判定する。

        enabled が False なら常に False。それ以外は全ルールの論理積で、
        ルールが空なら True。
        """
        if not self.enabled:
            return False
        return all(rule.check(context) for rule in self.rules)


@dataclass
class Environment:
    """環境。名前で一意なフラグ集合をローカル定義として持つ。"""

    name: str
    flags: dict[str, FeatureFlag] = field(default_factory=dict)
    id: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        _require_name(self.name, "name")
        if not isinstance(self.flags, dict):
            flags = self.flags
            self.flags = {}
            self.set_flags(flags)

    def add_flag(self, flag: FeatureFlag) -> None:
        """フラグを追加する。同名のフラグは置き換える。"""
        self.flags[flag.name] = flag

    def remove_flag(self, flag: FeatureFlag) -> bool:
        return self.remove_flag_by_name(flag.name)

    def remove_flag_by_name(self, flag_name: str) -> bool:
        """名前でフラグを削除する。削除できたら True。"""
        return self.flags.pop(flag_name, None) is not None

    def set_flags(self, flags: Iterable[FeatureFlag]) -> None:
        """フラグ集合を置き換える。同名が複数あれば後勝ち。"""
        self.flags = {}
        for flag in flags:
            self.add_flag(flag)

    def touch(self) -> None:
        self.updated_at = utcnow()

    def get_flags_from_context(self, context: Context) -> dict[str, bool]:
        """ローカル定義の全フラグをコンテキストで評価する。"""
        return {name: flag.is_context_valid(context) for name, flag in self.flags.items()}


@dataclass
class Filters:
    """find 用の絞り込み条件。None のフィールドは条件に含めない。"""

    name: str | None = None
    label: str | None = None

    def to_query(self) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if self.name is not None:
            query["name"] = self.name
        if self.label is not None:
            query["label"] = self.label
        return query
