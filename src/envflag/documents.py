"""エンティティと永続化ドキュメントの相互変換"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from .exceptions import FeatureFlagError, FeatureFlagErrorCodes
from .models import Environment, FeatureFlag, Rule
from .operators import OPERATOR_TYPES, IsNotOneOf, IsOneOf, Operator
from .store import ID_FIELD

T = TypeVar("T")

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SET_OPERATORS = (IsOneOf, IsNotOneOf)


def _invalid(message: str, cause: Exception | None = None) -> FeatureFlagError:
    return FeatureFlagError(FeatureFlagErrorCodes.INVALID_DOCUMENT, message, cause)


def format_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DATE_FORMAT)


def parse_datetime(value: str) -> datetime:
    try:
        return datetime.strptime(value, DATE_FORMAT).replace(tzinfo=timezone.utc)
    except (TypeError, ValueError) as e:
        raise _invalid(f"invalid timestamp: {value!r}", e) from e


def operator_to_document(operator: Operator) -> dict[str, Any]:
    """演算子をバリアント名でタグ付けした辞書に変換する。"""
    tag = type(operator).__name__
    if isinstance(operator, _SET_OPERATORS):
        return {tag: list(operator.values)}
    return {tag: operator.value}  # type: ignore[attr-defined]


def operator_from_document(document: Any) -> Operator:
    if not isinstance(document, Mapping) or len(document) != 1:
        raise _invalid(f"operator must have exactly one tag: {document!r}")
    ((tag, operand),) = document.items()
    operator_type = OPERATOR_TYPES.get(tag)
    if operator_type is None:
        raise _invalid(f"unknown operator: {tag}")
    if operator_type in _SET_OPERATORS:
        if not isinstance(operand, (list, tuple)) or not all(
            isinstance(v, str) for v in operand
        ):
            raise _invalid(f"{tag} expects a list of strings")
        return operator_type(operand)
    if not isinstance(operand, str):
        raise _invalid(f"{tag} expects a string")
    return operator_type(operand)


def rule_to_document(rule: Rule) -> dict[str, Any]:
    return {
        "parameter": rule.parameter,
        "operator": operator_to_document(rule.operator),
    }


def rule_from_document(document: Mapping[str, Any]) -> Rule:
    return Rule(
        parameter=document["parameter"],
        operator=operator_from_document(document["operator"]),
    )


def flag_to_document(flag: FeatureFlag, include_id: bool = True) -> dict[str, Any]:
    document: dict[str, Any] = {}
    if include_id and flag.id is not None:
        document[ID_FIELD] = flag.id
    document.update(
        {
            "name": flag.name,
            "label": flag.label,
            "enabled": flag.enabled,
            "rules": [rule_to_document(r) for r in flag.rules],
            "created_at": format_datetime(flag.created_at),
            "updated_at": format_datetime(flag.updated_at),
        }
    )
    return document


def flag_from_document(document: Mapping[str, Any]) -> FeatureFlag:
    enabled = document.get("enabled", False)
    if not isinstance(enabled, bool):
        raise _invalid(f"enabled must be a boolean: {enabled!r}")
    return FeatureFlag(
        id=document.get(ID_FIELD),
        name=document["name"],
        label=document.get("label", ""),
        enabled=enabled,
        rules=[rule_from_document(r) for r in document.get("rules", [])],
        created_at=parse_datetime(document["created_at"]),
        updated_at=parse_datetime(document["updated_at"]),
    )


def environment_to_document(environment: Environment) -> dict[str, Any]:
    document: dict[str, Any] = {}
    if environment.id is not None:
        document[ID_FIELD] = environment.id
    document.update(
        {
            "name": environment.name,
            "flags": [
                flag_to_document(environment.flags[name], include_id=False)
                for name in sorted(environment.flags)
            ],
            "created_at": format_datetime(environment.created_at),
            "updated_at": format_datetime(environment.updated_at),
        }
    )
    return document


def environment_from_document(document: Mapping[str, Any]) -> Environment:
    environment = Environment(
        id=document.get(ID_FIELD),
        name=document["name"],
        created_at=parse_datetime(document["created_at"]),
        updated_at=parse_datetime(document["updated_at"]),
    )
    environment.set_flags(flag_from_document(f) for f in document.get("flags", []))
    return environment


class DocumentCodec(ABC, Generic[T]):
    """リポジトリが使うエンティティ変換器の基底クラス。"""

    entity_name: str = "entity"

    @abstractmethod
    def to_document(self, entity: T) -> dict[str, Any]:
        """エンティティを保存用ドキュメントに変換する。"""
        ...

    @abstractmethod
    def decode(self, document: Mapping[str, Any]) -> T:
        """ドキュメントからエンティティを組み立てる。"""
        ...

    def from_document(self, document: Mapping[str, Any]) -> T:
        """ドキュメントをエンティティに変換する。不正な形は INVALID_DOCUMENT。"""
        try:
            return self.decode(document)
        except FeatureFlagError as e:
            if e.code == FeatureFlagErrorCodes.INVALID_DOCUMENT:
                raise
            raise _invalid(f"invalid {self.entity_name} document: {e}", e) from e
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise _invalid(f"invalid {self.entity_name} document: {e!r}", e) from e

    def name_of(self, entity: T) -> str:
        return entity.name  # type: ignore[attr-defined]

    def with_id(self, entity: T, entity_id: str) -> T:
        entity.id = entity_id  # type: ignore[attr-defined]
        return entity


class FeatureFlagCodec(DocumentCodec[FeatureFlag]):
    entity_name = "Feature flag"

    def to_document(self, entity: FeatureFlag) -> dict[str, Any]:
        return flag_to_document(entity)

    def decode(self, document: Mapping[str, Any]) -> FeatureFlag:
        return flag_from_document(document)


class EnvironmentCodec(DocumentCodec[Environment]):
    entity_name = "Environment"

    def to_document(self, entity: Environment) -> dict[str, Any]:
        return environment_to_document(entity)

    def decode(self, document: Mapping[str, Any]) -> Environment:
        return environment_from_document(document)
