"""設定ファイル読み込み

ベース設定 ``config.yaml`` に、同じディレクトリの環境別設定
``config.<environment>.yaml`` を重ねて AppConfig を組み立てる。
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config import AppConfig
from .exceptions import ConfigError, FeatureFlagErrorCodes


def overlay_path(base_path: Path, environment: str) -> Path:
    """環境別設定ファイルのパスを返す（config.yaml → config.production.yaml）。"""
    return base_path.with_name(f"{base_path.stem}.{environment}{base_path.suffix}")


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """override を base に再帰的に重ねた新しい辞書を返す。リストは置換。"""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def _read_mapping(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(
            FeatureFlagErrorCodes.CONFIG_UNREADABLE, f"cannot read {path}", path, e
        ) from e
    except yaml.YAMLError as e:
        raise ConfigError(
            FeatureFlagErrorCodes.CONFIG_MALFORMED, f"invalid YAML in {path}", path, e
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            FeatureFlagErrorCodes.CONFIG_MALFORMED,
            f"top level of {path} must be a mapping",
            path,
        )
    return data


def _environment_of(data: Mapping[str, Any]) -> str | None:
    app = data.get("app")
    if isinstance(app, Mapping):
        return app.get("environment")
    return None


def load(
    path: str | Path,
    environment: str | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """設定ファイルを読み込んで AppConfig を返す。

    environment を省略した場合はベース設定の ``app.environment`` を使う。
    指定した場合はその値が ``app.environment`` になる。
    環境別設定ファイルが無ければベースのみを使う。
    overrides は最後に重ね、ファイルの値より優先する。
    """
    path = Path(path)
    data = _read_mapping(path)
    if environment is None:
        environment = _environment_of(data)
    else:
        data = deep_merge(data, {"app": {"environment": environment}})

    if environment:
        overlay = overlay_path(path, environment)
        if overlay.is_file():
            data = deep_merge(data, _read_mapping(overlay))
    if overrides:
        data = deep_merge(data, overrides)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            FeatureFlagErrorCodes.VALIDATION_ERROR,
            f"invalid configuration in {path}: {e}",
            path,
            e,
        ) from e
