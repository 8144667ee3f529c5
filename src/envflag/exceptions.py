"""envflag ライブラリの例外型定義"""

from __future__ import annotations

from pathlib import Path


class FeatureFlagError(Exception):
    """envflag ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class FeatureFlagErrorCodes:
    """FeatureFlagError のエラーコード定数。"""

    NOT_FOUND: str = "NOT_FOUND"
    ALREADY_EXISTS: str = "ALREADY_EXISTS"
    APPLICATION_ERROR: str = "APPLICATION_ERROR"
    INVALID_DOCUMENT: str = "INVALID_DOCUMENT"
    VALIDATION_ERROR: str = "VALIDATION_ERROR"
    CONFIG_UNREADABLE: str = "CONFIG_UNREADABLE"
    CONFIG_MALFORMED: str = "CONFIG_MALFORMED"


class NotFoundError(FeatureFlagError):
    """ID が不正、または対象ドキュメントが存在しない場合のエラー。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(FeatureFlagErrorCodes.NOT_FOUND, message, cause)


class AlreadyExistsError(FeatureFlagError):
    """同名のエンティティが既に存在する場合のエラー。"""

    def __init__(self, name: str, entity: str = "entity") -> None:
        self.name = name
        super().__init__(
            FeatureFlagErrorCodes.ALREADY_EXISTS,
            f"{entity} with name {name} already exists",
        )


class ApplicationError(FeatureFlagError):
    """ストア障害など、想定外の失敗。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(FeatureFlagErrorCodes.APPLICATION_ERROR, message, cause)


class ConfigError(FeatureFlagError):
    """設定ファイルの読み込み・検証に失敗した場合のエラー。"""

    def __init__(
        self,
        code: str,
        message: str,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.path = path
        super().__init__(code, message, cause)
