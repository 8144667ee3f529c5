"""設定型定義（pydantic BaseModel）"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class AppSection(BaseModel):
    """アプリケーション基本設定。"""

    name: str
    version: str = "0.1.0"
    environment: str = "development"


class StoreSection(BaseModel):
    """ドキュメントストア設定。"""

    backend: str = "memory"
    flags_collection: str = Field(default="feature_flags", min_length=1)
    environments_collection: str = Field(default="environments", min_length=1)


class CacheSection(BaseModel):
    """有効フラグキャッシュ設定。"""

    enabled: bool = True


class LogSection(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class ObservabilitySection(BaseModel):
    """可観測性設定。"""

    log: LogSection = Field(default_factory=LogSection)


class AppConfig(BaseModel):
    """アプリケーション設定全体。"""

    app: AppSection
    store: StoreSection = Field(default_factory=StoreSection)
    cache: CacheSection = Field(default_factory=CacheSection)
    observability: ObservabilitySection = Field(default_factory=ObservabilitySection)
