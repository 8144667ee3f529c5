"""有効フラグの読み取りキャッシュ"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Awaitable, Callable

import structlog

from .models import FeatureFlag

Loader = Callable[[], Awaitable[list[FeatureFlag]]]

logger = structlog.get_logger(__name__)


class FlagCache:
    """最後に取得した有効フラグ一覧を保持するキャッシュ。

    読み取り結果は複製して返すため、呼び出し側の変更はキャッシュに影響しない。

    空判定から取得・格納までを 1 つのロック内で行うため、
    並行リクエストが同時に再取得することはない。
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._flags: list[FeatureFlag] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_populated(self) -> bool:
        return self._flags is not None

    async def get_or_refresh(self, loader: Loader) -> list[FeatureFlag]:
        """キャッシュ済みの一覧を返す。未取得なら loader で取得して格納する。"""
        async with self._lock:
            if not self._enabled:
                return list(await loader())
            if self._flags is None:
                self._flags = list(await loader())
                logger.debug("flag cache refreshed", count=len(self._flags))
            return copy.deepcopy(self._flags)

    async def invalidate(self) -> None:
        """キャッシュを破棄する。次回読み取りで再取得される。"""
        async with self._lock:
            self._flags = None
        logger.debug("flag cache invalidated")
