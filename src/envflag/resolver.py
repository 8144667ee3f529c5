"""環境オーバーレイによるフラグ評価"""

from __future__ import annotations

import structlog

from .models import Context
from .services import EnvironmentService, FeatureFlagService

logger = structlog.get_logger(__name__)


class OverlayResolver:
    """コンテキストからフラグ名→真偽値のマップを組み立てる。

    環境を指定した場合、環境のローカル定義を先に評価し、ローカルに
    存在しないグローバル有効フラグだけを追加する。ローカル定義が常に優先。
    """

    def __init__(
        self,
        flags: FeatureFlagService,
        environments: EnvironmentService,
    ) -> None:
        self._flags = flags
        self._environments = environments

    async def resolve(
        self,
        context: Context,
        environment_name: str | None = None,
    ) -> dict[str, bool]:
        """フラグを評価する。

        Args:
            context: 評価コンテキスト
            environment_name: 環境名。None ならグローバルのみ評価する。

        Raises:
            NotFoundError: 環境名が指定され、その環境が存在しない場合
            ApplicationError: ストアの読み取りに失敗した場合
        """
        result: dict[str, bool] = {}
        if environment_name is not None:
            environment = await self._environments.get_by_name(environment_name)
            result.update(environment.get_flags_from_context(context))

        for flag in await self._flags.enabled_flags():
            if flag.name not in result:
                result[flag.name] = flag.is_context_valid(context)

        logger.debug(
            "flags resolved",
            environment=environment_name,
            count=len(result),
        )
        return result
