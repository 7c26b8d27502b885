"""FallbackManager -- 降级管理器

Lazy 重试策略：每次调用先尝试 primary，失败则切换到 fallback，
不维护显式的降级状态。
"""

from typing import Any

import structlog

from .exceptions import ProviderError
from .models import ModelCallResult

log = structlog.get_logger()


class FallbackManager:
    """降级管理器

    降级链: LiteLLMClient -> OfflineMessageAdapter（可选）
    """

    def __init__(self, primary, fallback=None) -> None:
        """
        Args:
            primary: 主 LLM 客户端（LiteLLMClient 或 OfflineMessageAdapter）
            fallback: 降级客户端，None 表示无降级
        """
        self._primary = primary
        self._fallback = fallback

    async def call_with_fallback(
        self,
        messages: list[dict[str, Any]],
        model_alias: str = "main",
        **kwargs,
    ) -> ModelCallResult:
        """带降级的 LLM 调用

        kwargs（purpose、json_mode 等）同时传给 primary 与 fallback，
        离线适配器依赖 purpose 选择样例内容。

        Raises:
            ProviderError: primary 失败且无 fallback，或两者均失败
        """
        try:
            return await self._primary.complete(
                messages=messages,
                model_alias=model_alias,
                **kwargs,
            )
        except Exception as e:
            primary_error = e
            log.warning(
                "primary_failed_attempting_fallback",
                error=str(e),
                model_alias=model_alias,
                purpose=kwargs.get("purpose", ""),
            )

        if self._fallback is None:
            raise ProviderError(
                f"Primary 调用失败且无 fallback 配置: {primary_error}",
                recoverable=False,
            ) from primary_error

        try:
            result = await self._fallback.complete(
                messages=messages,
                model_alias=model_alias,
                **kwargs,
            )
        except Exception as fallback_error:
            log.error(
                "both_primary_and_fallback_failed",
                primary_error=str(primary_error),
                fallback_error=str(fallback_error),
            )
            raise ProviderError(
                f"Primary 和 Fallback 均失败。Primary: {primary_error}; "
                f"Fallback: {fallback_error}",
                recoverable=False,
            ) from fallback_error

        log.info(
            "fallback_activated",
            fallback_reason=str(primary_error),
            model_alias=model_alias,
        )
        return result.model_copy(
            update={
                "is_fallback": True,
                "fallback_reason": f"Primary 失败: {primary_error}",
            }
        )
