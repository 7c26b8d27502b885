"""LLMService -- FallbackManager + AliasRegistry 的统一调用入口

语义 alias 经 AliasRegistry 解析为运行时 group，再交给 FallbackManager。
"""

from typing import Any

from nexusboard.provider import (
    AliasRegistry,
    FallbackManager,
    ModelCallResult,
    OfflineMessageAdapter,
)


class LLMService:
    """LLM 服务

    无参构造时使用离线模式（OfflineMessageAdapter，无降级）。
    """

    def __init__(
        self,
        fallback_manager: FallbackManager | None = None,
        alias_registry: AliasRegistry | None = None,
    ) -> None:
        self._fallback_manager = fallback_manager or FallbackManager(
            primary=OfflineMessageAdapter(),
            fallback=None,
        )
        self._alias_registry = alias_registry or AliasRegistry()

    async def call(
        self,
        prompt_or_messages: str | list[dict[str, Any]],
        model_alias: str | None = None,
        purpose: str = "",
        json_mode: bool = False,
    ) -> ModelCallResult:
        """调用 LLM

        Args:
            prompt_or_messages: 纯文本 prompt（自动转为单条 user 消息）或 messages 列表
            model_alias: 语义 alias 或运行时 group，None 时使用 "main"
            purpose: 调用用途（日志标注，离线模式据此选择样例内容）
            json_mode: 是否要求 JSON 输出

        Raises:
            ProviderError: primary 与 fallback 均失败
        """
        if isinstance(prompt_or_messages, str):
            messages = [{"role": "user", "content": prompt_or_messages}]
        else:
            messages = prompt_or_messages

        resolved_alias = self._alias_registry.resolve(model_alias or "main")

        return await self._fallback_manager.call_with_fallback(
            messages=messages,
            model_alias=resolved_alias,
            purpose=purpose,
            json_mode=json_mode,
        )
