"""LiteLLMClient -- LiteLLM Proxy 调用封装

通过 litellm.acompletion() 调用 Proxy。
连接类错误包装为 ProxyUnreachableError，其余包装为 ProviderError。
"""

import time
from typing import Any

import httpx
import structlog
from litellm import acompletion

from .exceptions import ProviderError, ProxyUnreachableError
from .models import ModelCallResult, TokenUsage

log = structlog.get_logger()

# 健康检查超时（应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

# 连接类异常（触发 ProxyUnreachableError，进而触发 FallbackManager 降级）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
)


def _is_connection_error(e: Exception) -> bool:
    """判断异常是否为连接类错误（Proxy 不可达）"""
    if isinstance(e, _CONNECTION_ERROR_TYPES):
        return True
    # LiteLLM 的 APIConnectionError / APITimeoutError 也属于连接类错误
    return type(e).__name__ in ("APIConnectionError", "APITimeoutError")


def _parse_usage(response: Any) -> TokenUsage:
    usage = getattr(response, "usage", None)
    if usage is None:
        return TokenUsage()
    prompt = getattr(usage, "prompt_tokens", 0) or 0
    completion = getattr(usage, "completion_tokens", 0) or 0
    total = getattr(usage, "total_tokens", 0) or prompt + completion
    return TokenUsage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=total,
    )


def _extract_model_info(response: Any) -> tuple[str, str]:
    """从响应中提取 (model_name, provider)

    LiteLLM 返回的 model 形如 "openai/gpt-4o-mini" 或 "gpt-4o-mini"。
    """
    model = getattr(response, "model", "") or ""
    if "/" in model:
        provider, _, name = model.partition("/")
        return name, provider
    hidden = getattr(response, "_hidden_params", None) or {}
    return model, hidden.get("custom_llm_provider", "") or ""


class LiteLLMClient:
    """LiteLLM Proxy 客户端"""

    def __init__(
        self,
        proxy_base_url: str = "http://localhost:4000",
        proxy_api_key: str = "",
        timeout_s: int = 30,
    ) -> None:
        """
        Args:
            proxy_base_url: Proxy 基础 URL
            proxy_api_key: Proxy 访问密钥（LITELLM_PROXY_KEY）
            timeout_s: 请求超时（秒）
        """
        self._proxy_base_url = proxy_base_url.rstrip("/")
        self._proxy_api_key = proxy_api_key
        self._timeout_s = timeout_s

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model_alias: str = "main",
        purpose: str = "",
        json_mode: bool = False,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs,
    ) -> ModelCallResult:
        """发送 chat completion 请求到 LiteLLM Proxy

        Args:
            messages: 消息列表，content 可为文本或多模态 parts 列表
            model_alias: 运行时 group 名称（由 AliasRegistry.resolve() 提供）
            purpose: 调用用途，仅用于日志与结果标注
            json_mode: 是否要求模型输出 JSON 对象
            temperature: 采样温度
            max_tokens: 最大生成 token 数，None 使用模型默认
            **kwargs: 其他 LiteLLM 支持的参数

        Raises:
            ProxyUnreachableError: Proxy 连接失败或超时
            ProviderError: Proxy 返回错误（如模型不可用、配额耗尽）
        """
        start_time = time.monotonic()

        try:
            call_kwargs = {
                "model": model_alias,
                "messages": messages,
                "api_base": self._proxy_base_url,
                "api_key": self._proxy_api_key or "no-key",
                "temperature": temperature,
                "timeout": self._timeout_s,
                **kwargs,
            }
            if max_tokens is not None:
                call_kwargs["max_tokens"] = max_tokens
            if json_mode:
                call_kwargs["response_format"] = {"type": "json_object"}

            log.debug(
                "litellm_call_start",
                model_alias=model_alias,
                purpose=purpose,
                message_count=len(messages),
            )

            response = await acompletion(**call_kwargs)

            duration_ms = int((time.monotonic() - start_time) * 1000)
            content = response.choices[0].message.content or ""
            model_name, provider = _extract_model_info(response)

            log.info(
                "litellm_call_completed",
                model_alias=model_alias,
                purpose=purpose,
                model_name=model_name,
                provider=provider,
                duration_ms=duration_ms,
            )

            return ModelCallResult(
                content=content,
                model_alias=model_alias,
                model_name=model_name,
                provider=provider,
                purpose=purpose,
                duration_ms=duration_ms,
                token_usage=_parse_usage(response),
            )

        except ProviderError:
            raise
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.error(
                "litellm_call_failed",
                model_alias=model_alias,
                purpose=purpose,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            if _is_connection_error(e):
                raise ProxyUnreachableError(
                    proxy_url=self._proxy_base_url,
                    original_error=e,
                ) from e
            raise ProviderError(
                message=f"LLM 调用失败: {e}",
                recoverable=True,
            ) from e

    async def health_check(self) -> bool:
        """检查 LiteLLM Proxy 可达性（GET /health/liveliness）

        不抛出异常，不可达或异常时返回 False。
        """
        url = f"{self._proxy_base_url}/health/liveliness"
        try:
            async with httpx.AsyncClient() as http_client:
                resp = await http_client.get(url, timeout=HEALTH_CHECK_TIMEOUT_S)
                return resp.status_code == 200
        except Exception as e:
            log.debug("health_check_failed", url=url, error=str(e))
            return False
