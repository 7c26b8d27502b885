"""Provider 异常体系

ProviderError: 调用失败基础异常（携带 recoverable 标记）
ProxyUnreachableError: LiteLLM Proxy 不可达，触发降级
ResponseParseError: 模型返回的文本无法解析为期望结构
"""


class ProviderError(Exception):
    """Provider 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试或降级恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class ProxyUnreachableError(ProviderError):
    """LiteLLM Proxy 不可达（连接失败、超时、DNS 解析失败等）

    此异常触发 FallbackManager 的降级逻辑。
    """

    def __init__(self, proxy_url: str, original_error: Exception) -> None:
        super().__init__(
            f"LiteLLM Proxy 不可达: {proxy_url} -- {original_error}",
            recoverable=True,
        )
        self.proxy_url = proxy_url
        self.original_error = original_error


class ResponseParseError(ProviderError):
    """模型响应无法解析或不符合期望结构

    模型输出视为不可信文本，解析失败不重试。
    """

    def __init__(self, purpose: str, detail: str = "") -> None:
        """
        Args:
            purpose: 调用用途（如 execution_plan）
            detail: 解析失败细节
        """
        message = f"响应解析失败 [{purpose}]"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, recoverable=False)
        self.purpose = purpose
