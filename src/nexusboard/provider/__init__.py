"""NexusBoard Provider -- LLM 调用抽象层

公开接口导出。
"""

from .alias import AliasConfig, AliasRegistry
from .client import LiteLLMClient
from .config import ProviderConfig, load_provider_config
from .exceptions import ProviderError, ProxyUnreachableError, ResponseParseError
from .fallback import FallbackManager
from .models import ModelCallResult, TokenUsage
from .offline_adapter import OfflineMessageAdapter
from .parsing import extract_json_payload

__all__ = [
    "ModelCallResult",
    "TokenUsage",
    "LiteLLMClient",
    "AliasConfig",
    "AliasRegistry",
    "FallbackManager",
    "OfflineMessageAdapter",
    "ProviderConfig",
    "load_provider_config",
    "extract_json_payload",
    "ProviderError",
    "ProxyUnreachableError",
    "ResponseParseError",
]
