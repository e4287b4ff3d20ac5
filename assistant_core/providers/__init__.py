"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护后端与模型配置 (registry)。
- 提供各厂商的具体实现 (gemini_client、chat_completions_client)。
- 按优先级依次尝试后端的降级执行器 (fallback)。
"""

from assistant_core.config.settings import settings
from assistant_core.domain.models import ModelBackend
from assistant_core.providers.base import ClientFactory, ProviderClient
from assistant_core.providers.chat_completions_client import ChatCompletionsClient
from assistant_core.providers.gemini_client import GeminiClient


def create_provider(backend: ModelBackend, cfg=None) -> ProviderClient:
    """根据后端的 provider 字段创建客户端实例，默认读取全局配置。"""

    cfg = cfg or settings
    provider_name = backend.provider.lower()
    if provider_name == "gemini":
        return GeminiClient(cfg, model=backend.provider_model)
    if provider_name in ("kimi", "glm"):
        return ChatCompletionsClient(cfg, provider=provider_name, model=backend.provider_model)
    raise KeyError(f"Unknown provider: {backend.provider!r}")


def make_client_factory(cfg=None) -> ClientFactory:
    """返回绑定了配置的 client_factory，供 FallbackExecutor 注入。"""

    def _factory(backend: ModelBackend) -> ProviderClient:
        return create_provider(backend, cfg)

    return _factory
