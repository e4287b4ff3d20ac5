"""Provider 抽象接口。

上层 FallbackExecutor 不直接依赖具体厂商的 HTTP API，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 GeminiClient）。
- 负责：把扁平化的提示词和固定生成参数转换成具体 API 请求，并返回生成文本。

这样可以在不改路由代码的前提下接入更多厂商，也方便在测试中替换为假后端。
"""

from typing import Callable, Protocol

from assistant_core.domain.models import GenerationConfig, ModelBackend


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - generate(prompt, generation): 执行一次非流式生成调用，返回纯文本。
    """

    name: str

    async def generate(self, prompt: str, generation: GenerationConfig) -> str:
        ...


# 根据后端构造客户端，由调用方注入
ClientFactory = Callable[[ModelBackend], ProviderClient]
