"""生成后端注册表。

本模块将“后端标识”与“具体厂商模型”解耦：

- identifier：配置与日志中使用的统一名称，例如 "gemini-2.5-flash"。
- provider / provider_model：由哪个 Client 适配、厂商实际的模型 ID。

优先级列表在进程启动时由配置中的标识顺序决定，运行期只读。
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Sequence

from assistant_core.domain.models import GenerationConfig, ModelBackend


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str


GEMINI_CONFIG = ProviderConfig(name="gemini", base_url="https://generativelanguage.googleapis.com/v1beta")
KIMI_CONFIG = ProviderConfig(name="kimi", base_url="https://api.moonshot.cn/v1")
GLM_CONFIG = ProviderConfig(name="glm", base_url="https://open.bigmodel.cn/api/paas/v4")

PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "gemini": GEMINI_CONFIG,
    "kimi": KIMI_CONFIG,
    "glm": GLM_CONFIG,
}

# 对话与意图分类共用的默认生成参数
DEFAULT_GENERATION = GenerationConfig(temperature=0.7, top_k=32, top_p=0.9, max_output_tokens=4096)


BACKEND_REGISTRY: Mapping[str, ModelBackend] = {
    # 免费额度友好，默认首选
    "gemini-2.5-flash": ModelBackend(
        identifier="gemini-2.5-flash",
        provider="gemini",
        provider_model="gemini-2.5-flash",
        generation=DEFAULT_GENERATION,
    ),
    "gemini-1.0-pro-latest": ModelBackend(
        identifier="gemini-1.0-pro-latest",
        provider="gemini",
        provider_model="gemini-1.0-pro-latest",
        generation=DEFAULT_GENERATION,
    ),
    "gemini-pro": ModelBackend(
        identifier="gemini-pro",
        provider="gemini",
        provider_model="gemini-pro",
        generation=DEFAULT_GENERATION,
    ),
    "kimi": ModelBackend(
        identifier="kimi",
        provider="kimi",
        provider_model="kimi-k2-turbo-preview",
        generation=DEFAULT_GENERATION,
    ),
    "glm": ModelBackend(
        identifier="glm",
        provider="glm",
        provider_model="glm-4.6",
        generation=DEFAULT_GENERATION,
    ),
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")


def resolve_backends(
    identifiers: Sequence[str],
    generation: Optional[GenerationConfig] = None,
) -> List[ModelBackend]:
    """把配置中的标识列表解析为按优先级排好序的 ModelBackend 列表。

    列表位置即优先级（0 最高）。传入 generation 时覆盖每个后端的生成参数，
    供需要不同温度的工具使用。重复标识只保留第一次出现。
    """

    backends: List[ModelBackend] = []
    seen: Dict[str, bool] = {}
    for name in identifiers:
        if name in seen:
            continue
        seen[name] = True
        try:
            base = BACKEND_REGISTRY[name]
        except KeyError:
            raise KeyError(f"Unknown model backend: {name!r}") from None
        backend = replace(base, priority=len(backends))
        if generation is not None:
            backend = replace(backend, generation=generation)
        backends.append(backend)
    return backends
