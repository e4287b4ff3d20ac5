"""按优先级依次尝试生成后端的降级执行器。

策略由 RetryPolicy 描述：
- backends: 按 priority 升序尝试的后端列表（启动时确定，只读）。
- should_backoff(error): 判断错误是否属于限流/配额耗尽。
- backoff_seconds: 命中限流后切换下一个后端前的等待时间。

第一个成功的后端即返回，不再尝试其他后端；其他错误立即切换到下一个后端。
全部失败时抛出唯一的 BackendsExhaustedError，携带最后一个后端的错误。
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

from assistant_core.domain.exceptions import BackendsExhaustedError, RateLimitError
from assistant_core.domain.models import ModelBackend
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.providers.base import ClientFactory

PromptBuilder = Callable[[Any], str]
Sleep = Callable[[float], Awaitable[Any]]

RATE_LIMIT_MARKERS = ("RATE_LIMIT_EXCEEDED", "RESOURCE_EXHAUSTED", "quota")
# 429 只作为独立的状态码匹配，避免命中请求 ID 等数字
_STATUS_429 = re.compile(r"\b429\b")


def is_rate_limited(error: BaseException) -> bool:
    """识别限流/配额耗尽：RateLimitError，或错误文本中带有限流标记。"""

    if isinstance(error, RateLimitError):
        return True
    text = f"{getattr(error, 'code', '')} {error}"
    lowered = text.lower()
    if _STATUS_429.search(text):
        return True
    return any(marker.lower() in lowered for marker in RATE_LIMIT_MARKERS)


@dataclass(frozen=True)
class RetryPolicy:
    backends: Tuple[ModelBackend, ...]
    should_backoff: Callable[[BaseException], bool] = field(default=is_rate_limited)
    backoff_seconds: float = 1.0

    @classmethod
    def from_backends(
        cls,
        backends: Sequence[ModelBackend],
        backoff_seconds: float = 1.0,
        should_backoff: Callable[[BaseException], bool] = is_rate_limited,
    ) -> "RetryPolicy":
        ordered = tuple(sorted(backends, key=lambda b: b.priority))
        return cls(backends=ordered, should_backoff=should_backoff, backoff_seconds=backoff_seconds)


class FallbackExecutor:
    """Provider 的唯一调用入口。客户端由 client_factory 按后端构造。"""

    def __init__(
        self,
        policy: RetryPolicy,
        client_factory: ClientFactory,
        sleep: Optional[Sleep] = None,
    ):
        self._policy = policy
        self._client_factory = client_factory
        self._sleep = sleep or asyncio.sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(self, build_prompt: PromptBuilder, context: Any = None) -> str:
        """构造提示词并依次尝试后端，返回第一个成功后端的文本。

        Raises:
            BackendsExhaustedError: 所有后端都失败（或未配置后端）。
        """

        prompt = build_prompt(context)
        last_backend: Optional[str] = None
        last_error: Optional[BaseException] = None
        backends = self._policy.backends
        for index, backend in enumerate(backends):
            try:
                client = self._client_factory(backend)
                text = await client.generate(prompt, backend.generation)
            except Exception as exc:
                last_backend, last_error = backend.identifier, exc
                rate_limited = self._policy.should_backoff(exc)
                self._log(
                    logging.WARNING,
                    "backend.failed",
                    backend=backend.identifier,
                    rate_limited=rate_limited,
                    error=str(exc)[:200],
                )
                # 最后一个后端之后没有可切换的后端，不再等待
                if rate_limited and index < len(backends) - 1:
                    self._log(logging.INFO, "backend.backoff", backend=backend.identifier,
                              seconds=self._policy.backoff_seconds)
                    await self._sleep(self._policy.backoff_seconds)
                continue
            self._log(logging.INFO, "backend.succeeded", backend=backend.identifier)
            return text

        self._log(logging.ERROR, "backend.exhausted", last_backend=last_backend,
                  attempts=len(backends))
        raise BackendsExhaustedError(last_backend, last_error)

    @staticmethod
    def _log(level: int, message: str, **fields: Any) -> None:
        logger.log(level, message, extra={"extra": fields})
