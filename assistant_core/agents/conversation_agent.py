"""通用对话处理器。

没有专用工具可用（或工具失败）时的兜底路径：把 system instruction、
历史对话和新消息拼成一段扁平提示词，交给 FallbackExecutor 生成。

这里是后端全部失败（BackendsExhaustedError）被吸收的最后一层，
之后只会返回 success=False 的降级响应，不再向上抛出。
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from assistant_core.domain.exceptions import BackendsExhaustedError
from assistant_core.domain.models import ConversationTurn, ResponseEnvelope
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.prompts import load_system_prompt
from assistant_core.providers.fallback import FallbackExecutor

DEGRADED_MESSAGE = "AI is currently experiencing high demand. Please try again in a few minutes."
DIAGNOSTIC_LIMIT = 80


def degraded_error(diagnostic: str) -> str:
    """面向用户的降级文案，只附带一段截断后的诊断信息。"""

    diagnostic = " ".join((diagnostic or "").split())
    if len(diagnostic) > DIAGNOSTIC_LIMIT:
        diagnostic = diagnostic[: DIAGNOSTIC_LIMIT - 3] + "..."
    if not diagnostic:
        return DEGRADED_MESSAGE
    return f"{DEGRADED_MESSAGE} ({diagnostic})"


def _diagnostic_for(exc: BackendsExhaustedError) -> str:
    last = exc.last_error
    detail = getattr(last, "message", None) or (str(last) if last else "")
    return f"{exc.last_error_code}: {detail}" if detail else exc.last_error_code


@dataclass
class PromptContext:
    system_instruction: str
    history: List[ConversationTurn]
    message: str


def _role_label(role: str) -> str:
    return "User" if role == "user" else "Assistant"


def flatten_prompt(ctx: PromptContext) -> str:
    """system instruction + 逐行历史 + 新消息 + 结尾的 Assistant 提示。"""

    lines = [ctx.system_instruction, ""]
    for turn in ctx.history:
        lines.append(f"{_role_label(turn.role)}: {turn.content}")
    lines.append(f"User: {ctx.message}")
    lines.append("Assistant:")
    return "\n".join(lines)


class ConversationAgent:
    """与意图无关的通用对话处理器，返回的 envelope 由 Dispatcher 补充意图信息。"""

    def __init__(
        self,
        executor: FallbackExecutor,
        max_context_turns: int = 20,
        system_instruction: Optional[str] = None,
        locale: str = "en",
    ):
        self._executor = executor
        self._max_context_turns = max_context_turns
        self._system_instruction = system_instruction or load_system_prompt(locale)

    def build_context(
        self,
        message: str,
        history: Sequence[ConversationTurn],
        system_instruction: Optional[str] = None,
    ) -> PromptContext:
        turns = list(history)
        if len(turns) > self._max_context_turns:
            logger.info(
                "conversation.truncated_context",
                extra={"extra": {"max_context": self._max_context_turns, "trimmed": len(turns) - self._max_context_turns}},
            )
            turns = turns[-self._max_context_turns:]
        return PromptContext(
            system_instruction=system_instruction or self._system_instruction,
            history=turns,
            message=message,
        )

    async def respond(
        self,
        message: str,
        history: Sequence[ConversationTurn] = (),
        system_instruction: Optional[str] = None,
    ) -> ResponseEnvelope:
        ctx = self.build_context(message, history, system_instruction)
        try:
            text = await self._executor.execute(flatten_prompt, ctx)
        except BackendsExhaustedError as exc:
            log_ctx: Dict[str, Any] = {"last_backend": exc.last_backend, "code": exc.last_error_code}
            logger.error("conversation.degraded", extra={"extra": log_ctx})
            return ResponseEnvelope(success=False, error=degraded_error(_diagnostic_for(exc)), type="conversation")
        return ResponseEnvelope(success=True, content=text, type="conversation")
