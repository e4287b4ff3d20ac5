"""对外 API 服务模块。

提供传输无关的请求处理函数供 HTTP 层调用：
- 校验入参（message 缺失/为空时直接拒绝，不发起任何生成调用）；
- 在调用方超时内运行 Dispatcher，超时按后端全部失败处理；
- 始终返回 (status_code, body)，不会向外抛出异常。
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, field_validator
from pydantic import ValidationError as RequestValidationError

from assistant_core.agents.conversation_agent import degraded_error
from assistant_core.config.settings import settings
from assistant_core.domain.models import ConversationTurn, ResponseEnvelope
from assistant_core.flows.dispatcher import Dispatcher, build_dispatcher
from assistant_core.infrastructure.logging.logger import logger


MESSAGE_REQUIRED = "Message is required"
INTERNAL_ERROR = "Internal server error"

_dispatcher: Optional[Dispatcher] = None


class TurnBody(BaseModel):
    """历史消息宽松接收，role/content 的取值由 ConversationTurn.from_dict 归一化。"""

    role: Any = None
    content: Any = None


class ChatRequestBody(BaseModel):
    message: str
    conversationHistory: Optional[List[TurnBody]] = None

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError(MESSAGE_REQUIRED)
        return v

    @field_validator("conversationHistory", mode="before")
    @classmethod
    def tolerate_history(cls, v: Any) -> List[Any]:
        # 历史不合法时丢弃，不影响本次请求
        if not isinstance(v, list):
            return []
        return [turn for turn in v if isinstance(turn, dict)]

    def history(self) -> List[ConversationTurn]:
        return [ConversationTurn.from_dict(turn.model_dump()) for turn in self.conversationHistory or []]


def get_default_dispatcher() -> Dispatcher:
    """获取默认 Dispatcher 实例（单例，构造后只读）。"""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher(settings)
    return _dispatcher


def _error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


async def handle_chat_request(
    payload: Any,
    dispatcher: Optional[Dispatcher] = None,
    timeout: Optional[float] = None,
) -> Tuple[int, Dict[str, Any]]:
    """处理一次聊天请求。

    Args:
        payload: 解析后的 JSON 请求体 {message, conversationHistory?}
        dispatcher: 可注入的 Dispatcher（测试用），默认取单例
        timeout: 整体超时秒数，默认取配置 request_timeout

    Returns:
        (HTTP 状态码, 响应体)。400 表示入参非法；200 时响应体为 ResponseEnvelope；
        只有无法构造 envelope 的内部错误才返回 500。
    """
    if not isinstance(payload, dict):
        return 400, _error_body(MESSAGE_REQUIRED)
    try:
        body = ChatRequestBody.model_validate(payload)
    except RequestValidationError:
        return 400, _error_body(MESSAGE_REQUIRED)

    limit = timeout if timeout is not None else settings.request_timeout
    try:
        active = dispatcher or get_default_dispatcher()
        envelope = await asyncio.wait_for(active.dispatch(body.message, body.history()), timeout=limit)
    except asyncio.TimeoutError:
        logger.error("chat.timeout", extra={"extra": {"timeout": limit}})
        envelope = ResponseEnvelope(success=False, error=degraded_error("REQUEST_TIMEOUT"))
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {"error": str(e)[:200]}}, exc_info=True)
        return 500, _error_body(INTERNAL_ERROR)
    return 200, envelope.to_dict()
