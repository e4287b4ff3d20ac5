"""统一的对话、意图与响应数据模型。

本模块定义了路由器内部在分类器、执行器、工具与 Dispatcher 之间共享的标准数据结构：

- ConversationTurn: 一条历史对话（只读输入，由外部持久层提供）。
- IntentResult: 意图分类结果（intent + confidence + 可选 suggestion）。
- GenerationConfig / ModelBackend: 生成后端及其固定生成参数。
- ResponseEnvelope: 所有代码路径唯一的输出契约。

所有 Provider 适配器和工具都只依赖这些模型，不直接暴露厂商 JSON。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional


# 历史消息角色（只区分用户与助手）
Role = Literal["user", "assistant"]


class Intent(str, Enum):
    """用户消息的分类意图。"""

    CONVERSATION = "conversation"
    CONTENT_GENERATION = "content_generation"
    PRICING = "pricing"
    MARKETING = "marketing"
    IMAGE_ANALYSIS = "image_analysis"
    VOICE_PROCESSING = "voice_processing"

    @classmethod
    def parse(cls, value: Any) -> Optional["Intent"]:
        """宽松解析：大小写/空白不敏感，未知值返回 None。"""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        for member in cls:
            if member.value == key:
                return member
        return None


# 可以交给专用工具处理的意图
TOOL_INTENTS = frozenset({Intent.CONTENT_GENERATION, Intent.PRICING, Intent.MARKETING})
# 只返回能力说明、不发起生成调用的意图
CAPABILITY_INTENTS = frozenset({Intent.IMAGE_ANALYSIS, Intent.VOICE_PROCESSING})


@dataclass(frozen=True)
class ConversationTurn:
    """一条历史对话消息。"""

    role: Role
    content: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversationTurn":
        # 非 user 角色一律视为 assistant
        role: Role = "user" if data.get("role") == "user" else "assistant"
        return cls(role=role, content=str(data.get("content") or ""))


def clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class IntentResult:
    """意图分类结果。confidence 始终位于 [0, 1]。"""

    intent: Intent = Intent.CONVERSATION
    confidence: float = 0.5
    suggestion: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))


DEFAULT_INTENT = IntentResult(intent=Intent.CONVERSATION, confidence=0.5)


@dataclass(frozen=True)
class GenerationConfig:
    """后端固定的生成参数。"""

    temperature: float = 0.7
    top_k: int = 32
    top_p: float = 0.9
    max_output_tokens: int = 4096


@dataclass(frozen=True)
class ModelBackend:
    """优先级列表中的一个生成后端。

    - identifier: 逻辑标识（日志与配置中使用），如 "gemini-2.5-flash"。
    - provider: 厂商名，决定由哪个 Client 适配（gemini / kimi / glm）。
    - provider_model: 厂商实际的模型 ID。
    - priority: 越小越先尝试。
    """

    identifier: str
    provider: str
    provider_model: str
    priority: int = 0
    generation: GenerationConfig = field(default_factory=GenerationConfig)


@dataclass
class ResponseEnvelope:
    """所有请求的统一输出。

    处理器只负责 success/content/error/type/tool，
    intent/confidence/suggestion 由 Dispatcher 最终盖章。
    """

    success: bool
    content: Optional[str] = None
    error: Optional[str] = None
    type: Optional[str] = None
    tool: Optional[str] = None
    intent: Intent = Intent.CONVERSATION
    confidence: float = DEFAULT_INTENT.confidence
    suggestion: Optional[str] = None

    def stamp(self, result: IntentResult) -> "ResponseEnvelope":
        self.intent = result.intent
        self.confidence = result.confidence
        self.suggestion = result.suggestion
        return self

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "intent": self.intent.value,
            "confidence": self.confidence,
        }
        for key in ("content", "error", "type", "tool", "suggestion"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload
