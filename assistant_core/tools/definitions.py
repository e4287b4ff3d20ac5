"""工具数据结构与统一契约。

所有专用内容生成工具都通过同一个契约接入 Dispatcher：
- build_request(message) 把用户消息转换成工具自己的 ToolRequest。
- execute(request) 返回 ToolResult(success, content|result, error)。

Dispatcher 对所有工具一视同仁地应用“失败即回落到通用对话”的规则。
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from assistant_core.domain.models import Intent


@dataclass
class ToolRequest:
    """一次工具调用的输入。kind 区分同一工具内的子类型（如 cultural_story）。"""

    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """工具执行结果。content 为文本结果，result 为结构化结果（二选一）。"""

    success: bool
    content: Optional[str] = None
    result: Any = None
    error: Optional[str] = None

    def text(self) -> str:
        """统一转换为文本：优先 content，其次把结构化 result 序列化。"""

        if self.content is not None:
            return self.content
        if self.result is None:
            return ""
        if isinstance(self.result, str):
            return self.result
        return json.dumps(self.result, ensure_ascii=False, indent=2)

    def is_usable(self) -> bool:
        """success=True 且确实带回了非空内容。"""

        return self.success and bool(self.text().strip())


class ToolExecutor(Protocol):
    name: str
    intent: Intent
    # 工具失败回落到通用对话时使用的 system instruction，None 表示默认
    fallback_instruction: Optional[str]

    def build_request(self, message: str) -> ToolRequest:
        ...

    async def execute(self, request: ToolRequest) -> ToolResult:
        ...
