from typing import Dict, Iterable, Optional

from assistant_core.domain.models import Intent
from .definitions import ToolExecutor


class ToolRegistry:
    """意图 → 工具 的只读映射。增删工具不影响 Dispatcher 的回落逻辑。"""

    def __init__(self, tools: Iterable[ToolExecutor] = ()):
        self._tools: Dict[Intent, ToolExecutor] = {}
        for tool in tools:
            if tool.intent in self._tools:
                raise ValueError(f"Duplicate tool for intent {tool.intent.value!r}")
            self._tools[tool.intent] = tool

    def get(self, intent: Intent) -> Optional[ToolExecutor]:
        return self._tools.get(intent)

    def __contains__(self, intent: Intent) -> bool:
        return intent in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> Dict[str, str]:
        return {intent.value: tool.name for intent, tool in self._tools.items()}
