"""Assistant Core 顶层包。

该包提供手工艺人市场助手的请求路由实现，
包括配置加载、领域模型、Provider 适配与多后端降级、
意图分类、专用内容生成工具、路由图以及对外 API。
"""

from assistant_core.api.service import handle_chat_request
from assistant_core.flows import Dispatcher, build_dispatcher

__all__ = ["Dispatcher", "build_dispatcher", "handle_chat_request"]
