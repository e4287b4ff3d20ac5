"""High-level entry point: one dispatch graph run per inbound message."""

from __future__ import annotations

from typing import Optional, Sequence

from langgraph.graph.state import CompiledStateGraph

from assistant_core.agents.conversation_agent import ConversationAgent
from assistant_core.domain.models import ConversationTurn, ResponseEnvelope
from assistant_core.flows.graph import build_graph
from assistant_core.flows.state import DispatchState
from assistant_core.intent.classifier import IntentClassifier
from assistant_core.providers import make_client_factory
from assistant_core.providers.base import ClientFactory
from assistant_core.providers.fallback import FallbackExecutor, RetryPolicy, Sleep
from assistant_core.providers.registry import resolve_backends
from assistant_core.tools.executor import ToolRegistry
from assistant_core.tools.marketplace import default_tools


class Dispatcher:
    """Routes a message to a tool, a capability reply or the conversation agent.

    Holds no per-request state; concurrent ``dispatch`` calls are independent.
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        conversation: ConversationAgent,
        tools: Optional[ToolRegistry] = None,
        threshold: float = 0.7,
    ):
        self._tools = tools or ToolRegistry()
        self._graph: CompiledStateGraph = build_graph(classifier, conversation, self._tools, threshold)

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    async def dispatch(
        self,
        message: str,
        history: Optional[Sequence[ConversationTurn]] = None,
    ) -> ResponseEnvelope:
        """Run the dispatch graph and return the stamped envelope.

        Args:
            message: 用户输入（已通过校验，非空）
            history: 只读的历史对话
        """

        state: DispatchState = {
            "message": message,
            "history": list(history or []),
            "tool_name": None,
            "tool_failed": False,
            "envelope": None,
        }
        result = await self._graph.ainvoke(state)
        return result["envelope"]


def build_dispatcher(
    cfg,
    client_factory: Optional[ClientFactory] = None,
    sleep: Optional[Sleep] = None,
) -> Dispatcher:
    """Wire classifier, conversation agent and tools from settings.

    The backend priority list is resolved once here and shared read-only.
    """

    factory = client_factory or make_client_factory(cfg)
    backend_ids = list(cfg.model_backends)
    policy = RetryPolicy.from_backends(resolve_backends(backend_ids), cfg.rate_limit_backoff_seconds)
    executor = FallbackExecutor(policy, factory, sleep=sleep)
    tools = ToolRegistry(default_tools(factory, backend_ids, cfg.rate_limit_backoff_seconds, sleep=sleep))
    return Dispatcher(
        classifier=IntentClassifier(executor),
        conversation=ConversationAgent(executor, max_context_turns=cfg.max_context_turns),
        tools=tools,
        threshold=cfg.tool_confidence_threshold,
    )
