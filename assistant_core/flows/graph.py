"""LangGraph construction and node implementations for request dispatch."""

from __future__ import annotations

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from assistant_core.agents.conversation_agent import ConversationAgent
from assistant_core.domain.models import (
    CAPABILITY_INTENTS,
    DEFAULT_INTENT,
    TOOL_INTENTS,
    Intent,
    IntentResult,
    ResponseEnvelope,
)
from assistant_core.flows.state import DispatchState
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.intent.classifier import IntentClassifier
from assistant_core.tools.executor import ToolRegistry

CAPABILITY_REPLIES = {
    Intent.IMAGE_ANALYSIS: (
        "I'd be happy to help analyze images! Please upload an image using the image button, "
        "and I'll provide detailed analysis for your product listing."
    ),
    Intent.VOICE_PROCESSING: (
        "I can process voice messages in multiple languages! Use the microphone button to record "
        "your message, and I'll transcribe and respond to it."
    ),
}


def choose_route(result: IntentResult, tools: ToolRegistry, threshold: float) -> str:
    """Routing policy: tool, capability or conversation."""

    if result.intent in TOOL_INTENTS and result.confidence > threshold and result.intent in tools:
        return "tool"
    if result.intent in CAPABILITY_INTENTS:
        return "capability"
    return "conversation"


def build_graph(
    classifier: IntentClassifier,
    conversation: ConversationAgent,
    tools: ToolRegistry,
    threshold: float = 0.7,
) -> CompiledStateGraph:
    async def classify_node(state: DispatchState) -> DispatchState:
        result = await classifier.classify(state["message"])
        return {"intent_result": result}

    def classify_router(state: DispatchState) -> str:
        route = choose_route(state["intent_result"], tools, threshold)
        logger.info(
            "dispatch.route",
            extra={"extra": {"route": route, "intent": state["intent_result"].intent.value}},
        )
        return route

    async def tool_node(state: DispatchState) -> DispatchState:
        intent = state["intent_result"].intent
        tool = tools.get(intent)
        try:
            result = await tool.execute(tool.build_request(state["message"]))
            usable = result.is_usable()
        except Exception as exc:
            logger.warning(
                "tool_node.raised",
                extra={"extra": {"tool": tool.name, "error": str(exc)[:200]}},
            )
            return {"tool_name": tool.name, "tool_failed": True}
        if not usable:
            logger.warning(
                "tool_node.unusable_result",
                extra={"extra": {"tool": tool.name, "success": result.success, "error": result.error}},
            )
            return {"tool_name": tool.name, "tool_failed": True}
        envelope = ResponseEnvelope(success=True, content=result.text(), type=intent.value, tool=tool.name)
        return {"tool_name": tool.name, "tool_failed": False, "envelope": envelope}

    def tool_router(state: DispatchState) -> str:
        return "fallback" if state.get("tool_failed") else "finalize"

    async def fallback_node(state: DispatchState) -> DispatchState:
        # 只使用原始用户消息，不带工具的中间输入
        intent = state["intent_result"].intent
        tool = tools.get(intent)
        instruction = getattr(tool, "fallback_instruction", None)
        envelope = await conversation.respond(state["message"], (), instruction)
        envelope.type = f"{intent.value}_fallback"
        logger.info("fallback_node.done", extra={"extra": {"tool": state.get("tool_name"), "success": envelope.success}})
        return {"envelope": envelope}

    async def capability_node(state: DispatchState) -> DispatchState:
        intent = state["intent_result"].intent
        return {"envelope": ResponseEnvelope(success=True, content=CAPABILITY_REPLIES[intent], type=intent.value)}

    async def conversation_node(state: DispatchState) -> DispatchState:
        envelope = await conversation.respond(state["message"], state.get("history") or ())
        return {"envelope": envelope}

    async def finalize_node(state: DispatchState) -> DispatchState:
        envelope = state.get("envelope")
        if envelope is None:
            envelope = ResponseEnvelope(success=False, error="No response was produced", type="internal")
        envelope.stamp(state.get("intent_result") or DEFAULT_INTENT)
        return {"envelope": envelope}

    graph = StateGraph(DispatchState)
    graph.add_node("classify", classify_node)
    graph.add_node("tool", tool_node)
    graph.add_node("fallback", fallback_node)
    graph.add_node("capability", capability_node)
    graph.add_node("conversation", conversation_node)
    graph.add_node("finalize", finalize_node)
    graph.set_entry_point("classify")
    graph.add_conditional_edges(
        "classify",
        classify_router,
        {"tool": "tool", "capability": "capability", "conversation": "conversation"},
    )
    graph.add_conditional_edges("tool", tool_router, {"fallback": "fallback", "finalize": "finalize"})
    graph.add_edge("fallback", "finalize")
    graph.add_edge("capability", "finalize")
    graph.add_edge("conversation", "finalize")
    graph.add_edge("finalize", END)
    return graph.compile()
