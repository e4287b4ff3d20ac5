"""State definition for the dispatch graph."""

from __future__ import annotations

from typing import List, Optional, TypedDict

from assistant_core.domain.models import ConversationTurn, IntentResult, ResponseEnvelope


class DispatchState(TypedDict, total=False):
    """State shared across dispatch graph nodes. One instance per request."""

    message: str
    history: List[ConversationTurn]
    intent_result: IntentResult
    tool_name: Optional[str]
    tool_failed: bool
    envelope: Optional[ResponseEnvelope]
