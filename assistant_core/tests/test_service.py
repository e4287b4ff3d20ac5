import asyncio

import pytest
from fastapi.testclient import TestClient

from assistant_core.agents.conversation_agent import DEGRADED_MESSAGE
from assistant_core.api import service as service_module
from assistant_core.api.app import app
from assistant_core.api.service import handle_chat_request
from assistant_core.domain.models import ConversationTurn, Intent, ResponseEnvelope


class FakeDispatcher:
    def __init__(self, envelope=None, delay=0.0, raises=None):
        self._envelope = envelope or ResponseEnvelope(success=True, content="hi there", type="conversation")
        self._delay = delay
        self._raises = raises
        self.calls = []

    async def dispatch(self, message, history=None):
        self.calls.append((message, list(history or [])))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._raises is not None:
            raise self._raises
        return self._envelope


@pytest.mark.parametrize(
    "payload",
    [{}, {"message": ""}, {"message": "   "}, {"message": None}, {"message": 42}, "not a dict", None],
)
def test_invalid_message_rejected_before_dispatch(payload):
    dispatcher = FakeDispatcher()
    status, body = asyncio.run(handle_chat_request(payload, dispatcher=dispatcher))
    assert status == 400
    assert body == {"success": False, "error": "Message is required"}
    assert dispatcher.calls == []


def test_valid_request_passes_history():
    dispatcher = FakeDispatcher()
    payload = {
        "message": "hello",
        "conversationHistory": [
            {"role": "user", "content": "earlier"},
            {"role": "system", "content": "coerced"},
        ],
    }
    status, body = asyncio.run(handle_chat_request(payload, dispatcher=dispatcher))
    assert status == 200
    assert body["success"] is True
    assert body["intent"] == "conversation"
    message, history = dispatcher.calls[0]
    assert message == "hello"
    assert history == [
        ConversationTurn(role="user", content="earlier"),
        ConversationTurn(role="assistant", content="coerced"),
    ]


@pytest.mark.parametrize(
    "history",
    [
        None,
        "not a list",
        [{"role": "user", "content": None}],
        [{"role": 7, "content": "seven"}],
        ["stray string"],
    ],
)
def test_malformed_history_never_rejects_a_valid_message(history):
    dispatcher = FakeDispatcher()
    status, body = asyncio.run(handle_chat_request({"message": "hello", "conversationHistory": history}, dispatcher=dispatcher))
    assert status == 200
    assert body["success"] is True
    assert len(dispatcher.calls) == 1
    message, turns = dispatcher.calls[0]
    assert message == "hello"
    assert all(turn.role in ("user", "assistant") and isinstance(turn.content, str) for turn in turns)


def test_history_turns_are_normalized():
    dispatcher = FakeDispatcher()
    payload = {"message": "hi", "conversationHistory": [{"role": "user", "content": None}, {"role": 7, "content": "seven"}]}
    asyncio.run(handle_chat_request(payload, dispatcher=dispatcher))
    assert dispatcher.calls[0][1] == [
        ConversationTurn(role="user", content=""),
        ConversationTurn(role="assistant", content="seven"),
    ]

def test_timeout_is_treated_as_exhaustion():
    status, body = asyncio.run(handle_chat_request({"message": "slow"}, dispatcher=FakeDispatcher(delay=1.0), timeout=0.01))
    assert status == 200
    assert body["success"] is False
    assert body["error"].startswith(DEGRADED_MESSAGE)
    assert body["intent"] == "conversation"


def test_unexpected_error_is_internal():
    status, body = asyncio.run(handle_chat_request({"message": "boom"}, dispatcher=FakeDispatcher(raises=RuntimeError("bug"))))
    assert status == 500
    assert body == {"success": False, "error": "Internal server error"}


def test_http_chat_endpoint(monkeypatch):
    envelope = ResponseEnvelope(success=True, content="story", type="content_generation", tool="cultural_story_generator")
    envelope.intent = Intent.CONTENT_GENERATION
    envelope.confidence = 0.9
    monkeypatch.setattr(service_module, "_dispatcher", FakeDispatcher(envelope))
    client = TestClient(app)

    ok = client.post("/api/chat", json={"message": "tell a story"})
    assert ok.status_code == 200
    assert ok.json() == {
        "success": True,
        "content": "story",
        "type": "content_generation",
        "tool": "cultural_story_generator",
        "intent": "content_generation",
        "confidence": 0.9,
    }

    bad = client.post("/api/chat", json={"message": ""})
    assert bad.status_code == 400

    malformed = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})
    assert malformed.status_code == 400


def test_health():
    assert TestClient(app).get("/health").json()["status"] == "ok"
