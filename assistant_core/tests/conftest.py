"""Shared fakes for the router tests: scripted provider clients and a recording sleep."""

from __future__ import annotations

from typing import Dict, List, Sequence, Union

import pytest

from assistant_core.domain.models import GenerationConfig, ModelBackend
from assistant_core.providers.fallback import FallbackExecutor, RetryPolicy

Outcome = Union[str, BaseException]


class ScriptedClient:
    """Returns (or raises) the next scripted outcome for its backend."""

    def __init__(self, name: str, outcomes: List[Outcome], owner: "ScriptedBackends"):
        self.name = name
        self._outcomes = outcomes
        self._owner = owner

    async def generate(self, prompt: str, generation: GenerationConfig) -> str:
        self._owner.calls.append(self.name)
        self._owner.prompts.append(prompt)
        self._owner.generations.append(generation)
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class ScriptedBackends:
    """client_factory stand-in. Each backend identifier maps to a list of outcomes;
    the last outcome repeats forever."""

    def __init__(self, script: Dict[str, Sequence[Outcome]]):
        self._script = {name: list(outcomes) for name, outcomes in script.items()}
        self.calls: List[str] = []
        self.prompts: List[str] = []
        self.generations: List[GenerationConfig] = []

    def __call__(self, backend: ModelBackend) -> ScriptedClient:
        return ScriptedClient(backend.identifier, self._script[backend.identifier], self)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_backends(*names: str) -> List[ModelBackend]:
    return [
        ModelBackend(identifier=name, provider="fake", provider_model=name, priority=i)
        for i, name in enumerate(names)
    ]


def make_executor(script: Dict[str, Sequence[Outcome]], backoff: float = 1.0):
    """Executor over fake backends named after the script keys, in order."""

    backends = ScriptedBackends(script)
    sleep = RecordingSleep()
    policy = RetryPolicy.from_backends(make_backends(*script.keys()), backoff_seconds=backoff)
    return FallbackExecutor(policy, backends, sleep=sleep), backends, sleep


@pytest.fixture
def sample_history():
    from assistant_core.domain.models import ConversationTurn

    return [
        ConversationTurn(role="user", content="Hello!"),
        ConversationTurn(role="assistant", content="Namaste! How can I help your shop today?"),
    ]
