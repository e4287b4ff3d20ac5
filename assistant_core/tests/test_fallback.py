import asyncio

import pytest

from assistant_core.domain.exceptions import ApiError, BackendsExhaustedError, NetworkError, RateLimitError
from assistant_core.domain.models import ModelBackend
from assistant_core.providers.fallback import FallbackExecutor, RetryPolicy, is_rate_limited

from conftest import RecordingSleep, ScriptedBackends, make_executor


def _rate_limit():
    return RateLimitError(code="RATE_LIMIT", message="rate limited")


def _prompt(ctx):
    return f"prompt:{ctx}"


def test_first_success_wins_without_delay():
    executor, backends, sleep = make_executor({"a": ["from-a"], "b": ["from-b"]})
    assert asyncio.run(executor.execute(_prompt, "x")) == "from-a"
    assert backends.calls == ["a"]
    assert backends.prompts == ["prompt:x"]
    assert sleep.delays == []


@pytest.mark.parametrize("k", [1, 2, 3])
def test_k_rate_limited_backends_cause_k_backoffs(k):
    names = [f"b{i}" for i in range(k + 2)]
    script = {name: [_rate_limit()] for name in names[:k]}
    script[names[k]] = [f"from-{names[k]}"]
    script[names[k + 1]] = ["never"]
    executor, backends, sleep = make_executor(script)

    text = asyncio.run(executor.execute(_prompt))

    assert text == f"from-{names[k]}"
    assert sleep.delays == [1.0] * k
    assert backends.calls == names[: k + 1]


def test_other_errors_move_on_immediately():
    executor, backends, sleep = make_executor(
        {"a": [ApiError(code="API_ERROR", message="500", http_status=500)], "b": [NetworkError(code="NETWORK_ERROR", message="dns")], "c": ["ok"]}
    )
    assert asyncio.run(executor.execute(_prompt)) == "ok"
    assert backends.calls == ["a", "b", "c"]
    assert sleep.delays == []


def test_all_backends_fail_raises_one_aggregate_error():
    last = ApiError(code="API_ERROR", message="last one", http_status=500)
    executor, backends, sleep = make_executor({"a": [_rate_limit()], "b": [ValueError("bad")], "c": [last]})

    with pytest.raises(BackendsExhaustedError) as info:
        asyncio.run(executor.execute(_prompt))

    assert info.value.last_backend == "c"
    assert info.value.last_error is last
    assert info.value.last_error_code == "API_ERROR"
    assert backends.calls == ["a", "b", "c"]
    assert sleep.delays == [1.0]


def test_no_backoff_after_last_backend():
    executor, _, sleep = make_executor({"only": [_rate_limit()]})
    with pytest.raises(BackendsExhaustedError):
        asyncio.run(executor.execute(_prompt))
    assert sleep.delays == []


def test_client_factory_errors_count_as_backend_failures():
    def factory(backend):
        if backend.identifier == "broken":
            raise KeyError("Unknown provider")
        return ScriptedBackends({backend.identifier: ["fine"]})(backend)

    backends = [
        ModelBackend(identifier="broken", provider="x", provider_model="x", priority=0),
        ModelBackend(identifier="good", provider="y", provider_model="y", priority=1),
    ]
    executor = FallbackExecutor(RetryPolicy.from_backends(backends), factory, sleep=RecordingSleep())
    assert asyncio.run(executor.execute(_prompt)) == "fine"


def test_policy_orders_by_priority():
    backends = [
        ModelBackend(identifier="late", provider="f", provider_model="f", priority=5),
        ModelBackend(identifier="early", provider="f", provider_model="f", priority=1),
    ]
    policy = RetryPolicy.from_backends(backends)
    assert [b.identifier for b in policy.backends] == ["early", "late"]


def test_empty_policy_raises_exhausted():
    executor = FallbackExecutor(RetryPolicy(backends=()), ScriptedBackends({}), sleep=RecordingSleep())
    with pytest.raises(BackendsExhaustedError) as info:
        asyncio.run(executor.execute(_prompt))
    assert info.value.last_error is None
    assert info.value.last_error_code == "NO_BACKENDS"


def test_rate_limit_signatures():
    assert is_rate_limited(_rate_limit())
    assert is_rate_limited(RuntimeError("[429 Too Many Requests] RESOURCE_EXHAUSTED"))
    assert is_rate_limited(RuntimeError("RATE_LIMIT_EXCEEDED for model"))
    assert is_rate_limited(RuntimeError("You exceeded your current quota"))
    assert not is_rate_limited(ApiError(code="API_ERROR", message="internal", http_status=500))


def test_request_id_containing_429_is_not_a_rate_limit():
    error = ApiError(code="API_ERROR", message='{"error": "internal", "request id": "84291"}', http_status=500)
    assert not is_rate_limited(error)
    executor, backends, sleep = make_executor({"a": [error], "b": ["ok"]})
    assert asyncio.run(executor.execute(_prompt)) == "ok"
    assert sleep.delays == []
