"""意图分类器。

发起一次生成调用，要求后端输出 {intent, confidence, suggestion?}，
再用 extract_json_object 防御式解析。任何失败都回落到
{conversation, 0.5}，classify 永远不会抛出异常。
"""

from typing import Any, Dict

from assistant_core.domain.models import DEFAULT_INTENT, Intent, IntentResult
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.intent.parsing import ParseFailure, extract_json_object
from assistant_core.prompts import render_prompt
from assistant_core.providers.fallback import FallbackExecutor


def interpret_payload(payload: Dict[str, Any]) -> IntentResult:
    """把解析出的 JSON 对象转换为 IntentResult，字段缺失或非法时返回默认值。"""

    intent = Intent.parse(payload.get("intent"))
    confidence = payload.get("confidence")
    if intent is None or isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return DEFAULT_INTENT
    if confidence != confidence:  # NaN
        return DEFAULT_INTENT
    suggestion = payload.get("suggestion")
    if not isinstance(suggestion, str) or not suggestion.strip():
        suggestion = None
    return IntentResult(intent=intent, confidence=float(confidence), suggestion=suggestion)


def parse_intent_output(text: str) -> IntentResult:
    parsed = extract_json_object(text)
    if isinstance(parsed, ParseFailure):
        logger.info("intent.parse_failed", extra={"extra": {"reason": parsed.reason}})
        return DEFAULT_INTENT
    return interpret_payload(parsed.value)


class IntentClassifier:
    def __init__(self, executor: FallbackExecutor, locale: str = "en"):
        self._executor = executor
        self._locale = locale

    def build_prompt(self, message: str) -> str:
        return render_prompt("intent_classifier", self._locale, message=message)

    async def classify(self, message: str) -> IntentResult:
        try:
            text = await self._executor.execute(self.build_prompt, message)
            result = parse_intent_output(text)
        except Exception as exc:
            logger.warning(
                "intent.classify_failed",
                extra={"extra": {"error": str(exc)[:200]}},
            )
            return DEFAULT_INTENT
        logger.info(
            "intent.classified",
            extra={"extra": {"intent": result.intent.value, "confidence": result.confidence}},
        )
        return result
