"""Gemini Provider 适配器。

本模块负责：

1. 接收扁平化提示词与固定生成参数。
2. 将其转换为 Gemini generateContent 的 HTTP 请求格式。
3. 调用 HTTP 接口并处理网络/限流/API 异常。
4. 从响应 JSON 中拼出候选文本。

- URL: {base_url}/models/{model}:generateContent
- 认证: x-goog-api-key: <api_key>
"""

from typing import Any, Dict

import httpx

from assistant_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from assistant_core.domain.models import GenerationConfig
from assistant_core.providers.registry import GEMINI_CONFIG


class GeminiClient:
    """Gemini 提供方客户端实现，每个实例绑定一个具体模型。"""

    name = "gemini"

    def __init__(self, settings, model: str):
        self._settings = settings
        self._model = model

    async def generate(self, prompt: str, generation: GenerationConfig) -> str:
        if not getattr(self._settings, "gemini_api_key", None):
            raise ValidationError(code="MISSING_API_KEY", message="GEMINI_API_KEY not set")
        payload = self._build_payload(prompt, generation)
        base = getattr(self._settings, "gemini_base_url", None) or GEMINI_CONFIG.base_url
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    f"{base}/models/{self._model}:generateContent",
                    json=payload,
                    headers={
                        "x-goog-api-key": self._settings.gemini_api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code == 429:
            # RESOURCE_EXHAUSTED：限流或配额耗尽，交给 FallbackExecutor 退避
            raise RateLimitError(code="RATE_LIMIT", message=f"Gemini rate limit ({self._model})")
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        return self._parse_response(resp.json())

    @staticmethod
    def _build_payload(prompt: str, generation: GenerationConfig) -> Dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": generation.temperature,
                "topK": generation.top_k,
                "topP": generation.top_p,
                "maxOutputTokens": generation.max_output_tokens,
            },
        }

    def _parse_response(self, data: Dict[str, Any]) -> str:
        """取第一个候选的全部文本片段。没有候选（如被安全策略拦截）视为失败。"""

        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason") or "no candidates"
            raise ApiError(code="EMPTY_RESPONSE", message=f"Gemini returned no candidates: {reason}")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text.strip():
            raise ApiError(code="EMPTY_RESPONSE", message="Gemini returned empty text")
        return text
