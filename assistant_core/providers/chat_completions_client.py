"""OpenAI 兼容的 chat/completions Provider 适配器（Kimi、GLM）。

两家接口风格一致：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

本实现只依赖公共字段：model/messages/temperature/max_tokens/top_p。
扁平化提示词作为单条 user 消息发送；top_k 不在公共字段中，忽略。
"""

from typing import Any, Dict

import httpx

from assistant_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from assistant_core.domain.models import GenerationConfig
from assistant_core.providers.registry import get_provider_config


class ChatCompletionsClient:
    """Kimi / GLM 客户端实现。name 决定读取哪一组 api_key / base_url 配置。"""

    def __init__(self, settings, provider: str, model: str):
        self._settings = settings
        self.name = provider
        self._model = model

    async def generate(self, prompt: str, generation: GenerationConfig) -> str:
        api_key = getattr(self._settings, f"{self.name}_api_key", None)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message=f"{self.name.upper()}_API_KEY not set")
        base = getattr(self._settings, f"{self.name}_base_url", None) or get_provider_config(self.name).base_url
        payload = self._build_payload(prompt, generation)
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    f"{base}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit")
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        return self._parse_response(resp.json())

    def _build_payload(self, prompt: str, generation: GenerationConfig) -> Dict[str, Any]:
        return {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": generation.temperature,
            "max_tokens": generation.max_output_tokens,
            "top_p": generation.top_p,
        }

    def _parse_response(self, data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            raise ApiError(code="EMPTY_RESPONSE", message=f"{self.name} returned no choices")
        message = choices[0].get("message") or {}
        content = message.get("content") or ""
        if not content.strip():
            raise ApiError(code="EMPTY_RESPONSE", message=f"{self.name} returned empty content")
        return content
