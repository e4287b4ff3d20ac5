"""面向手工艺人市场的三个内容生成工具。

- CulturalStoryTool: 文化故事 / 商品描述 / 营销文案 / 社交文案。
- PricingAnalyzerTool: 公平贸易定价分析（要求模型返回 JSON）。
- MarketingGeneratorTool: 按平台生成营销内容。

每个工具都持有自己的 FallbackExecutor（生成参数不同），
后端全部失败时返回 success=False，由 Dispatcher 回落到通用对话。
"""

import json
from typing import Any, List, Optional, Sequence

from assistant_core.domain.exceptions import BackendsExhaustedError
from assistant_core.domain.models import GenerationConfig, Intent
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.intent.parsing import ParseFailure, extract_json_object
from assistant_core.prompts import load_prompt, render_prompt
from assistant_core.providers.base import ClientFactory
from assistant_core.providers.fallback import FallbackExecutor, RetryPolicy, Sleep
from assistant_core.providers.registry import resolve_backends
from .definitions import ToolExecutor, ToolRequest, ToolResult

CREATIVE_GENERATION = GenerationConfig(temperature=0.8, top_k=40, top_p=0.95, max_output_tokens=8192)
ANALYTICAL_GENERATION = GenerationConfig(temperature=0.4, top_k=40, top_p=0.95, max_output_tokens=8192)

DEFAULT_CATEGORY = "artisan_craft"


def _as_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2)


def _failure(tool: str, error: str) -> ToolResult:
    logger.warning("tool.failed", extra={"extra": {"tool": tool, "error": error[:200]}})
    return ToolResult(success=False, error=error)


class CulturalStoryTool:
    name = "cultural_story_generator"
    intent = Intent.CONTENT_GENERATION
    fallback_instruction: Optional[str] = None

    PROMPTS = {
        "cultural_story": "cultural_story",
        "product_description": "product_description",
        "marketing_copy": "marketing_copy",
        "social_caption": "social_caption",
        "poster_content": "poster_content",
    }

    def __init__(self, executor: FallbackExecutor, locale: str = "en"):
        self._executor = executor
        self._locale = locale

    def build_request(self, message: str) -> ToolRequest:
        return ToolRequest(
            kind="cultural_story",
            payload={"input": {"productDescription": message, "prompt": message}},
        )

    async def execute(self, request: ToolRequest) -> ToolResult:
        template = self.PROMPTS.get(request.kind)
        if template is None:
            return _failure(self.name, f"Unsupported content type: {request.kind}")
        context = request.payload.get("context")

        def build(_: Any) -> str:
            return render_prompt(
                template,
                self._locale,
                product=_as_json(request.payload.get("input") or {}),
                context=_as_json(context) if context else "Infer from product details",
            )

        try:
            text = await self._executor.execute(build)
        except BackendsExhaustedError as exc:
            return _failure(self.name, exc.message)
        return ToolResult(success=True, content=text)


class PricingAnalyzerTool:
    name = "pricing_analyzer"
    intent = Intent.PRICING

    def __init__(self, executor: FallbackExecutor, locale: str = "en"):
        self._executor = executor
        self._locale = locale
        self.fallback_instruction: Optional[str] = load_prompt("pricing_fallback", locale)

    def build_request(self, message: str) -> ToolRequest:
        return ToolRequest(
            kind="pricing_analysis",
            payload={
                "productData": {"name": message, "description": message},
                "category": DEFAULT_CATEGORY,
            },
        )

    async def execute(self, request: ToolRequest) -> ToolResult:
        user_price = request.payload.get("userPrice")

        def build(_: Any) -> str:
            return render_prompt(
                "pricing_analysis",
                self._locale,
                product=_as_json(request.payload.get("productData") or {}),
                category=request.payload.get("category") or DEFAULT_CATEGORY,
                user_price=f"Artisan's Suggested Price: ${user_price}" if user_price else "",
            )

        try:
            text = await self._executor.execute(build)
        except BackendsExhaustedError as exc:
            return _failure(self.name, exc.message)
        parsed = extract_json_object(text)
        if isinstance(parsed, ParseFailure):
            return _failure(self.name, "Failed to parse pricing analysis")
        return ToolResult(success=True, result=parsed.value)


class MarketingGeneratorTool:
    name = "marketing_generator"
    intent = Intent.MARKETING

    PLATFORM_PROMPTS = {
        "instagram": "marketing_instagram",
        "facebook": "marketing_facebook",
        "twitter": "marketing_twitter",
        "x": "marketing_twitter",
        "email": "marketing_email",
        "poster": "marketing_poster",
        "product-launch": "marketing_product_launch",
        "product_launch": "marketing_product_launch",
    }

    def __init__(self, executor: FallbackExecutor, locale: str = "en"):
        self._executor = executor
        self._locale = locale
        self.fallback_instruction: Optional[str] = load_prompt("marketing_fallback", locale)

    def build_request(self, message: str) -> ToolRequest:
        return ToolRequest(
            kind="social_media",
            payload={
                "productData": {
                    "name": message,
                    "description": message,
                    "category": DEFAULT_CATEGORY,
                    "prompt": message,
                },
            },
        )

    async def execute(self, request: ToolRequest) -> ToolResult:
        template = self.PLATFORM_PROMPTS.get(request.kind.lower(), "marketing_multi_platform")

        def build(_: Any) -> str:
            return render_prompt(template, self._locale, product=_as_json(request.payload.get("productData") or {}))

        try:
            text = await self._executor.execute(build)
        except BackendsExhaustedError as exc:
            return _failure(self.name, exc.message)
        return ToolResult(success=True, content=text)


def default_tools(
    client_factory: ClientFactory,
    backend_ids: Sequence[str],
    backoff_seconds: float = 1.0,
    sleep: Optional[Sleep] = None,
    locale: str = "en",
) -> List[ToolExecutor]:
    """用同一组后端、不同生成参数构造三个工具。"""

    def executor_for(generation: GenerationConfig) -> FallbackExecutor:
        policy = RetryPolicy.from_backends(resolve_backends(backend_ids, generation), backoff_seconds)
        return FallbackExecutor(policy, client_factory, sleep=sleep)

    creative = executor_for(CREATIVE_GENERATION)
    analytical = executor_for(ANALYTICAL_GENERATION)
    return [
        CulturalStoryTool(creative, locale),
        PricingAnalyzerTool(analytical, locale),
        MarketingGeneratorTool(creative, locale),
    ]
