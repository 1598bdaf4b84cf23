"""
LLM Router with per-stage model selection.

Each pipeline stage gets its own RoutedChatModel: a ChatModel bound to one
provider client and model, with a hard timeout on every call. Provider
clients are created lazily and shared across stages.
"""

from __future__ import annotations

import asyncio
from typing import Any

from ia.config import Settings
from ia.exceptions import ConfigurationError
from ia.llm.base import (
    CapabilityNotSupportedError,
    LLMClient,
    LLMRequest,
    LLMResponse,
)
from ia.llm.gemini_client import GeminiClient
from ia.llm.openai_client import OpenAIClient
from ia.logging import get_logger
from ia.types import StageName

logger = get_logger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


class RoutedChatModel:
    """ChatModel bound to one client/model pair.

    Every call is bounded by ``timeout_seconds``; a timeout surfaces as
    ``asyncio.TimeoutError`` like any other call failure.
    """

    def __init__(
        self,
        client: LLMClient,
        model: str,
        stage: StageName,
        temperature: float = 0.7,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.client = client
        self.model = model
        self.stage = stage
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds

    @property
    def provider(self) -> str:
        return self.client.provider

    @property
    def supports_grounding(self) -> bool:
        return hasattr(self.client, "complete_with_grounding")

    async def chat(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's text for a system/user prompt pair."""
        request = self._request(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ]
        )
        response = await self._call(self.client.complete(request))
        return response.content

    async def chat_with_tools(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> LLMResponse:
        """Run one tool-calling turn over an existing message list."""
        request = self._request(messages, tools=tools, tool_choice="auto")
        return await self._call(self.client.complete_with_tools(request))

    async def grounded_chat(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        """Answer with Google Search grounding.

        Raises:
            CapabilityNotSupportedError: If the provider cannot ground.
        """
        if not self.supports_grounding:
            raise CapabilityNotSupportedError(
                f"Provider {self.provider} does not support search grounding"
            )
        request = self._request(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ]
        )
        return await self._call(self.client.complete_with_grounding(request))

    def _request(self, messages: list[dict[str, Any]], **kwargs: Any) -> LLMRequest:
        return LLMRequest(
            messages=messages,
            model=self.model,
            temperature=self.temperature,
            **kwargs,
        )

    async def _call(self, awaitable: Any) -> LLMResponse:
        response: LLMResponse = await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        logger.info(
            "LLM call completed",
            stage=self.stage.value,
            provider=response.provider,
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            latency_ms=response.latency_ms,
        )
        return response


class LLMRouter:
    """Routes each stage to a configured provider and model.

    A stage's model name implies its provider. When that provider has no
    API key the stage is served by the other configured provider's default
    model.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize the router.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._openai_client: OpenAIClient | None = None
        self._gemini_client: GeminiClient | None = None

    def stage_model(self, stage: StageName) -> str:
        """Configured model name for a stage."""
        s = self._settings
        return {
            StageName.SUMMARY: s.MODEL_SUMMARY,
            StageName.TARGET_USER: s.MODEL_TARGET_USER,
            StageName.MARKET_ANALYSIS: s.MODEL_MARKET_ANALYSIS,
            StageName.STRATEGY: s.MODEL_STRATEGY,
            StageName.SCORING: s.MODEL_SCORING,
        }[stage]

    def _infer_provider(self, model: str) -> str:
        if model.startswith("gemini-"):
            return "gemini"
        if model.startswith(("gpt-", "o3", "o4")):
            return "openai"
        return self._settings.default_provider

    def resolve(self, stage: StageName) -> tuple[str, str]:
        """Pick (provider, model) for a stage.

        Raises:
            ConfigurationError: If no provider is configured.
        """
        available = self._settings.available_providers
        if not available:
            raise ConfigurationError(
                "No LLM provider configured",
                context={"stage": stage.value},
            )

        model = self.stage_model(stage)
        provider = self._infer_provider(model)
        if provider in available:
            return provider, model

        if "openai" in available:
            return "openai", self._settings.OPENAI_FALLBACK_MODEL
        return "gemini", DEFAULT_GEMINI_MODEL

    def _get_client(self, provider: str) -> LLMClient:
        if provider == "openai":
            if self._openai_client is None:
                self._openai_client = OpenAIClient(api_key=self._settings.openai_api_key)
            return self._openai_client
        if provider == "gemini":
            if self._gemini_client is None:
                self._gemini_client = GeminiClient(api_key=self._settings.gemini_api_key)
            return self._gemini_client
        raise ConfigurationError(f"Unknown provider: {provider}")

    def chat_model(self, stage: StageName) -> RoutedChatModel:
        """Build the chat model a stage agent talks to."""
        provider, model = self.resolve(stage)
        return RoutedChatModel(
            client=self._get_client(provider),
            model=model,
            stage=stage,
            temperature=self._settings.LLM_TEMPERATURE,
            timeout_seconds=self._settings.LLM_TIMEOUT_SECONDS,
        )

    async def close(self) -> None:
        """Close any provider clients that were created."""
        for client in (self._openai_client, self._gemini_client):
            if client is not None:
                await client.close()
        self._openai_client = None
        self._gemini_client = None
