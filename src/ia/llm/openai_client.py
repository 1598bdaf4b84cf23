"""
OpenAI LLM client implementation.

Wraps AsyncOpenAI chat completions with tool calling and JSON mode.
"""

from __future__ import annotations

import time
from typing import Any

import orjson
from openai import APIError, AsyncOpenAI, RateLimitError as OpenAIRateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ia.llm.base import (
    AuthenticationError,
    ContextLengthError,
    LLMError,
    LLMRequest,
    LLMResponse,
    ModelNotFoundError,
    RateLimitError,
    ToolCall,
)
from ia.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_MODELS = {
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4.1",
    "gpt-4.1-mini",
    "o3-mini",
    "o4-mini",
}


class OpenAIClient:
    """OpenAI LLM client using AsyncOpenAI."""

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key. If None, uses OPENAI_API_KEY env var.
        """
        self._client = AsyncOpenAI(api_key=api_key)
        self._provider = "openai"

    @property
    def provider(self) -> str:
        """Name of this provider."""
        return self._provider

    def supports_model(self, model: str) -> bool:
        """Check if this client supports the given model."""
        return model in SUPPORTED_MODELS or model.startswith(("gpt-", "o3", "o4"))

    @retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request.

        Args:
            request: The LLM request.

        Returns:
            LLM response.

        Raises:
            LLMError: If the request fails.
        """
        params = self._build_params(request)
        return await self._create(request, params)

    @retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    async def complete_with_tools(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request with tool calling.

        Args:
            request: The LLM request with tools defined.

        Returns:
            LLM response, potentially with tool_calls.

        Raises:
            LLMError: If the request fails.
        """
        params = self._build_params(request)
        if request.tools:
            params["tools"] = request.tools
            if request.tool_choice:
                params["tool_choice"] = request.tool_choice
        return await self._create(request, params)

    def _build_params(self, request: LLMRequest) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": request.model,
            "messages": request.messages,
            "temperature": request.temperature,
        }
        if request.max_tokens:
            params["max_tokens"] = request.max_tokens
        if request.response_format:
            params["response_format"] = request.response_format
        return params

    async def _create(self, request: LLMRequest, params: dict[str, Any]) -> LLMResponse:
        start_time = time.monotonic()

        try:
            response = await self._client.chat.completions.create(**params)
        except OpenAIRateLimitError as e:
            retry_after = None
            if getattr(e, "response", None) is not None:
                retry_after_header = e.response.headers.get("retry-after")
                if retry_after_header:
                    retry_after = float(retry_after_header)

            logger.warning(
                "OpenAI rate limit hit",
                model=request.model,
                retry_after=retry_after,
            )
            raise RateLimitError(str(e), retry_after=retry_after) from e
        except APIError as e:
            raise self._map_api_error(e, request.model) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        choice = response.choices[0]

        tool_calls: list[ToolCall] | None = None
        if choice.message.tool_calls:
            tool_calls = []
            for tc in choice.message.tool_calls:
                try:
                    arguments = orjson.loads(tc.function.arguments)
                except orjson.JSONDecodeError:
                    arguments = {"raw": tc.function.arguments}
                tool_calls.append(ToolCall(id=tc.id, name=tc.function.name, arguments=arguments))

        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            provider=self._provider,
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason or "stop",
            latency_ms=latency_ms,
        )

    @staticmethod
    def _map_api_error(error: APIError, model: str) -> LLMError:
        error_msg = str(error)
        lowered = error_msg.lower()

        if "authentication" in lowered or "api key" in lowered:
            return AuthenticationError(f"OpenAI authentication failed: {error_msg}")
        if "model" in lowered and "not found" in lowered:
            return ModelNotFoundError(f"Model not found: {model}")
        if "context_length" in lowered or "maximum context" in lowered:
            return ContextLengthError(f"Context length exceeded: {error_msg}")
        return LLMError(f"OpenAI API error: {error_msg}")

    async def close(self) -> None:
        """Close the client."""
        await self._client.close()
