"""
Google Gemini LLM client implementation.

Uses the google-genai SDK against the Google AI Studio API. Besides plain
and tool-calling completions it offers Google Search grounding, which the
market analysis stage uses for live lookups.
"""

from __future__ import annotations

import time
from typing import Any

import orjson
from google import genai
from google.genai import types
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
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gemini-2.0-flash",
    "gemini-2.0-flash-lite",
}


class GeminiClient:
    """Google Gemini LLM client using google-genai SDK."""

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Google AI Studio API key. If None, uses GEMINI_API_KEY env var.
        """
        self._client = genai.Client(api_key=api_key)
        self._provider = "gemini"

    @property
    def provider(self) -> str:
        """Name of this provider."""
        return self._provider

    def supports_model(self, model: str) -> bool:
        """Check if this client supports the given model."""
        return model in SUPPORTED_MODELS or model.startswith("gemini-")

    def _convert_messages(
        self, messages: list[dict[str, Any]]
    ) -> tuple[str | None, list[types.Content]]:
        """Convert OpenAI-style messages to Gemini contents.

        Returns:
            Tuple of (system_instruction, contents).
        """
        system_instruction: str | None = None
        contents: list[types.Content] = []

        for msg in messages:
            role = msg.get("role", "user")
            content = msg.get("content") or ""

            if role == "system":
                system_instruction = (
                    f"{system_instruction}\n\n{content}" if system_instruction else content
                )
            elif role == "assistant":
                parts = [types.Part.from_text(text=content)] if content else []
                for call in msg.get("tool_calls") or []:
                    args = call["function"].get("arguments") or "{}"
                    parts.append(
                        types.Part.from_function_call(
                            name=call["function"]["name"],
                            args=orjson.loads(args) if isinstance(args, str) else dict(args),
                        )
                    )
                contents.append(types.Content(role="model", parts=parts))
            elif role == "tool":
                contents.append(
                    types.Content(
                        role="user",
                        parts=[
                            types.Part.from_function_response(
                                name=msg.get("name", "function"),
                                response={"result": content},
                            )
                        ],
                    )
                )
            else:
                contents.append(
                    types.Content(role="user", parts=[types.Part.from_text(text=content)])
                )

        return system_instruction, contents

    def _convert_tools(self, tools: list[dict[str, Any]]) -> list[types.Tool]:
        """Convert OpenAI-style function tools to a Gemini tool."""
        declarations = []
        for tool in tools:
            if tool.get("type") != "function":
                continue
            func = tool.get("function", {})
            declarations.append(
                types.FunctionDeclaration(
                    name=func.get("name", ""),
                    description=func.get("description", ""),
                    parameters=func.get("parameters", {}),
                )
            )
        return [types.Tool(function_declarations=declarations)]

    def _base_config(self, request: LLMRequest, system_instruction: str | None) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig(
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
        )
        if system_instruction:
            config.system_instruction = system_instruction
        return config

    @retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request.

        Raises:
            LLMError: If the request fails.
        """
        system_instruction, contents = self._convert_messages(request.messages)
        config = self._base_config(request, system_instruction)
        if request.response_format and request.response_format.get("type") == "json_object":
            config.response_mime_type = "application/json"
        return await self._generate(request, contents, config)

    @retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    async def complete_with_tools(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request with function declarations.

        Raises:
            LLMError: If the request fails.
        """
        if not request.tools:
            return await self.complete(request)

        system_instruction, contents = self._convert_messages(request.messages)
        config = self._base_config(request, system_instruction)
        config.tools = self._convert_tools(request.tools)

        if request.tool_choice == "none":
            mode = types.FunctionCallingConfig(mode="NONE")
        elif request.tool_choice in (None, "auto"):
            mode = types.FunctionCallingConfig(mode="AUTO")
        else:
            mode = types.FunctionCallingConfig(
                mode="ANY", allowed_function_names=[request.tool_choice]
            )
        config.tool_config = types.ToolConfig(function_calling_config=mode)

        return await self._generate(request, contents, config)

    @retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    async def complete_with_grounding(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request grounded with Google Search.

        JSON mode is not combined with search grounding; callers parse the
        text themselves.

        Returns:
            LLM response; metadata carries grounding_chunks and
            web_search_queries when the model searched.
        """
        system_instruction, contents = self._convert_messages(request.messages)
        config = self._base_config(request, system_instruction)
        config.tools = [types.Tool(google_search=types.GoogleSearch())]
        return await self._generate(request, contents, config)

    async def _generate(
        self,
        request: LLMRequest,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
    ) -> LLMResponse:
        start_time = time.monotonic()

        try:
            response = await self._client.aio.models.generate_content(
                model=request.model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            raise self._map_error(e, request.model) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)

        content = ""
        tool_calls: list[ToolCall] = []
        finish_reason = "stop"
        metadata: dict[str, Any] = {}

        if response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                for part in candidate.content.parts:
                    if part.text:
                        content += part.text
                    elif part.function_call:
                        fc = part.function_call
                        tool_calls.append(
                            ToolCall(
                                id=f"call_{fc.name}_{len(tool_calls)}",
                                name=fc.name,
                                arguments=dict(fc.args) if fc.args else {},
                            )
                        )
            if candidate.finish_reason:
                finish_reason = str(candidate.finish_reason).lower()
            metadata = self._grounding_metadata(candidate)

        input_tokens = 0
        output_tokens = 0
        if response.usage_metadata:
            input_tokens = response.usage_metadata.prompt_token_count or 0
            output_tokens = response.usage_metadata.candidates_token_count or 0

        return LLMResponse(
            content=content,
            model=request.model,
            provider=self._provider,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            tool_calls=tool_calls or None,
            finish_reason=finish_reason,
            latency_ms=latency_ms,
            metadata=metadata,
        )

    @staticmethod
    def _grounding_metadata(candidate: Any) -> dict[str, Any]:
        gm = getattr(candidate, "grounding_metadata", None)
        if not gm:
            return {}

        metadata: dict[str, Any] = {}
        chunks = []
        for chunk in gm.grounding_chunks or []:
            web = getattr(chunk, "web", None)
            if not web:
                continue
            url = getattr(web, "uri", None) or ""
            title = getattr(web, "title", None) or ""
            if url or title:
                chunks.append({"title": title, "url": url})
        if chunks:
            metadata["grounding_chunks"] = chunks
        if gm.web_search_queries:
            metadata["web_search_queries"] = list(gm.web_search_queries)
        return metadata

    @staticmethod
    def _map_error(error: Exception, model: str) -> LLMError:
        error_msg = str(error)
        lowered = error_msg.lower()

        if "429" in error_msg or "rate" in lowered or "resource_exhausted" in lowered:
            logger.warning("Gemini rate limit hit", model=model)
            return RateLimitError(f"Gemini rate limit: {error_msg}")
        if "401" in error_msg or "403" in error_msg or "api key" in lowered:
            return AuthenticationError(f"Gemini authentication failed: {error_msg}")
        if "not found" in lowered or "invalid model" in lowered:
            return ModelNotFoundError(f"Model not found: {model}")
        if "too long" in lowered or "context" in lowered:
            return ContextLengthError(f"Context length exceeded: {error_msg}")
        return LLMError(f"Gemini API error: {error_msg}")

    async def close(self) -> None:
        """Close the client.

        Note: google-genai client doesn't require explicit close.
        """
        pass
