"""
Base classes and interfaces for language model clients.

This module defines:
- LLMRequest / LLMResponse: provider-neutral request and response formats
- ToolCall: a tool invocation requested by the model
- LLMClient: protocol implemented by each provider client
- ChatModel: the narrow capability stage agents depend on
- ToolChatModel / GroundedChatModel: optional capabilities used by
  market analysis
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class ToolCall:
    """Represents a tool call from the LLM."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class LLMRequest:
    """Provider-neutral request.

    Messages use the OpenAI chat shape; providers convert as needed.
    """

    messages: list[dict[str, Any]]  # [{"role": "system"|"user"|"assistant"|"tool", "content": "..."}]
    model: str
    temperature: float = 0.7
    max_tokens: int | None = None
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | None = None
    response_format: dict[str, Any] | None = None


@dataclass
class LLMResponse:
    """Provider-neutral response."""

    content: str
    model: str
    provider: str
    input_tokens: int = 0
    output_tokens: int = 0
    tool_calls: list[ToolCall] | None = None
    finish_reason: str = "stop"
    latency_ms: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        """Total tokens used."""
        return self.input_tokens + self.output_tokens


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for provider clients."""

    @property
    def provider(self) -> str:
        """Name of this provider (e.g., 'openai', 'gemini')."""
        ...

    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request.

        Raises:
            LLMError: If the request fails.
        """
        ...

    async def complete_with_tools(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request with tool definitions.

        Raises:
            LLMError: If the request fails.
        """
        ...

    def supports_model(self, model: str) -> bool:
        """Check if this client serves the given model."""
        ...

    async def close(self) -> None:
        """Close any open connections."""
        ...


@runtime_checkable
class ChatModel(Protocol):
    """Language model capability consumed by stage agents.

    Given a system prompt and a user prompt, return the model's text. No
    other contract is assumed; callers must tolerate any text.
    """

    async def chat(self, system_prompt: str, user_prompt: str) -> str:
        ...


@runtime_checkable
class ToolChatModel(ChatModel, Protocol):
    """Chat model that can run one tool-calling turn."""

    async def chat_with_tools(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> LLMResponse:
        ...


@runtime_checkable
class GroundedChatModel(ChatModel, Protocol):
    """Chat model that can answer with live web search grounding."""

    async def grounded_chat(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        ...


class LLMError(Exception):
    """Base exception for LLM errors."""

    pass


class RateLimitError(LLMError):
    """Rate limit exceeded."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class AuthenticationError(LLMError):
    """Authentication failed."""

    pass


class ModelNotFoundError(LLMError):
    """Model not found or not accessible."""

    pass


class ContextLengthError(LLMError):
    """Context length exceeded."""

    pass


class CapabilityNotSupportedError(LLMError):
    """The routed provider does not offer the requested capability."""

    pass
