"""
LLM client package.

This package provides a unified interface for language model providers:
- OpenAI (chat completions with tool calling)
- Google (Gemini with Google Search grounding)
"""

from ia.llm.base import (
    ChatModel,
    GroundedChatModel,
    LLMClient,
    LLMError,
    LLMRequest,
    LLMResponse,
    RateLimitError,
    ToolCall,
    ToolChatModel,
)
from ia.llm.router import LLMRouter, RoutedChatModel

__all__ = [
    "ChatModel",
    "GroundedChatModel",
    "LLMClient",
    "LLMError",
    "LLMRequest",
    "LLMResponse",
    "LLMRouter",
    "RateLimitError",
    "RoutedChatModel",
    "ToolCall",
    "ToolChatModel",
]
