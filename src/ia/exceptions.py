"""
Custom exception hierarchy for the idea analysis system.

All exceptions inherit from IAError, which provides optional context
for structured error handling and logging.
"""

from __future__ import annotations

from typing import Any


class IAError(Exception):
    """Base exception for all idea analysis errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(IAError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Unknown LLM provider name
        - Provider selected without an API key
    """

    pass


class AgentError(IAError):
    """Raised when a stage agent cannot produce a result.

    Context should include:
        - agent_name: Name of the agent that failed
        - stage: The stage key of the agent
    """

    pass


class ResponseParseError(AgentError):
    """Raised when a model response contains no decodable JSON object.

    Context should include:
        - agent_name: Name of the agent that received the response
        - preview: First characters of the raw response
    """

    pass


class EmptyResponseError(ResponseParseError):
    """Raised when a model finishes without any text to decode."""

    pass


class CoordinatorError(IAError):
    """Raised when the pipeline orchestrator encounters an error.

    Context should include:
        - stage: The stage being run or about to run
    """

    pass


class AnalysisCancelledError(CoordinatorError):
    """Raised when a run is cancelled at a stage boundary."""

    pass


class PersistenceError(IAError):
    """Raised when the analysis store cannot read or write a record.

    Context should include:
        - analysis_id: The record identifier
        - operation: load, save or create
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when no analysis record exists for an id."""

    pass
