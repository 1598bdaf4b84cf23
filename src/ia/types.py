"""
Core types for the idea analysis system.

This module defines:
- Enums for stages and persisted analysis status
- AnalysisRequest, the immutable input of one run
- StageContext, the accumulated per-run context read by stage agents
- StageOutcome, an agent result plus its fell-back flag
- Helper functions for ID generation and timestamps
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from uuid6 import uuid7

if TYPE_CHECKING:
    from ia.results import StageResult


def generate_id(prefix: str = "") -> str:
    """Generate a time-ordered unique ID using UUID7.

    Args:
        prefix: Optional prefix for the ID (e.g., "analysis", "evt").

    Returns:
        A unique ID string, optionally prefixed.
    """
    uid = str(uuid7())
    return f"{prefix}_{uid}" if prefix else uid


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class StageName(str, Enum):
    """Stages of the analysis pipeline, in execution order."""

    SUMMARY = "summary"
    TARGET_USER = "target_user"
    MARKET_ANALYSIS = "market_analysis"
    STRATEGY = "strategy"
    SCORING = "scoring"


STAGE_SEQUENCE: tuple[StageName, ...] = tuple(StageName)
TOTAL_STAGES = len(STAGE_SEQUENCE)

# Display names by progress index; 0 is before the first stage, 6 is done.
STAGE_LABELS: dict[int, str] = {
    0: "준비 중",
    1: "아이디어 요약 분석",
    2: "타겟 사용자 분석",
    3: "시장 분석",
    4: "전략 도출",
    5: "점수 계산",
    6: "완료",
}


class AnalysisStatus(str, Enum):
    """Lifecycle of a persisted analysis. Terminal states are one-way."""

    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not AnalysisStatus.ANALYZING


class ConfidenceLevel(str, Enum):
    """Confidence the scoring stage reports for its own assessment."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class AnalysisRequest:
    """Input of one pipeline run.

    Attributes:
        idea: Free-text idea description. Must be non-blank.
        follow_up_answers: Ordered answers to follow-up questions. Blank
            values are kept here and skipped when prompts are rendered.
    """

    idea: str
    follow_up_answers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.idea, str) or not self.idea.strip():
            raise ValueError("idea must be a non-empty string")
        answers = {
            str(key): "" if value is None else str(value)
            for key, value in (self.follow_up_answers or {}).items()
        }
        object.__setattr__(self, "follow_up_answers", MappingProxyType(answers))


@dataclass(frozen=True)
class StageContext:
    """Context handed to a stage agent.

    ``previous_results`` only ever grows: ``with_result`` returns a new
    context with one more stage and never drops one.
    """

    request: AnalysisRequest
    previous_results: Mapping[StageName, StageResult] = field(default_factory=dict)

    @property
    def idea(self) -> str:
        return self.request.idea

    @property
    def follow_up_answers(self) -> Mapping[str, str]:
        return self.request.follow_up_answers

    def result_for(self, stage: StageName) -> StageResult | None:
        """Get a prior stage's validated result, or None if it has not run."""
        return self.previous_results.get(stage)

    def with_result(self, stage: StageName, result: StageResult) -> StageContext:
        """Return a new context that also holds ``result`` under ``stage``."""
        merged = dict(self.previous_results)
        merged[stage] = result
        return StageContext(request=self.request, previous_results=MappingProxyType(merged))


@dataclass(frozen=True)
class StageOutcome:
    """What an agent hands back to the orchestrator.

    Attributes:
        result: Schema-complete stage result (genuine or fallback).
        fell_back: True when ``result`` is the agent's fallback.
        error: Short description of the failure when fell_back is True.
    """

    result: StageResult
    fell_back: bool = False
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"fell_back": self.fell_back, "error": self.error}
