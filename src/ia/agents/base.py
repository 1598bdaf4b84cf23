"""
Base classes for stage agents.

This module implements:
- fail_soft: the combinator that turns any stage failure into a fallback
- StageAgent: abstract base class for the five pipeline stages
- Prompt rendering shared by all stages (idea, follow-up answers and
  excerpts of upstream results)

Stage agents implemented in separate modules:
- summary.py: SummaryAgent, stage 1
- target_user.py: TargetUserAgent, stage 2
- market_analysis/: MarketAnalysisAgent, stage 3
- strategy.py: StrategyAgent, stage 4
- scoring.py: ScoringAgent, stage 5
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar, Mapping

from ia.exceptions import ResponseParseError
from ia.llm.base import ChatModel
from ia.logging import ContextLogger, get_logger, log_context
from ia.results import (
    MarketAnalysisResult,
    StageResult,
    StrategyResult,
    SummaryResult,
    TargetUserResult,
)
from ia.types import StageContext, StageName, StageOutcome
from ia.validation import extract_json_object

logger = get_logger(__name__)

KEY_TRANSLATIONS = {
    "target": "타겟 사용자",
    "problem": "해결하려는 문제",
    "differentiator": "차별화 포인트",
}


def fail_soft(
    run: Callable[[StageContext], Awaitable[StageResult]],
    fallback: Callable[[], StageResult],
    log: ContextLogger = logger,
) -> Callable[[StageContext], Awaitable[StageOutcome]]:
    """Wrap a stage computation so it never raises.

    Any exception from ``run`` (model errors, timeouts, unparseable output)
    is logged and replaced by ``fallback()`` with ``fell_back=True``.
    Cancellation is not an ``Exception`` and still propagates.

    Args:
        run: The stage computation.
        fallback: Factory for the schema-complete placeholder result.
        log: Logger used for the failure record.

    Returns:
        An async callable producing a StageOutcome.
    """

    async def guarded(context: StageContext) -> StageOutcome:
        try:
            result = await run(context)
        except Exception as e:
            log.warning(
                "Stage failed, using fallback result",
                error=str(e),
                error_type=type(e).__name__,
            )
            return StageOutcome(
                result=fallback(),
                fell_back=True,
                error=f"{type(e).__name__}: {e}",
            )
        return StageOutcome(result=result)

    return guarded


def humanize_key(key: str) -> str:
    """``target_audience`` -> ``Target audience``."""
    return key.replace("_", " ").strip().capitalize()


def render_base_context(idea: str, follow_up_answers: Mapping[str, str]) -> str:
    """Render the idea and non-blank follow-up answers."""
    prompt = f"## 아이디어\n{idea}"

    lines = [
        f"- {KEY_TRANSLATIONS.get(key, humanize_key(key))}: {value.strip()}"
        for key, value in follow_up_answers.items()
        if value and value.strip()
    ]
    if lines:
        prompt += "\n\n## 추가 정보\n" + "\n".join(lines)

    return prompt


def _summary_excerpt(result: SummaryResult) -> str:
    return (
        "## 아이디어 요약"
        f"\n- 핵심 요약: {result.summary}"
        f"\n- 핵심 가치: {result.core_value}"
        f"\n- 문제 정의: {result.problem_statement}"
    )


def _target_user_excerpt(result: TargetUserResult) -> str:
    users = result.target_users
    text = f"## 타겟 사용자 분석\n- 주요 타겟: {users.primary}"
    if users.characteristics:
        text += f"\n- 사용자 특성: {', '.join(users.characteristics)}"
    if users.personas:
        text += f"\n- 페르소나: {', '.join(p.name for p in users.personas)}"
    if result.pain_points:
        text += f"\n- 사용자 고민: {', '.join(result.pain_points)}"
    if result.goals:
        text += f"\n- 사용자 목표: {', '.join(result.goals)}"
    return text


def _market_excerpt(result: MarketAnalysisResult) -> str:
    market = result.market_analysis
    text = (
        "## 시장 분석"
        f"\n- 시장 잠재력: {market.potential}"
        f"\n- 시장 규모: {market.market_size}"
        f"\n- 트렌드: {market.trends}"
    )
    if market.competitors:
        text += f"\n- 주요 경쟁사: {', '.join(market.competitors)}"
    text += f"\n- 차별화: {market.differentiation}"
    if result.opportunities:
        text += f"\n- 기회 요인: {', '.join(result.opportunities)}"
    if result.risks:
        text += f"\n- 리스크 요인: {', '.join(result.risks)}"
    return text


def _strategy_excerpt(result: StrategyResult) -> str:
    recs = result.recommendations
    text = "## 전략 분석"
    if recs.mvp_features:
        text += f"\n- MVP 기능: {', '.join(recs.mvp_features)}"
    if recs.challenges:
        text += f"\n- 도전과제: {', '.join(recs.challenges)}"
    if recs.next_steps:
        text += f"\n- 다음 단계: {', '.join(recs.next_steps)}"
    text += f"\n- 액션 아이템: {', '.join(a.title for a in result.actions)}"
    return text


EXCERPT_RENDERERS: dict[StageName, Callable[[Any], str]] = {
    StageName.SUMMARY: _summary_excerpt,
    StageName.TARGET_USER: _target_user_excerpt,
    StageName.MARKET_ANALYSIS: _market_excerpt,
    StageName.STRATEGY: _strategy_excerpt,
}


class StageAgent(ABC):
    """Abstract base class for pipeline stage agents.

    Subclasses declare their stage, upstream dependencies, system prompt and
    closing instruction, and implement ``decode``. ``analyze`` is the only
    public entry point and is guarded by ``fail_soft``.
    """

    stage: ClassVar[StageName]
    depends_on: ClassVar[tuple[StageName, ...]] = ()
    system_prompt: str
    closing_instruction: ClassVar[str] = ""

    def __init__(self, llm: ChatModel) -> None:
        """Initialize agent with its language model.

        Args:
            llm: Chat model this stage talks to.
        """
        self.llm = llm
        self._logger = get_logger(f"agent.{self.name}")

    @property
    def name(self) -> str:
        """Unique name of this agent."""
        return self.stage.value

    @abstractmethod
    def fallback(self) -> StageResult:
        """Schema-complete placeholder result for this stage."""
        ...

    @abstractmethod
    def decode(self, payload: Mapping[str, Any]) -> StageResult:
        """Decode a parsed JSON object field by field."""
        ...

    async def analyze(self, context: StageContext) -> StageOutcome:
        """Run the stage. Never raises; failures yield the fallback result."""
        with log_context(agent=self.name, stage=self.stage.value):
            outcome = await fail_soft(self._analyze, self.fallback, self._logger)(context)
            self.log_info("Stage analyzed", fell_back=outcome.fell_back)
            return outcome

    async def _analyze(self, context: StageContext) -> StageResult:
        response = await self.llm.chat(self.system_prompt, self.build_user_prompt(context))
        return self.decode(self.parse_response(response))

    def build_user_prompt(self, context: StageContext) -> str:
        """Idea, answers, upstream excerpts and the closing instruction."""
        sections = [render_base_context(context.idea, context.follow_up_answers)]
        for stage in self.depends_on:
            result = context.result_for(stage)
            if result is not None:
                sections.append(EXCERPT_RENDERERS[stage](result))
        if self.closing_instruction:
            sections.append(self.closing_instruction)
        return "\n\n".join(sections)

    def parse_response(self, content: str) -> dict[str, Any]:
        """Extract the JSON object from a model response.

        Raises:
            ResponseParseError: If the response holds no JSON object.
        """
        payload = extract_json_object(content)
        if payload is None:
            raise ResponseParseError(
                "Model response is not a JSON object",
                context={"agent_name": self.name, "preview": (content or "")[:120]},
            )
        return payload

    def log_info(self, msg: str, **kwargs: Any) -> None:
        """Log info message."""
        self._logger.info(msg, **kwargs)

    def log_warning(self, msg: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._logger.warning(msg, **kwargs)
