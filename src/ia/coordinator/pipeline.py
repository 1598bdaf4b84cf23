"""
5-Stage Idea Analysis Pipeline.

Orchestrates the idea analysis stages in a fixed order:
1. Summary - One-line summary, core value, problem statement
2. Target User - Primary target, personas, pain points, goals
3. Market Analysis - Market size, trends, competitors (grounded or tool-backed)
4. Strategy - MVP features, challenges, next steps, three actions
5. Scoring - Rubric scores, total, grade, weak areas

Stages never raise: each agent falls back on failure and the pipeline
records which stages fell back.
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Sequence

from ia.agents.base import StageAgent
from ia.agents.market_analysis import MarketAnalysisAgent, MarketAnalysisConfig
from ia.agents.scoring import ScoringAgent
from ia.agents.strategy import StrategyAgent
from ia.agents.summary import SummaryAgent
from ia.agents.target_user import TargetUserAgent
from ia.config import Settings
from ia.exceptions import AnalysisCancelledError, CoordinatorError
from ia.llm.router import LLMRouter
from ia.logging import get_logger
from ia.results import AggregateResult, AnalysisMetadata
from ia.rubric import DEFAULT_RUBRIC, ScoringRubric
from ia.types import STAGE_LABELS, STAGE_SEQUENCE, AnalysisRequest, StageContext, StageName

logger = get_logger(__name__)

StageCallback = Callable[[int], "Awaitable[Any] | Any"]
CancelCheck = Callable[[], bool]


@dataclass
class PipelineConfig:
    """Configuration for the analysis pipeline."""

    # Stage 3: retrieval mode, lookup timeout, tool rounds
    market: MarketAnalysisConfig = field(default_factory=MarketAnalysisConfig)

    # Stage 5: dimensions, grade thresholds, weak-area vocabulary
    rubric: ScoringRubric = DEFAULT_RUBRIC

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        return cls(market=MarketAnalysisConfig.from_settings(settings))


class AnalysisPipeline:
    """Sequential 5-stage idea analysis coordinator."""

    def __init__(
        self,
        agents: Sequence[StageAgent],
        config: PipelineConfig | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            agents: One agent per stage, in execution order.
            config: Pipeline configuration.

        Raises:
            CoordinatorError: If a stage has no agent or more than one.
        """
        stages = [agent.stage for agent in agents]
        missing = [stage.value for stage in StageName if stage not in stages]
        duplicated = sorted({stage.value for stage in stages if stages.count(stage) > 1})
        if missing or duplicated:
            raise CoordinatorError(
                "Pipeline needs exactly one agent per stage",
                context={"missing": missing, "duplicated": duplicated},
            )

        self.agents = list(agents)
        self.config = config or PipelineConfig()

    @property
    def agent_sequence(self) -> list[str]:
        return [agent.name for agent in self.agents]

    async def run(
        self,
        idea: str,
        follow_up_answers: Mapping[str, Any] | None = None,
        on_stage_complete: StageCallback | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> AggregateResult:
        """Run all stages for one idea.

        Args:
            idea: Idea description; must be non-blank.
            follow_up_answers: Answers to follow-up questions.
            on_stage_complete: Called with the 1-based stage index after each
                stage's result is merged. May return an awaitable.
            should_cancel: Checked at every stage boundary.

        Returns:
            AggregateResult with every stage's result and run metadata.

        Raises:
            ValueError: If the idea is blank.
            AnalysisCancelledError: If should_cancel() returns True.
        """
        request = AnalysisRequest(idea=idea, follow_up_answers=follow_up_answers or {})
        context = StageContext(request=request)
        failed_agents: list[str] = []
        start_time = time.monotonic()

        logger.info("Starting analysis pipeline", stages=len(self.agents))

        for index, agent in enumerate(self.agents, start=1):
            if should_cancel is not None and should_cancel():
                logger.warning("Analysis cancelled", before_stage=agent.stage.value)
                raise AnalysisCancelledError(
                    "Analysis cancelled",
                    context={"stage": agent.stage.value, "completed_stages": index - 1},
                )

            label = STAGE_LABELS[STAGE_SEQUENCE.index(agent.stage) + 1]
            logger.info(f"Stage {index}: {label}", agent=agent.name)
            outcome = await agent.analyze(context)
            context = context.with_result(agent.stage, outcome.result)
            if outcome.fell_back:
                failed_agents.append(agent.name)

            if on_stage_complete is not None:
                callback_result = on_stage_complete(index)
                if inspect.isawaitable(callback_result):
                    await callback_result

        results = context.previous_results
        scoring = results[StageName.SCORING]
        metadata = AnalysisMetadata(
            agents_total=len(self.agents),
            agents_completed=len(self.agents) - len(failed_agents),
            agents_failed=len(failed_agents),
            failed_agents=failed_agents,
            confidence_level=scoring.confidence_level,
            elapsed_seconds=round(time.monotonic() - start_time, 3),
            agent_sequence=self.agent_sequence,
        )

        logger.info(
            "Analysis pipeline completed",
            total_score=scoring.total_score,
            agents_failed=metadata.agents_failed,
            partial_success=metadata.partial_success,
            elapsed_seconds=metadata.elapsed_seconds,
        )

        return AggregateResult(
            idea=request.idea,
            summary=results[StageName.SUMMARY],
            target_user=results[StageName.TARGET_USER],
            market_analysis=results[StageName.MARKET_ANALYSIS],
            strategy=results[StageName.STRATEGY],
            scoring=scoring,
            metadata=metadata,
        )


def build_default_pipeline(
    settings: Settings,
    router: LLMRouter | None = None,
    config: PipelineConfig | None = None,
) -> AnalysisPipeline:
    """Wire the five stage agents to routed chat models.

    Args:
        settings: Application settings.
        router: LLM router; created from settings if None.
        config: Pipeline configuration; derived from settings if None.

    Returns:
        Ready-to-run AnalysisPipeline.
    """
    router = router or LLMRouter(settings)
    config = config or PipelineConfig.from_settings(settings)

    agents: list[StageAgent] = [
        SummaryAgent(router.chat_model(StageName.SUMMARY)),
        TargetUserAgent(router.chat_model(StageName.TARGET_USER)),
        MarketAnalysisAgent(router.chat_model(StageName.MARKET_ANALYSIS), config.market),
        StrategyAgent(router.chat_model(StageName.STRATEGY)),
        ScoringAgent(router.chat_model(StageName.SCORING), config.rubric),
    ]
    return AnalysisPipeline(agents, config)
