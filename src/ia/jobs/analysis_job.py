"""
Background job that runs one idea analysis end to end.

Loads the record, runs the pipeline (or the mock path when no language
model is configured), persists progress and the final result, and
publishes progress events. Any failure after loading marks the record as
failed; the job itself then returns normally.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping

from ia.config import Settings, get_settings
from ia.coordinator.pipeline import AnalysisPipeline, build_default_pipeline
from ia.coordinator.progress import BestEffortPublisher, ProgressPublisher
from ia.jobs.mock import mock_analysis_result
from ia.llm.router import LLMRouter
from ia.logging import get_logger, log_context
from ia.results import AggregateResult
from ia.store import AnalysisRecord, AnalysisStore, SQLiteAnalysisStore
from ia.types import STAGE_SEQUENCE, TOTAL_STAGES, AnalysisRequest, AnalysisStatus

logger = get_logger(__name__)

PipelineFactory = Callable[[Settings], AnalysisPipeline]


def enqueue_analysis(
    store: SQLiteAnalysisStore,
    idea: str,
    follow_up_answers: Mapping[str, Any] | None = None,
) -> str:
    """Create the placeholder record for a new analysis.

    The record starts as analyzing, with an empty result, no score and both
    flags False.

    Args:
        store: Record store.
        idea: Idea description; must be non-blank.
        follow_up_answers: Answers to follow-up questions.

    Returns:
        The new analysis id.

    Raises:
        ValueError: If the idea is blank.
    """
    request = AnalysisRequest(idea=idea, follow_up_answers=follow_up_answers or {})
    record = store.create(request.idea, dict(request.follow_up_answers))
    return record.id


class AnalysisJob:
    """Runs and persists one analysis per ``perform`` call."""

    def __init__(
        self,
        store: AnalysisStore,
        publisher: ProgressPublisher | None = None,
        settings: Settings | None = None,
        pipeline_factory: PipelineFactory | None = None,
    ) -> None:
        """Initialize the job.

        Args:
            store: Record store; the job is the only writer during a run.
            publisher: Progress sink. Its failures are logged and ignored.
            settings: Application settings (loads from env if None).
            pipeline_factory: Builds the pipeline for a run. Defaults to the
                five real agents behind an LLMRouter.
        """
        self.store = store
        self.publisher = BestEffortPublisher(publisher) if publisher else BestEffortPublisher()
        self.settings = settings or get_settings()
        self.pipeline_factory = pipeline_factory

    async def perform(self, analysis_id: str) -> None:
        """Run the analysis for a record.

        Completed and failed records are left untouched; a failed analysis
        is retried by enqueueing a new one.

        Raises:
            RecordNotFoundError: If the record does not exist.
        """
        record = self.store.load(analysis_id)
        if record.status.is_terminal:
            if record.status is AnalysisStatus.FAILED:
                logger.warning(
                    "Analysis previously failed, enqueue a new analysis to retry",
                    analysis_id=analysis_id,
                )
            else:
                logger.info("Analysis already completed, skipping", analysis_id=analysis_id)
            return

        with log_context(analysis_id=analysis_id):
            logger.info("Starting analysis job")
            try:
                record = await self._analyze(record)
            except Exception as e:
                logger.exception("Analysis job failed", error=str(e), error_type=type(e).__name__)
                self._mark_failed(analysis_id)
                return

            logger.info(
                "Analysis job completed",
                score=record.score,
                is_real_analysis=record.is_real_analysis,
                is_partial_success=record.is_partial_success,
            )
            await self.publisher.analysis_completed(analysis_id)

    async def _analyze(self, record: AnalysisRecord) -> AnalysisRecord:
        current = record

        async def on_stage_complete(stage: int) -> None:
            nonlocal current
            current = current.copy(current_stage=stage)
            self.store.save(current)
            await self.publisher.stage_progress(current.id, stage, TOTAL_STAGES)

        if self.settings.language_model_configured:
            result = await self._run_pipeline(current, on_stage_complete)
            is_real = True
            partial = result.metadata.partial_success
        else:
            logger.warning("No language model configured, using mock analysis")
            result = await self._run_mock(current, on_stage_complete)
            is_real = False
            partial = False

        completed = current.copy(
            analysis_result=result.to_dict(),
            score=result.score.overall,
            is_real_analysis=is_real,
            is_partial_success=partial,
            status=AnalysisStatus.COMPLETED,
        )
        self.store.save(completed)
        return completed

    async def _run_pipeline(
        self,
        record: AnalysisRecord,
        on_stage_complete: Callable[[int], Any],
    ) -> AggregateResult:
        if self.pipeline_factory is not None:
            pipeline = self.pipeline_factory(self.settings)
            return await pipeline.run(record.idea, record.follow_up_answers, on_stage_complete)

        router = LLMRouter(self.settings)
        try:
            pipeline = build_default_pipeline(self.settings, router)
            return await pipeline.run(record.idea, record.follow_up_answers, on_stage_complete)
        finally:
            await router.close()

    async def _run_mock(
        self,
        record: AnalysisRecord,
        on_stage_complete: Callable[[int], Any],
    ) -> AggregateResult:
        for stage in range(1, len(STAGE_SEQUENCE) + 1):
            await on_stage_complete(stage)
            await asyncio.sleep(self.settings.MOCK_STAGE_DELAY_SECONDS)
        return mock_analysis_result(record.idea)

    def _mark_failed(self, analysis_id: str) -> None:
        try:
            latest = self.store.load(analysis_id)
            self.store.save(latest.copy(status=AnalysisStatus.FAILED))
        except Exception as e:
            logger.exception("Could not mark analysis as failed", error=str(e))
