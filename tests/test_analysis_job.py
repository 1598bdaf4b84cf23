"""
Tests for the analysis job wrapper.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest
from conftest import IDEA, RecordingPublisher, make_agents

from ia.config import Settings
from ia.coordinator import AnalysisPipeline
from ia.exceptions import RecordNotFoundError
from ia.jobs import AnalysisJob, enqueue_analysis, mock_analysis_result
from ia.store import AnalysisRecord, SQLiteAnalysisStore
from ia.types import AnalysisStatus, StageName


class FailingPublisher:
    async def stage_progress(self, analysis_id, current_stage, total_stages=5, stage_name=None) -> None:
        raise ConnectionError("broker unavailable")

    async def analysis_completed(self, analysis_id) -> None:
        raise ConnectionError("broker unavailable")


class DiskFullStore(SQLiteAnalysisStore):
    """Store whose writes fail with a non-persistence error."""

    save_attempts = 0

    def save(self, record: AnalysisRecord) -> None:
        self.save_attempts += 1
        raise OSError("disk full")


class BrokenPipeline:
    """Reports two stages, then fails outside any agent."""

    async def run(
        self,
        idea: str,
        follow_up_answers: Any = None,
        on_stage_complete: Callable[[int], Any] | None = None,
    ) -> Any:
        for stage in (1, 2):
            await on_stage_complete(stage)
        raise RuntimeError("database connection lost")


class TestEnqueue:
    def test_enqueue_creates_record(self, store: SQLiteAnalysisStore) -> None:
        analysis_id = enqueue_analysis(store, IDEA, {"target": "직장인"})

        record = store.load(analysis_id)
        assert record.status is AnalysisStatus.ANALYZING
        assert record.follow_up_answers == {"target": "직장인"}

    def test_enqueue_rejects_blank_idea(self, store: SQLiteAnalysisStore) -> None:
        with pytest.raises(ValueError):
            enqueue_analysis(store, "  ")
        assert store.list_recent() == []


class TestMockRun:
    """Runs without a language model use the placeholder analysis."""

    @pytest.mark.asyncio
    async def test_mock_analysis(
        self,
        store: SQLiteAnalysisStore,
        publisher: RecordingPublisher,
        mock_settings: Settings,
    ) -> None:
        analysis_id = enqueue_analysis(store, IDEA)
        await AnalysisJob(store, publisher, mock_settings).perform(analysis_id)

        record = store.load(analysis_id)
        assert record.status is AnalysisStatus.COMPLETED
        assert record.current_stage == 5
        assert record.score == 70
        assert record.is_real_analysis is False
        assert record.is_partial_success is False
        assert record.analysis_result["score"]["overall"] == 70
        assert record.analysis_result["grade"] == "B"
        assert record.analysis_result["idea"] == IDEA

        assert publisher.stages == [1, 2, 3, 4, 5]
        assert publisher.events[-1] == ("analysis_completed", analysis_id)

    def test_mock_result_shape(self) -> None:
        result = mock_analysis_result(IDEA)

        assert result.score.overall == 70
        assert result.metadata.agents_total == 0
        assert result.metadata.agents_completed == 0
        assert result.metadata.agents_completed + result.metadata.agents_failed == result.metadata.agents_total
        assert result.metadata.partial_success is False
        assert result.metadata.agent_sequence == []
        assert len(result.strategy.actions) == 3

    @pytest.mark.asyncio
    async def test_completed_record_is_skipped(
        self,
        store: SQLiteAnalysisStore,
        publisher: RecordingPublisher,
        mock_settings: Settings,
    ) -> None:
        analysis_id = enqueue_analysis(store, IDEA)
        job = AnalysisJob(store, publisher, mock_settings)
        await job.perform(analysis_id)
        first = store.load(analysis_id)
        events = len(publisher.events)

        await job.perform(analysis_id)

        assert len(publisher.events) == events
        assert store.load(analysis_id).updated_at == first.updated_at


class TestRealRun:
    """Runs with a language model use the pipeline."""

    @pytest.mark.asyncio
    async def test_partial_success_is_recorded(
        self,
        store: SQLiteAnalysisStore,
        publisher: RecordingPublisher,
        live_settings: Settings,
    ) -> None:
        analysis_id = enqueue_analysis(store, IDEA)
        job = AnalysisJob(
            store,
            publisher,
            live_settings,
            pipeline_factory=lambda settings: AnalysisPipeline(
                make_agents(failing=(StageName.MARKET_ANALYSIS,))
            ),
        )
        await job.perform(analysis_id)

        record = store.load(analysis_id)
        assert record.status is AnalysisStatus.COMPLETED
        assert record.is_real_analysis is True
        assert record.is_partial_success is True
        assert record.score == 78
        assert record.analysis_result["metadata"]["failed_agents"] == ["market_analysis"]
        assert publisher.stages == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_full_success(
        self,
        store: SQLiteAnalysisStore,
        live_settings: Settings,
    ) -> None:
        analysis_id = enqueue_analysis(store, IDEA)
        job = AnalysisJob(
            store,
            settings=live_settings,
            pipeline_factory=lambda settings: AnalysisPipeline(make_agents()),
        )
        await job.perform(analysis_id)

        record = store.load(analysis_id)
        assert record.is_real_analysis is True
        assert record.is_partial_success is False
        assert record.analysis_result["total_score"] == 78


class TestFailures:
    """Infrastructure failures and publisher errors."""

    @pytest.mark.asyncio
    async def test_infrastructure_failure_marks_failed(
        self,
        store: SQLiteAnalysisStore,
        publisher: RecordingPublisher,
        live_settings: Settings,
    ) -> None:
        created = store.create(IDEA)
        store.save(created.copy(analysis_result={"previous": True}))

        job = AnalysisJob(store, publisher, live_settings, pipeline_factory=lambda s: BrokenPipeline())
        await job.perform(created.id)

        record = store.load(created.id)
        assert record.status is AnalysisStatus.FAILED
        assert record.current_stage == 2
        assert record.analysis_result == {"previous": True}
        assert record.score is None
        assert ("analysis_completed", created.id) not in publisher.events

    @pytest.mark.asyncio
    async def test_missing_record_propagates(
        self,
        store: SQLiteAnalysisStore,
        mock_settings: Settings,
    ) -> None:
        with pytest.raises(RecordNotFoundError):
            await AnalysisJob(store, settings=mock_settings).perform("analysis_missing")

    @pytest.mark.asyncio
    async def test_publisher_failure_is_ignored(
        self,
        store: SQLiteAnalysisStore,
        mock_settings: Settings,
    ) -> None:
        analysis_id = enqueue_analysis(store, IDEA)
        await AnalysisJob(store, FailingPublisher(), mock_settings).perform(analysis_id)

        record = store.load(analysis_id)
        assert record.status is AnalysisStatus.COMPLETED
        assert record.score == 70

    @pytest.mark.asyncio
    async def test_failed_record_is_not_rerun(
        self,
        store: SQLiteAnalysisStore,
        publisher: RecordingPublisher,
        mock_settings: Settings,
    ) -> None:
        created = store.create(IDEA)
        store.save(created.copy(status=AnalysisStatus.FAILED, current_stage=3))

        await AnalysisJob(store, publisher, mock_settings).perform(created.id)

        record = store.load(created.id)
        assert record.status is AnalysisStatus.FAILED
        assert record.current_stage == 3
        assert record.score is None
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_failure_while_marking_failed_is_logged(
        self,
        temp_dir: Path,
        publisher: RecordingPublisher,
        mock_settings: Settings,
    ) -> None:
        store = DiskFullStore(temp_dir / "analyses.db")
        store.init()
        try:
            analysis_id = enqueue_analysis(store, IDEA)
            await AnalysisJob(store, publisher, mock_settings).perform(analysis_id)

            record = store.load(analysis_id)
        finally:
            store.close()

        assert store.save_attempts == 2
        assert record.status is AnalysisStatus.ANALYZING
        assert ("analysis_completed", analysis_id) not in publisher.events
