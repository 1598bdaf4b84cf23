"""
Tests for the SQLite analysis store.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import IDEA

from ia.exceptions import PersistenceError, RecordNotFoundError
from ia.store import AnalysisRecord, AnalysisStore, SQLiteAnalysisStore
from ia.types import AnalysisStatus


class TestCreateAndLoad:
    """Test record creation and loading."""

    def test_create_defaults(self, store: SQLiteAnalysisStore) -> None:
        record = store.create(IDEA, {"target": "직장인"})

        assert record.id.startswith("analysis_")
        assert record.status is AnalysisStatus.ANALYZING
        assert record.current_stage == 0
        assert record.analysis_result == {}
        assert record.score is None

    def test_load_round_trip(self, store: SQLiteAnalysisStore) -> None:
        created = store.create(IDEA, {"target": "직장인"})
        loaded = store.load(created.id)

        assert loaded.idea == IDEA
        assert loaded.follow_up_answers == {"target": "직장인"}
        assert loaded.status is AnalysisStatus.ANALYZING
        assert loaded.created_at == created.created_at

    def test_load_missing(self, store: SQLiteAnalysisStore) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            store.load("analysis_missing")
        assert exc_info.value.context["analysis_id"] == "analysis_missing"

    def test_load_database_error(self, store: SQLiteAnalysisStore) -> None:
        created = store.create(IDEA)
        store._get_conn().execute("DROP TABLE analyses")

        with pytest.raises(PersistenceError) as exc_info:
            store.load(created.id)
        assert not isinstance(exc_info.value, RecordNotFoundError)
        assert exc_info.value.context["operation"] == "load"

    def test_satisfies_protocol(self, store: SQLiteAnalysisStore) -> None:
        assert isinstance(store, AnalysisStore)


class TestSave:
    """Test record updates."""

    def test_save_updates_fields(self, store: SQLiteAnalysisStore) -> None:
        record = store.create(IDEA)
        store.save(
            record.copy(
                status=AnalysisStatus.COMPLETED,
                current_stage=5,
                analysis_result={"total_score": 70, "score": {"overall": 70}},
                score=70,
                is_partial_success=True,
            )
        )

        loaded = store.load(record.id)
        assert loaded.is_completed
        assert loaded.current_stage == 5
        assert loaded.analysis_result["score"]["overall"] == 70
        assert loaded.score == 70
        assert loaded.is_real_analysis is False
        assert loaded.is_partial_success is True
        assert loaded.updated_at >= record.updated_at

    def test_save_unknown_record(self, store: SQLiteAnalysisStore) -> None:
        with pytest.raises(RecordNotFoundError):
            store.save(AnalysisRecord(id="analysis_unknown", idea=IDEA))

    def test_copy_leaves_original(self) -> None:
        record = AnalysisRecord(id="analysis_1", idea=IDEA)
        changed = record.copy(current_stage=3)

        assert record.current_stage == 0
        assert changed.current_stage == 3
        assert changed.id == record.id


class TestListAndReopen:
    def test_list_recent(self, store: SQLiteAnalysisStore) -> None:
        ids = [store.create(f"아이디어 {i}").id for i in range(3)]

        recent = store.list_recent(limit=2)
        assert [record.id for record in recent] == ids[::-1][:2]

    def test_data_survives_reopen(self, temp_dir: Path) -> None:
        first = SQLiteAnalysisStore(temp_dir / "nested" / "analyses.db")
        record = first.create(IDEA)
        first.close()

        second = SQLiteAnalysisStore(temp_dir / "nested" / "analyses.db")
        try:
            assert second.load(record.id).idea == IDEA
        finally:
            second.close()
