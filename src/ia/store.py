"""
Persistence for analysis records.

One record per idea analysis: the idea, follow-up answers, lifecycle
status, progress counter and, once completed, the aggregate result.
The job wrapper is the only writer of a record while it runs.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import orjson

from ia.exceptions import PersistenceError, RecordNotFoundError
from ia.logging import get_logger
from ia.types import AnalysisStatus, generate_id, utc_now

logger = get_logger(__name__)


@dataclass
class AnalysisRecord:
    """Persisted state of one analysis."""

    id: str
    idea: str
    follow_up_answers: dict[str, str] = field(default_factory=dict)
    status: AnalysisStatus = AnalysisStatus.ANALYZING
    current_stage: int = 0
    analysis_result: dict[str, Any] = field(default_factory=dict)
    score: int | None = None
    is_real_analysis: bool = False
    is_partial_success: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_completed(self) -> bool:
        return self.status is AnalysisStatus.COMPLETED

    def copy(self, **changes: Any) -> AnalysisRecord:
        """Return a copy with ``changes`` applied and updated_at refreshed."""
        return replace(self, updated_at=utc_now(), **changes)


@runtime_checkable
class AnalysisStore(Protocol):
    """Load/save access to analysis records."""

    def load(self, analysis_id: str) -> AnalysisRecord:
        """Load a record.

        Raises:
            RecordNotFoundError: If no record exists for the id.
        """
        ...

    def save(self, record: AnalysisRecord) -> None:
        """Persist all fields of an existing record."""
        ...


class SQLiteAnalysisStore:
    """SQLite-backed analysis record store.

    Thread-safe for single-writer, multiple-reader scenarios.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._initialized = False

    def init(self) -> None:
        """Initialize the database schema. Safe to call multiple times."""
        if self._initialized:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._get_conn()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS analyses (
                id TEXT PRIMARY KEY,
                idea TEXT NOT NULL,
                follow_up_answers TEXT NOT NULL,
                status TEXT NOT NULL,
                current_stage INTEGER NOT NULL DEFAULT 0,
                analysis_result TEXT NOT NULL,
                score INTEGER,
                is_real_analysis INTEGER NOT NULL DEFAULT 0,
                is_partial_success INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_analyses_status ON analyses(status)")
        conn.commit()
        self._initialized = True

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                isolation_level="DEFERRED",
            )
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._initialized = False

    def create(self, idea: str, follow_up_answers: dict[str, str] | None = None) -> AnalysisRecord:
        """Insert a new record in the analyzing state.

        Returns:
            The created record.
        """
        self.init()
        record = AnalysisRecord(
            id=generate_id("analysis"),
            idea=idea,
            follow_up_answers=dict(follow_up_answers or {}),
        )

        try:
            conn = self._get_conn()
            conn.execute(
                """
                INSERT INTO analyses (
                    id, idea, follow_up_answers, status, current_stage, analysis_result,
                    score, is_real_analysis, is_partial_success, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.idea,
                    *self._mutable_columns(record),
                    record.created_at.isoformat(),
                    record.updated_at.isoformat(),
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to create analysis: {e}",
                context={"analysis_id": record.id, "operation": "create"},
            ) from e

        logger.info("Analysis record created", analysis_id=record.id)
        return record

    def load(self, analysis_id: str) -> AnalysisRecord:
        """Load a record by id.

        Raises:
            RecordNotFoundError: If no record exists for the id.
            PersistenceError: If the read fails.
        """
        self.init()

        try:
            cursor = self._get_conn().execute("SELECT * FROM analyses WHERE id = ?", (analysis_id,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to load analysis: {e}",
                context={"analysis_id": analysis_id, "operation": "load"},
            ) from e

        if row is None:
            raise RecordNotFoundError(
                "Analysis not found",
                context={"analysis_id": analysis_id, "operation": "load"},
            )
        return self._row_to_record(row)

    def save(self, record: AnalysisRecord) -> None:
        """Persist every mutable field of an existing record.

        Raises:
            RecordNotFoundError: If the record was never created.
            PersistenceError: If the write fails.
        """
        self.init()

        try:
            conn = self._get_conn()
            cursor = conn.execute(
                """
                UPDATE analyses SET
                    follow_up_answers = ?, status = ?, current_stage = ?,
                    analysis_result = ?, score = ?, is_real_analysis = ?,
                    is_partial_success = ?, updated_at = ?
                WHERE id = ?
                """,
                (*self._mutable_columns(record), record.updated_at.isoformat(), record.id),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to save analysis: {e}",
                context={"analysis_id": record.id, "operation": "save"},
            ) from e

        if cursor.rowcount == 0:
            raise RecordNotFoundError(
                "Analysis not found",
                context={"analysis_id": record.id, "operation": "save"},
            )

    def list_recent(self, limit: int = 20) -> list[AnalysisRecord]:
        """Most recently created records first."""
        self.init()
        cursor = self._get_conn().execute(
            "SELECT * FROM analyses ORDER BY created_at DESC, rowid DESC LIMIT ?", (limit,)
        )
        return [self._row_to_record(row) for row in cursor.fetchall()]

    @staticmethod
    def _mutable_columns(record: AnalysisRecord) -> tuple[Any, ...]:
        return (
            orjson.dumps(record.follow_up_answers).decode(),
            record.status.value,
            record.current_stage,
            orjson.dumps(record.analysis_result).decode(),
            record.score,
            int(record.is_real_analysis),
            int(record.is_partial_success),
        )

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> AnalysisRecord:
        return AnalysisRecord(
            id=row["id"],
            idea=row["idea"],
            follow_up_answers=orjson.loads(row["follow_up_answers"]),
            status=AnalysisStatus(row["status"]),
            current_stage=row["current_stage"],
            analysis_result=orjson.loads(row["analysis_result"]),
            score=row["score"],
            is_real_analysis=bool(row["is_real_analysis"]),
            is_partial_success=bool(row["is_partial_success"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
