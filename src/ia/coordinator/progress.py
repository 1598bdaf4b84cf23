"""
Progress publishing for analysis runs.

Publishers are pure fan-out sinks keyed by a per-analysis channel name.
Two events exist: ``stage_progress`` after each stage and
``analysis_completed`` once the result is persisted.

EventLogPublisher keeps an append-only log: the full event as JSONL and
index fields in SQLite for per-analysis queries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import aiosqlite
import orjson

from ia.logging import get_logger
from ia.types import STAGE_LABELS, TOTAL_STAGES, generate_id, utc_now

logger = get_logger(__name__)

STAGE_PROGRESS = "stage_progress"
ANALYSIS_COMPLETED = "analysis_completed"


def channel_name(analysis_id: str) -> str:
    """Channel subscribers listen on for one analysis."""
    return f"idea_analysis_{analysis_id}"


def stage_label(current_stage: int) -> str:
    return STAGE_LABELS.get(current_stage, "")


@runtime_checkable
class ProgressPublisher(Protocol):
    """Sink for analysis progress notifications."""

    async def stage_progress(
        self,
        analysis_id: str,
        current_stage: int,
        total_stages: int = TOTAL_STAGES,
        stage_name: str | None = None,
    ) -> None:
        """Announce that ``current_stage`` of ``total_stages`` is done."""
        ...

    async def analysis_completed(self, analysis_id: str) -> None:
        """Announce that the analysis result is available."""
        ...


@dataclass
class ProgressEvent:
    """One published notification."""

    analysis_id: str
    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: generate_id("evt"))
    timestamp: datetime = field(default_factory=utc_now)

    @property
    def channel(self) -> str:
        return channel_name(self.analysis_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "analysis_id": self.analysis_id,
            "channel": self.channel,
            "event_type": self.event_type,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressEvent:
        return cls(
            analysis_id=data["analysis_id"],
            event_type=data["event_type"],
            payload=data.get("payload", {}),
            event_id=data["event_id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


def stage_progress_event(
    analysis_id: str,
    current_stage: int,
    total_stages: int = TOTAL_STAGES,
    stage_name: str | None = None,
) -> ProgressEvent:
    return ProgressEvent(
        analysis_id=analysis_id,
        event_type=STAGE_PROGRESS,
        payload={
            "current_stage": current_stage,
            "total_stages": total_stages,
            "stage_name": stage_name or stage_label(current_stage),
        },
    )


class EventLogPublisher:
    """Append-only progress log.

    Every event gets recorded with:
    - Full JSON in append-only JSONL file
    - Index fields in SQLite for per-analysis queries
    """

    def __init__(self, output_dir: str | Path) -> None:
        """Initialize the event log.

        Args:
            output_dir: Directory holding progress.jsonl and progress.db.
        """
        self.output_dir = Path(output_dir)
        self.jsonl_path = self.output_dir / "progress.jsonl"
        self.db_path = self.output_dir / "progress.db"
        self._db: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Create files and tables."""
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row

        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS events (
                event_id TEXT PRIMARY KEY,
                analysis_id TEXT NOT NULL,
                event_type TEXT NOT NULL,
                ts TEXT NOT NULL,
                jsonl_offset INTEGER NOT NULL
            )
        """)
        await self._db.execute(
            "CREATE INDEX IF NOT EXISTS idx_analysis_id ON events(analysis_id)"
        )
        await self._db.commit()

        logger.info("Event log initialized", output_dir=str(self.output_dir))

    async def close(self) -> None:
        """Close the database connection."""
        if self._db:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> EventLogPublisher:
        await self.init()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _require_db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("EventLogPublisher not initialized. Call init() first.")
        return self._db

    async def append(self, event: ProgressEvent) -> None:
        """Append an event to the log."""
        db = self._require_db()

        line = orjson.dumps(event.to_dict()) + b"\n"
        jsonl_offset = self.jsonl_path.stat().st_size if self.jsonl_path.exists() else 0
        with open(self.jsonl_path, "ab") as f:
            f.write(line)

        await db.execute(
            """
            INSERT INTO events (event_id, analysis_id, event_type, ts, jsonl_offset)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.event_id,
                event.analysis_id,
                event.event_type,
                event.timestamp.isoformat(),
                jsonl_offset,
            ),
        )
        await db.commit()

        logger.debug(
            "Appended progress event",
            analysis_id=event.analysis_id,
            event_type=event.event_type,
        )

    async def stage_progress(
        self,
        analysis_id: str,
        current_stage: int,
        total_stages: int = TOTAL_STAGES,
        stage_name: str | None = None,
    ) -> None:
        await self.append(stage_progress_event(analysis_id, current_stage, total_stages, stage_name))

    async def analysis_completed(self, analysis_id: str) -> None:
        await self.append(ProgressEvent(analysis_id=analysis_id, event_type=ANALYSIS_COMPLETED))

    async def query(self, analysis_id: str) -> list[ProgressEvent]:
        """Events for one analysis in publication order."""
        db = self._require_db()

        async with db.execute(
            "SELECT jsonl_offset FROM events WHERE analysis_id = ? ORDER BY jsonl_offset ASC",
            (analysis_id,),
        ) as cursor:
            rows = await cursor.fetchall()

        events = []
        for row in rows:
            event = self._read_at_offset(row["jsonl_offset"])
            if event:
                events.append(event)
        return events

    async def count(self) -> int:
        """Get total count of events."""
        db = self._require_db()
        async with db.execute("SELECT COUNT(*) FROM events") as cursor:
            row = await cursor.fetchone()
            return row[0] if row else 0

    def _read_at_offset(self, offset: int) -> ProgressEvent | None:
        if not self.jsonl_path.exists():
            return None

        try:
            with open(self.jsonl_path, "rb") as f:
                f.seek(offset)
                line = f.readline()
            if not line:
                return None
            return ProgressEvent.from_dict(orjson.loads(line))
        except (orjson.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning("Failed to read event at offset", offset=offset, error=str(e))
            return None


class BestEffortPublisher:
    """Fans out to several publishers and never lets a failure escape.

    Each publisher is called independently; an exception from one is
    logged and does not stop the others.
    """

    def __init__(self, *publishers: ProgressPublisher) -> None:
        self.publishers = list(publishers)

    async def stage_progress(
        self,
        analysis_id: str,
        current_stage: int,
        total_stages: int = TOTAL_STAGES,
        stage_name: str | None = None,
    ) -> None:
        stage_name = stage_name or stage_label(current_stage)
        for publisher in self.publishers:
            try:
                await publisher.stage_progress(analysis_id, current_stage, total_stages, stage_name)
            except Exception as e:
                self._log_failure(publisher, STAGE_PROGRESS, analysis_id, e)

    async def analysis_completed(self, analysis_id: str) -> None:
        for publisher in self.publishers:
            try:
                await publisher.analysis_completed(analysis_id)
            except Exception as e:
                self._log_failure(publisher, ANALYSIS_COMPLETED, analysis_id, e)

    @staticmethod
    def _log_failure(publisher: Any, event_type: str, analysis_id: str, error: Exception) -> None:
        logger.warning(
            "Progress publish failed",
            publisher=type(publisher).__name__,
            event_type=event_type,
            analysis_id=analysis_id,
            error=str(error),
        )
