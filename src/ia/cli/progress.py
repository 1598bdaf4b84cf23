"""Rich progress display for idea analysis runs."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ia.types import STAGE_LABELS, TOTAL_STAGES


class ConsolePublisher:
    """Progress publisher that renders a live progress bar per analysis.

    Use as a context manager so the live display is started and stopped
    around the run.
    """

    def __init__(self, console: Console) -> None:
        """Initialize progress display.

        Args:
            console: Rich console to write to.
        """
        self.console = console
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
        )
        self._tasks: dict[str, TaskID] = {}

    def __enter__(self) -> ConsolePublisher:
        self._progress.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._progress.stop()

    def _task(self, analysis_id: str) -> TaskID:
        if analysis_id not in self._tasks:
            self._tasks[analysis_id] = self._progress.add_task(
                STAGE_LABELS[0], total=TOTAL_STAGES
            )
        return self._tasks[analysis_id]

    async def stage_progress(
        self,
        analysis_id: str,
        current_stage: int,
        total_stages: int = TOTAL_STAGES,
        stage_name: str | None = None,
    ) -> None:
        label = stage_name or STAGE_LABELS.get(current_stage, "")
        self._progress.update(
            self._task(analysis_id),
            completed=current_stage,
            total=total_stages,
            description=f"[cyan]{current_stage}/{total_stages}[/cyan] {label}",
        )

    async def analysis_completed(self, analysis_id: str) -> None:
        task = self._task(analysis_id)
        total = self._progress.tasks[task].total or TOTAL_STAGES
        self._progress.update(
            task,
            completed=total,
            description=f"[green]{STAGE_LABELS[len(STAGE_LABELS) - 1]}[/green]",
        )
