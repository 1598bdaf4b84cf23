"""
CLI for the idea analysis system.

Commands:
    ia analyze IDEA - Analyze a business idea
    ia show ANALYSIS_ID - Print a stored analysis
    ia history - List recent analyses
    ia config - Show current configuration
    ia version - Print version
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any, Optional

import orjson
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ia import __version__
from ia.cli.progress import ConsolePublisher
from ia.config import Settings, clear_settings_cache, get_settings
from ia.coordinator.progress import BestEffortPublisher, EventLogPublisher
from ia.exceptions import IAError, RecordNotFoundError
from ia.jobs import AnalysisJob, enqueue_analysis
from ia.logging import setup_logging
from ia.store import AnalysisRecord, SQLiteAnalysisStore
from ia.types import AnalysisStatus

app = typer.Typer(
    name="ia",
    help="Idea Analysis - staged AI assessment of business ideas",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

STATUS_STYLES = {
    AnalysisStatus.ANALYZING: "yellow",
    AnalysisStatus.COMPLETED: "green",
    AnalysisStatus.FAILED: "red",
}


def _get_settings_safe() -> Settings | None:
    """Get settings, returning None if configuration is invalid."""
    try:
        clear_settings_cache()
        return get_settings()
    except Exception:
        return None


def _parse_answers(values: list[str] | None) -> dict[str, str]:
    answers: dict[str, str] = {}
    for value in values or []:
        key, sep, answer = value.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected KEY=VALUE, got {value!r}", param_hint="--answer")
        answers[key.strip()] = answer.strip()
    return answers


def _open_store(settings: Settings, db_path: Path | None) -> SQLiteAnalysisStore:
    store = SQLiteAnalysisStore(db_path or settings.DATABASE_PATH)
    store.init()
    return store


async def _perform(
    store: SQLiteAnalysisStore,
    settings: Settings,
    analysis_id: str,
    event_log_dir: Path,
) -> None:
    async with EventLogPublisher(event_log_dir) as event_log:
        with ConsolePublisher(console) as progress:
            job = AnalysisJob(
                store,
                publisher=BestEffortPublisher(progress, event_log),
                settings=settings,
            )
            await job.perform(analysis_id)


def _print_record(record: AnalysisRecord) -> None:
    style = STATUS_STYLES[record.status]
    lines = [
        f"[bold]ID:[/bold] {record.id}",
        f"[bold]Idea:[/bold] {record.idea}",
        f"[bold]Status:[/bold] [{style}]{record.status.value}[/{style}]",
        f"[bold]Stage:[/bold] {record.current_stage}/5",
    ]
    if record.is_completed:
        result = record.analysis_result
        lines += [
            f"[bold]Score:[/bold] {record.score} ({result.get('grade', '-')})",
            f"[bold]Real analysis:[/bold] {'yes' if record.is_real_analysis else 'no (mock)'}",
        ]
        if record.is_partial_success:
            lines.append("[yellow]Some stages fell back to placeholder results.[/yellow]")
    console.print(Panel.fit("\n".join(lines), title="Idea Analysis", border_style=style))

    if not record.is_completed:
        return

    result = record.analysis_result
    if result.get("summary"):
        console.print(f"\n[bold]요약[/bold] {result['summary']}")

    dimensions: dict[str, Any] = result.get("dimension_scores") or {}
    if dimensions:
        table = Table(title="Dimension Scores", show_header=True)
        table.add_column("Dimension", style="cyan")
        table.add_column("Score", justify="right", style="green")
        table.add_column("Feedback")
        for key, dim in dimensions.items():
            table.add_row(key, str(dim.get("score", "")), dim.get("feedback", ""))
        console.print(table)

    score = result.get("score") or {}
    for title, key in (("약점", "weak_areas"), ("강점", "strong_areas"), ("개선 팁", "improvement_tips")):
        items = score.get(key) or []
        if items:
            console.print(f"[bold]{title}:[/bold] {', '.join(items)}")

    actions = result.get("actions") or []
    if actions:
        console.print("\n[bold]액션 아이템[/bold]")
        for index, action in enumerate(actions, start=1):
            console.print(f"  {index}. {action.get('title', '')}: {action.get('description', '')}")


@app.command()
def analyze(
    idea: Annotated[str, typer.Argument(help="Business idea to analyze")],
    answer: Annotated[
        Optional[list[str]],
        typer.Option(
            "--answer",
            "-a",
            help="Follow-up answer as KEY=VALUE (e.g. target=대학생). Repeatable.",
        ),
    ] = None,
    db_path: Annotated[
        Optional[Path],
        typer.Option("--db", help="SQLite database path"),
    ] = None,
    event_log_dir: Annotated[
        Optional[Path],
        typer.Option("--event-log-dir", "-e", help="Progress event log directory"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the analysis result as JSON"),
    ] = False,
) -> None:
    """Analyze a business idea.

    Runs summary, target user, market analysis, strategy and scoring stages.
    Without an API key a mock analysis is produced instead.
    """
    settings = _get_settings_safe()
    if settings is None:
        error_console.print(
            "[red]Error:[/red] Configuration is invalid. "
            "Run 'ia config' to see what's wrong."
        )
        raise typer.Exit(1)

    follow_up_answers = _parse_answers(answer)

    setup_logging(settings.LOG_LEVEL)
    settings.ensure_directories()

    if not settings.language_model_configured:
        console.print("[yellow]No LLM provider configured, running a mock analysis.[/yellow]")

    store = _open_store(settings, db_path)
    try:
        try:
            analysis_id = enqueue_analysis(store, idea, follow_up_answers)
        except ValueError as e:
            error_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        console.print(f"[bold]Analysis:[/bold] {analysis_id}")
        asyncio.run(_perform(store, settings, analysis_id, event_log_dir or settings.EVENT_LOG_DIR))

        record = store.load(analysis_id)
    finally:
        store.close()

    if json_output:
        console.print_json(orjson.dumps(record.analysis_result).decode())
    else:
        _print_record(record)

    if record.status is AnalysisStatus.FAILED:
        raise typer.Exit(1)


@app.command()
def show(
    analysis_id: Annotated[str, typer.Argument(help="Analysis ID")],
    db_path: Annotated[
        Optional[Path],
        typer.Option("--db", help="SQLite database path"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the analysis result as JSON"),
    ] = False,
) -> None:
    """Print a stored analysis."""
    settings = _get_settings_safe()
    if settings is None:
        error_console.print("[red]Error:[/red] Configuration is invalid.")
        raise typer.Exit(1)

    store = _open_store(settings, db_path)
    try:
        record = store.load(analysis_id)
    except RecordNotFoundError:
        error_console.print(f"[red]Error:[/red] Analysis not found: {analysis_id}")
        raise typer.Exit(1)
    except IAError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    finally:
        store.close()

    if json_output:
        console.print_json(orjson.dumps(record.analysis_result).decode())
    else:
        _print_record(record)


@app.command()
def history(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of analyses")] = 20,
    db_path: Annotated[
        Optional[Path],
        typer.Option("--db", help="SQLite database path"),
    ] = None,
) -> None:
    """List recent analyses."""
    settings = _get_settings_safe()
    if settings is None:
        error_console.print("[red]Error:[/red] Configuration is invalid.")
        raise typer.Exit(1)

    store = _open_store(settings, db_path)
    try:
        records = store.list_recent(limit)
    finally:
        store.close()

    if not records:
        console.print("[dim]No analyses yet.[/dim]")
        return

    table = Table(title="Recent Analyses", show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Idea")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Created")
    for record in records:
        style = STATUS_STYLES[record.status]
        table.add_row(
            record.id,
            record.idea if len(record.idea) <= 40 else record.idea[:37] + "...",
            f"[{style}]{record.status.value}[/{style}]",
            str(record.score) if record.score is not None else "-",
            record.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def config() -> None:
    """Show current configuration.

    Displays all configuration values with API keys redacted.
    Also shows which LLM providers are available.
    """
    console.print()
    console.print("[bold]Idea Analysis Configuration[/bold]")
    console.print()

    settings = _get_settings_safe()

    if settings is None:
        error_console.print("[red]Configuration is invalid.[/red]")
        error_console.print()
        error_console.print("Check the values in your .env file or environment.")
        error_console.print("See .env.example for a template.")
        raise typer.Exit(1)

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.redacted_display().items():
        display_value = str(value) if value is not None else "[dim]not set[/dim]"
        table.add_row(key, display_value)

    console.print(table)

    console.print()
    providers = settings.available_providers
    if providers:
        console.print(f"[bold]Available LLM Providers:[/bold] {', '.join(providers)}")
    else:
        console.print("[yellow]No LLM providers configured. Analyses will use mock results.[/yellow]")

    console.print()


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"idea-analysis version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
