"""
Structured logging for the idea analysis system.

Provides:
- Context variables for analysis_id, agent and stage
- JSONFormatter for machine-readable log files
- A rich console handler that prefixes records with the active context
- ContextLogger, which accepts structured keyword fields on every call
- setup_logging() and get_logger()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

import orjson
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

ROOT_LOGGER_NAME = "ia"

_analysis_id_var: ContextVar[str | None] = ContextVar("analysis_id", default=None)
_agent_var: ContextVar[str | None] = ContextVar("agent", default=None)
_stage_var: ContextVar[str | None] = ContextVar("stage", default=None)


def get_analysis_id() -> str | None:
    """Get the current analysis ID from context."""
    return _analysis_id_var.get()


def get_agent() -> str | None:
    """Get the current agent name from context."""
    return _agent_var.get()


def get_stage() -> str | None:
    """Get the current stage from context."""
    return _stage_var.get()


def _current_context() -> dict[str, str]:
    context: dict[str, str] = {}
    for key, var in (
        ("analysis_id", _analysis_id_var),
        ("agent", _agent_var),
        ("stage", _stage_var),
    ):
        value = var.get()
        if value:
            context[key] = value
    return context


@contextmanager
def log_context(
    analysis_id: str | None = None,
    agent: str | None = None,
    stage: str | None = None,
) -> Generator[None, None, None]:
    """Scope logging context to a block.

    Args:
        analysis_id: Analysis record ID to attach to records.
        agent: Agent name to attach to records.
        stage: Stage key to attach to records.

    Yields:
        None. Context variables are restored on exit.
    """
    tokens = []
    if analysis_id is not None:
        tokens.append((_analysis_id_var, _analysis_id_var.set(analysis_id)))
    if agent is not None:
        tokens.append((_agent_var, _agent_var.set(agent)))
    if stage is not None:
        tokens.append((_stage_var, _stage_var.set(stage)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class JSONFormatter(logging.Formatter):
    """JSON Lines formatter for log files."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as one JSON line."""
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_obj.update(_current_context())

        if hasattr(record, "extra"):
            log_obj["extra"] = record.extra

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(log_obj, default=str).decode("utf-8")


class ContextRichHandler(RichHandler):
    """Rich handler that includes the active context in console output."""

    def get_level_text(self, record: logging.LogRecord) -> Text:
        """Prefix the level with analysis, stage and agent markers."""
        level_text = super().get_level_text(record)

        parts: list[str] = []
        analysis_id = get_analysis_id()
        stage = get_stage()
        agent = get_agent()

        if analysis_id:
            short_id = analysis_id.split("_")[-1][:8]
            parts.append(f"[dim]{short_id}[/dim]")
        if stage:
            parts.append(f"[cyan]{stage}[/cyan]")
        if agent:
            parts.append(f"[magenta]{agent}[/magenta]")

        if parts:
            return Text.from_markup(f"{level_text} {' '.join(parts)}")

        return level_text


class ContextLogger:
    """Logger wrapper that takes structured fields as keyword arguments.

    ``logger.info("Stage completed", stage="summary", fell_back=False)``
    attaches the keywords and the active context to the record.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        """Get the logger name."""
        return self._logger.name

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        exc_info: bool = False,
        **kwargs: Any,
    ) -> None:
        extra = kwargs.pop("extra", {})
        extra.update(_current_context())

        for key in list(kwargs.keys()):
            if key not in ("stack_info", "stacklevel"):
                extra[key] = kwargs.pop(key)

        self._logger.log(level, msg, *args, exc_info=exc_info, extra={"extra": extra})

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, exc_info: bool = False, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log error message with traceback."""
        self._log(logging.ERROR, msg, *args, exc_info=True, **kwargs)


_console: Console | None = None
_setup_done: bool = False


def get_console() -> Console:
    """Get the global stderr console used for log output."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | None = None,
    console_output: bool = True,
) -> None:
    """Configure JSON file logging and rich console logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to a JSON Lines log file. None disables file logging.
        console_output: Whether to log to the console.
    """
    global _setup_done

    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    if console_output:
        rich_handler = ContextRichHandler(
            console=get_console(),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=False,
        )
        rich_handler.setLevel(level)
        root_logger.addHandler(rich_handler)

    root_logger.propagate = False

    for noisy_logger in ["httpx", "httpcore", "openai", "google_genai", "aiosqlite"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    _setup_done = True


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger under the ``ia`` namespace.

    Args:
        name: Logger name (usually __name__).

    Returns:
        ContextLogger wrapper around the standard logger.
    """
    if not _setup_done:
        setup_logging()

    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return ContextLogger(logging.getLogger(name))
