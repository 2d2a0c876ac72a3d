"""Structured logging for builds.

Every module logs snake_case events through ``get_logger(__name__)``.  The
``logging`` config section decides where events go: each output is a
destination (``stderr``, ``stdout`` or a file path), a format (``console`` or
``json``) and an optional level of its own.  Console outputs go quiet while
a progress bar is drawing; file outputs never do.

A build binds a short run ID so all events of one build can be grouped,
even when several builds append to the same log file.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from docplane.config.models import LoggingConfig, LogOutputConfig

_CONSOLE_DESTINATIONS = ("stderr", "stdout")

_LEVELS = logging.getLevelNamesMapping()

# First file output of the current configuration, shown in error messages
_log_file_path: Path | None = None


# =============================================================================
# Run correlation
# =============================================================================


def set_run_id(run_id: str | None = None) -> str:
    """Bind a run ID to every following event; generates one when omitted."""
    rid = run_id or uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(run_id=rid)
    return rid


def get_run_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("run_id")


def clear_run_id() -> None:
    structlog.contextvars.unbind_contextvars("run_id")


def get_log_file_path() -> Path | None:
    """The log file detailed events are written to, if any."""
    return _log_file_path


# =============================================================================
# Configuration
# =============================================================================


class ConsoleSuppressingFilter(logging.Filter):
    """Drops records while a progress bar owns the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from docplane.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _level(name: str | None, default: int = logging.INFO) -> int:
    if name is None:
        return default
    level = _LEVELS.get(name.upper())
    return level if isinstance(level, int) else default


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]


def _handler_for(output: LogOutputConfig) -> logging.Handler:
    handler: logging.Handler
    if output.destination == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    elif output.destination == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    if output.destination in _CONSOLE_DESTINATIONS:
        handler.addFilter(ConsoleSuppressingFilter())
    return handler


def _formatter_for(output: LogOutputConfig) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        is_console = output.destination in _CONSOLE_DESTINATIONS
        renderer = structlog.dev.ConsoleRenderer(
            colors=is_console and sys.stderr.isatty(), pad_event_to=0, pad_level=False
        )
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer, foreign_pre_chain=_shared_processors()
    )


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog events to the configured outputs.

    Without ``config`` a single stderr output at ``level`` is used.  Calling
    this again replaces the previous outputs.
    """
    global _log_file_path
    from docplane.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level)

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in root.handlers:
        if isinstance(old, logging.FileHandler):
            old.close()
    root.handlers.clear()
    root.setLevel(root_level)

    _log_file_path = None
    for output in config.outputs:
        handler = _handler_for(output)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter_for(output))
        root.addHandler(handler)
        if _log_file_path is None and output.destination not in _CONSOLE_DESTINATIONS:
            _log_file_path = Path(output.destination)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """A lazy logger; it picks up the configuration in effect when it logs.

    Modules call this at import time, before ``configure_logging`` has run.
    """
    if name:
        return structlog.get_logger(logger=name)  # type: ignore[no-any-return]
    return structlog.get_logger()  # type: ignore[no-any-return]
