"""Core module exports."""

from docplane.core.errors import (
    ConfigError,
    DocPlaneError,
    ErrorCode,
    OutputError,
    SourceError,
)
from docplane.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from docplane.core.progress import pluralize, progress, status, task

__all__ = [
    # Errors
    "ConfigError",
    "DocPlaneError",
    "ErrorCode",
    "OutputError",
    "SourceError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "pluralize",
    "progress",
    "status",
    "task",
]
