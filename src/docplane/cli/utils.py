"""CLI utilities."""

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click
from rich.markup import escape

from docplane.config import DocPlaneConfig, load_config
from docplane.core.errors import DocPlaneError
from docplane.core.languages import LanguageRegistry
from docplane.core.logging import configure_logging, get_log_file_path, get_logger
from docplane.core.progress import get_console

log = get_logger(__name__)


@contextmanager
def reports_errors() -> Iterator[None]:
    """Print a DocPlaneError and exit with status 1.

    Anything else propagates so genuine bugs keep their traceback.
    """
    try:
        yield
    except DocPlaneError as e:
        log.error("command_failed", error=e.error_name, message=e.message, **e.details)
        message = f"[red]Error:[/red] {escape(e.message)}"
        if log_file := get_log_file_path():
            message += f" See {log_file} for details."
        get_console().print(message, highlight=False)
        sys.exit(1)


def load_project(
    path: Path, ctx: click.Context, **overrides: Any
) -> tuple[DocPlaneConfig, LanguageRegistry]:
    """Load a project's config and build its language registry.

    ``overrides`` are project settings given on the command line; None
    values are ignored.

    Raises:
        ConfigError: If the config or a language override is invalid.
    """
    config = load_config(path)
    project = {key: value for key, value in overrides.items() if value is not None}
    if project:
        config.project = config.project.model_copy(update=project)
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)
    return config, LanguageRegistry.with_overrides(config.languages)
