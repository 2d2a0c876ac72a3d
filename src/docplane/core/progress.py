"""Terminal feedback for builds.

Everything here writes to stderr through one shared rich console, so stdout
stays clean for commands like ``dpl index`` whose output may be piped.

- ``status`` prints a one-line message with a marker.
- ``task`` wraps a build phase and reports how long it took.
- ``progress`` draws a bar while iterating over many files on a terminal
  and is a plain passthrough everywhere else.

While a bar is drawing, console log handlers are muted so log lines don't
tear it apart.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TypeVar

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from docplane.core.logging import get_logger

log = get_logger(__name__)

# Fewer items than this finish too quickly for a bar to help
BAR_MIN_ITEMS = 50

_console = Console(stderr=True)

_MARKERS = {
    "success": "[green]✓[/green] ",
    "warning": "[yellow]![/yellow] ",
    "error": "[red]✗[/red] ",
    "info": "  ",
    "none": "",
}

_console_muted: ContextVar[bool] = ContextVar("console_muted", default=False)


def get_console() -> Console:
    return _console


def is_console_suppressed() -> bool:
    return _console_muted.get()


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Mute console log handlers for the duration of the block."""
    token = _console_muted.set(True)
    try:
        yield
    finally:
        _console_muted.reset(token)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``1 file``, ``3 files``; pass ``plural`` for irregular words."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print one status line to stderr."""
    _console.print(f"{' ' * indent}{_MARKERS.get(style, '')}{message}", highlight=False)


@contextmanager
def task(name: str) -> Iterator[None]:
    """Report a build phase as done (with its duration) or failed."""
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        elapsed = time.perf_counter() - start
        status(f"{name} failed: {e}", style="error")
        log.error("phase_failed", phase=name, elapsed_s=round(elapsed, 3), error=str(e))
        raise
    elapsed = time.perf_counter() - start
    status(f"{name} ({elapsed:.1f}s)", style="success")
    log.debug("phase_done", phase=name, elapsed_s=round(elapsed, 3))


T = TypeVar("T")


def _wants_bar(total: int | None) -> bool:
    return total is not None and total >= BAR_MIN_ITEMS and _console.is_terminal


def progress(
    items: Iterable[T],
    *,
    desc: str = "Working",
    total: int | None = None,
) -> Iterator[T]:
    """Yield ``items``, drawing a bar on a terminal when there are many."""
    if total is None and hasattr(items, "__len__"):
        total = len(items)  # type: ignore[arg-type]

    if not _wants_bar(total):
        yield from items
        return

    columns = (
        TextColumn("  {task.description}"),
        BarColumn(bar_width=30),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
    )
    with suppress_console_logs(), Progress(*columns, console=_console, transient=True) as bar:
        bar_task = bar.add_task(desc, total=total)
        for item in items:
            yield item
            bar.advance(bar_task)
