"""dpl build command - generate HTML documentation."""

from pathlib import Path

import click

from docplane.build.runner import run_build
from docplane.cli.utils import load_project, reports_errors
from docplane.core.logging import clear_run_id, set_run_id
from docplane.core.progress import pluralize, status


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "-i", "--input", "inputs", multiple=True, help="Source directory (repeatable, relative to PATH)"
)
@click.option("-o", "--output", default=None, help="Output directory (relative to PATH)")
@click.option("--rebuild", is_flag=True, help="Reparse and rewrite every file")
@click.pass_context
def build_command(
    ctx: click.Context, path: Path, inputs: tuple[str, ...], output: str | None, rebuild: bool
) -> None:
    """Build documentation for a project.

    PATH is the project root (default: current directory).
    """
    root = path.resolve()
    with reports_errors():
        config, registry = load_project(
            root, ctx, inputs=list(inputs) or None, output=output
        )
        set_run_id()
        try:
            result = run_build(root, config.project, registry, rebuild=rebuild)
        finally:
            clear_run_id()

    status(
        f"{pluralize(result.files, 'file')}, {pluralize(result.parsed, 'changed file')}, "
        f"{pluralize(result.written, 'page')} written",
        style="success",
    )
    if result.removed:
        status(f"{pluralize(result.removed, 'page')} removed")
    if result.unresolved:
        status(f"{pluralize(result.unresolved, 'unresolved link')}", style="warning")
