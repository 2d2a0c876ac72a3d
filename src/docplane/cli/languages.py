"""dpl languages command - list supported languages."""

from pathlib import Path

import click
from rich.table import Table

from docplane.cli.utils import load_project, reports_errors
from docplane.core.progress import get_console


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def languages_command(ctx: click.Context, path: Path) -> None:
    """List the languages DocPlane recognizes, including configured ones.

    PATH is the project root whose config is applied (default: current directory).
    """
    with reports_errors():
        _, registry = load_project(path.resolve(), ctx)

    table = Table(title="Languages")
    table.add_column("Name", style="cyan")
    table.add_column("Extensions")
    table.add_column("Comments")
    table.add_column("Support")

    for language in sorted(registry, key=lambda lang: lang.name.lower()):
        comments = [*language.line_comments, *(f"{o} {c}" for o, c in language.block_comments)]
        table.add_row(
            language.name,
            " ".join(sorted(language.extensions)),
            "  ".join(comments) or "(whole file)",
            "full" if language.has_full_support else "basic",
        )

    get_console().print(table)
