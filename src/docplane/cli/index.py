"""dpl index command - print the symbol index."""

from pathlib import Path

import click

from docplane.build.html import bucket_heading
from docplane.build.runner import BuildSession
from docplane.cli.utils import load_project, reports_errors
from docplane.parse.parser import Parser
from docplane.parse.symbols import to_text
from docplane.parse.topics import topic_type_by_name
from docplane.project import Project
from docplane.symbols.index import IndexElement


def _locations(element: IndexElement) -> list[str]:
    if element.packages is not None:
        return [loc for child in element.packages for loc in _locations(child)]
    if element.files is not None:
        return [loc for child in element.files for loc in _locations(child)]
    package = to_text(element.package)
    where = f"{package} " if package else ""
    return [f"{where}({element.file})"]


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("-t", "--type", "type_name", default=None, help="Only list this topic type")
@click.pass_context
def index_command(ctx: click.Context, path: Path, type_name: str | None) -> None:
    """Print the alphabetic index of documented symbols.

    PATH is the project root (default: current directory).
    """
    root = path.resolve()
    with reports_errors():
        config, registry = load_project(root, ctx)
        topic_type = topic_type_by_name(type_name).base_type if type_name else None
        project = Project(root, config.project, registry)
        session = BuildSession(Parser(registry, config.project))
        session.update([], project.discover())
        buckets = session.table.index(topic_type, languages=session.languages)

    for number, bucket in enumerate(buckets):
        if not bucket:
            continue
        click.echo(bucket_heading(number))
        for element in bucket:
            click.echo(f"  {element.text}  {', '.join(_locations(element))}")
