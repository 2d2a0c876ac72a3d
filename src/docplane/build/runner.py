"""Build orchestration.

A build runs in phases:

1. Discover sources and compare them with the last build's state.
2. Put back the symbol table the last build left behind, from the
   contributions recorded per file in the state.
3. Undefine deleted files and reparse new or changed ones.  Unchanged files
   are not parsed.
4. Write pages for the files that need them.  A page needs rewriting when
   its source changed or when any of its links now resolves differently;
   an unchanged file is read again only in the second case.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path

from docplane.build.html import HtmlBuilder
from docplane.config.models import ProjectConfig
from docplane.core.languages import LanguageDescriptor, LanguageRegistry
from docplane.core.logging import get_logger
from docplane.core.progress import progress, task
from docplane.parse.parser import ParsedFile, Parser
from docplane.parse.simple import read_source
from docplane.parse.symbols import to_text
from docplane.parse.topics import TopicType
from docplane.project import (
    DefinitionState,
    FileState,
    Project,
    ProjectState,
    ReferenceState,
    SourceFile,
)
from docplane.symbols.reference import ReferenceString
from docplane.symbols.table import SymbolTable

log = get_logger(__name__)


@dataclass(slots=True)
class BuildResult:
    files: int = 0
    parsed: int = 0
    relinked: int = 0
    written: int = 0
    removed: int = 0
    symbols: int = 0
    unresolved: int = 0
    pages: list[Path] = field(default_factory=list)


class BuildSession:
    """Parsed files and the symbol table built from them.

    ``update`` applies a set of changes: deleted files are undefined and
    every file to parse is reparsed in place, so one session can follow a
    project through several rounds of edits.  ``restore`` puts back a file's
    contributions from a previous build without parsing it.
    """

    def __init__(self, parser: Parser) -> None:
        self.parser = parser
        self.table = SymbolTable()
        self.parsed: dict[str, ParsedFile] = {}
        self.languages: dict[str, LanguageDescriptor] = {}

    def remove(self, relative: str) -> None:
        self.table.undefine_file(relative)
        self.parsed.pop(relative, None)
        self.languages.pop(relative, None)

    def read(self, source: SourceFile) -> ParsedFile:
        """Parse a file for display only; the table is left alone."""
        return self.parser.parse(source.relative, read_source(source.path), source.language)

    def add(self, source: SourceFile) -> ParsedFile:
        parsed = self.read(source)
        self.parser.parse_for_information(parsed, self.table)
        self.parsed[source.relative] = parsed
        self.languages[source.relative] = source.language
        return parsed

    def update(self, deleted: list[str], sources: list[SourceFile]) -> None:
        for relative in deleted:
            self.remove(relative)
        for source in progress(sources, desc="Parsing"):
            self.add(source)

    def restore(
        self, relative: str, state: FileState, language: LanguageDescriptor | None = None
    ) -> None:
        table = self.table
        table.watch_file_for_changes(relative)
        for definition in state.symbols:
            table.add_symbol(
                definition.symbol,
                relative,
                definition.type,
                definition.prototype,
                definition.summary,
            )
        for reference in state.references:
            table.add_reference(reference.symbol, reference.scope, reference.using, relative)
        for class_symbol, parent in state.parents:
            table.add_class_parent(class_symbol, parent, relative)
        table.analyze_changes()
        if language is not None:
            self.languages[relative] = language

    def file_state(self, relative: str, digest: str, title: str) -> FileState:
        """Everything the next build needs to know about ``relative``."""
        return FileState(
            digest=digest,
            title=title,
            links=self.link_digest(relative),
            symbols=[
                DefinitionState(
                    symbol=symbol,
                    type=definition.type,
                    prototype=definition.prototype,
                    summary=definition.summary,
                )
                for symbol, definition in self.table.file_symbols(relative).items()
            ],
            references=[
                ReferenceState(symbol=key.symbol, scope=key.scope, using=key.using)
                for key in self.table.file_references(relative)
            ],
            parents=self.table.file_parents(relative),
        )

    def _target_of(self, key: ReferenceString) -> str:
        target = self.table.reference(key.symbol, key.scope, key.using)
        resolved = self.table.lookup(target) if target is not None else None
        if target is None or resolved is None:
            return "-"
        return f"{resolved.file}#{to_text(target)}"

    def link_digest(self, relative: str) -> str:
        """Digest of what each link in a file currently resolves to.

        Class pages also list parents and children, so the hierarchy of each
        class the file defines counts as links too.
        """
        sha256 = hashlib.sha256()
        for key in self.table.file_references(relative):
            sha256.update(f"{key}\0{self._target_of(key)}\n".encode())
        for symbol, definition in self.table.file_symbols(relative).items():
            if definition.type is not TopicType.CLASS:
                continue
            for kind, related in (
                ("parent", self.table.parents_of(symbol)),
                ("child", self.table.children_of(symbol)),
            ):
                for other in related:
                    target = self.table.lookup(other)
                    where = target.file if target is not None else "-"
                    line = f"{kind}\0{to_text(symbol)}\0{to_text(other)}\0{where}\n"
                    sha256.update(line.encode())
        return sha256.hexdigest()

    def unresolved_links(self) -> int:
        current = self.table.references()
        return sum(
            1
            for relative in self.table.files()
            for key in self.table.file_references(relative)
            if current.get(key) is None
        )


def run_build(
    root: Path,
    config: ProjectConfig,
    registry: LanguageRegistry,
    *,
    rebuild: bool = False,
) -> BuildResult:
    """Build documentation for the project at ``root``.

    Raises:
        SourceError: If a source file can't be read.
        OutputError: If the output directory can't be written.
    """
    project = Project(root, config, registry)
    session = BuildSession(Parser(registry, config))
    result = BuildResult()

    with task("Discovering files"):
        sources = project.discover()
        state = project.load_state()
        changes = project.changes(sources, state, rebuild=rebuild)
    result.files = len(sources)

    languages = {source.relative: source.language for source in sources}
    with task("Parsing files"):
        for relative, previous in state.files.items():
            session.restore(relative, previous, languages.get(relative))
        session.update(changes.deleted, changes.to_parse)
    result.parsed = len(changes.to_parse)
    result.symbols = len(session.table)

    builder = HtmlBuilder(project.output_dir, session.table)
    new_state = ProjectState()

    with task("Writing pages"):
        for relative in changes.deleted:
            builder.remove_file(relative)
            result.removed += 1

        for source in sources:
            relative = source.relative
            parsed = session.parsed.get(relative)
            previous = state.files.get(relative)
            page = project.output_dir / f"{relative}.html"
            if parsed is None and (
                previous is None
                or previous.links != session.link_digest(relative)
                or not page.exists()
            ):
                parsed = session.read(source)
                result.relinked += 1
            if parsed is not None:
                result.pages.append(builder.build_file(parsed))
                result.written += 1
                title = parsed.default_menu_title
            else:
                title = previous.title if previous is not None else ""
            new_state.files[relative] = session.file_state(relative, source.digest, title)

        titles = {relative: entry.title for relative, entry in new_state.files.items()}
        buckets = session.table.index(languages=session.languages)
        result.pages.append(builder.build_index(buckets, titles))

    project.save_state(new_state)
    result.unresolved = session.unresolved_links()
    log.info(
        "build_complete",
        files=result.files,
        parsed=result.parsed,
        relinked=result.relinked,
        written=result.written,
        removed=result.removed,
        symbols=result.symbols,
        unresolved=result.unresolved,
    )
    return result
