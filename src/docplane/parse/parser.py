"""Per-file parsing pipeline.

Runs the language's extractor over one file and post-processes the topic
list: packages are repaired from the scope record, auto-detected
declarations are merged with documentation topics, package changes get
delineator topics, exported symbols are marked and auto-groups inserted.
``parse_for_information`` additionally feeds the symbol table, class
parents included.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from docplane.config.constants import DEEP_PATH_PARTS
from docplane.config.models import ProjectConfig
from docplane.core.languages import ExtractorKind, LanguageDescriptor
from docplane.core.logging import get_logger
from docplane.parse.advanced.base import StatementExtractor
from docplane.parse.advanced.javascript import JavaScriptExtractor
from docplane.parse.advanced.perl import PerlExtractor
from docplane.parse.advanced.scope import ScopeChange
from docplane.parse.comments import CommentParser
from docplane.parse.markup import first_sentence, links_in, list_entries
from docplane.parse.prototype import make_sortable_symbol
from docplane.parse.simple import SimpleExtractor, read_source
from docplane.parse.symbols import Symbol, join, symbol_from_text, to_text
from docplane.parse.topic import Extraction, Topic
from docplane.parse.topics import Scope, TopicType

if TYPE_CHECKING:
    from docplane.core.languages import LanguageRegistry
    from docplane.symbols.table import SymbolTable

log = get_logger(__name__)

_STATEMENT_EXTRACTORS: dict[ExtractorKind, type[StatementExtractor]] = {
    ExtractorKind.JAVASCRIPT: JavaScriptExtractor,
    ExtractorKind.PERL: PerlExtractor,
}


@dataclass(slots=True)
class ParsedFile:
    """Topics of one file in display order."""

    file: str
    language: LanguageDescriptor
    topics: list[Topic] = field(default_factory=list)
    default_menu_title: str = ""
    class_parents: list[tuple[Symbol, Symbol]] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(self.topics)


def _opens_or_ends_scope(topic_type: TopicType) -> bool:
    return topic_type.info.scope in (Scope.START, Scope.END)


# =============================================================================
# Pipeline steps
# =============================================================================


def repair_packages(
    topics: list[Topic], auto_topics: list[Topic], scope_record: list[ScopeChange]
) -> None:
    """Assign documentation topics the package in effect at their line.

    Comments are parsed without knowing the code's scope, so the package a
    comment parser assigned is replaced by the one from the scope record.  A
    Class or Section topic sets the package itself until the next scope
    change or auto-topic says otherwise.
    """
    topic_index = auto_index = scope_index = 0
    current: Symbol | None = None
    in_fake_package = False

    while topic_index < len(topics):
        topic = topics[topic_index]
        change = scope_record[scope_index] if scope_index < len(scope_record) else None
        auto = auto_topics[auto_index] if auto_index < len(auto_topics) else None

        if (
            change is not None
            and change.line_number <= topic.line_number
            and (auto is None or change.line_number <= auto.line_number)
        ):
            current = change.scope
            scope_index += 1
            in_fake_package = False
        elif auto is not None and auto.line_number <= topic.line_number:
            if in_fake_package:
                current = auto.package
                in_fake_package = False
            auto_index += 1
        else:
            if _opens_or_ends_scope(topic.type):
                current = topic.package
                in_fake_package = True
            else:
                topic.scope = current
            topic_index += 1


def merge_auto_topics(
    topics: list[Topic],
    auto_topics: list[Topic],
    language: LanguageDescriptor,
    *,
    documented_only: bool = False,
) -> list[Topic]:
    """Merge auto-detected declarations into the documentation topics.

    A documentation topic of the same type whose title contains the
    declaration's name takes over its prototype (and package, unless the
    topic opens a scope).  Declarations already documented by an entry of a
    preceding list topic are dropped.  Everything else is inserted in line
    order unless ``documented_only`` is set.
    """
    merged: list[Topic] = []
    listed: dict[TopicType, set[str]] = {
        TopicType.FUNCTION: set(),
        TopicType.VARIABLE: set(),
        TopicType.PROPERTY: set(),
    }
    topic_index = auto_index = 0

    while topic_index < len(topics) and auto_index < len(auto_topics):
        topic = topics[topic_index]
        auto = auto_topics[auto_index]

        if auto.line_number < topic.line_number:
            if auto.type is TopicType.FUNCTION and auto.title in listed[TopicType.FUNCTION]:
                listed[TopicType.FUNCTION].discard(auto.title)
            elif auto.type is TopicType.VARIABLE and auto.title in listed[TopicType.VARIABLE]:
                listed[TopicType.VARIABLE].discard(auto.title)
            elif (
                auto.type in (TopicType.PROPERTY, TopicType.VARIABLE)
                and auto.title in listed[TopicType.PROPERTY]
            ):
                listed[TopicType.PROPERTY].discard(auto.title)
            elif not documented_only:
                merged.append(auto)
            auto_index += 1

        elif (
            topic.type is auto.type
            or (topic.type is TopicType.PROPERTY and auto.type is TopicType.VARIABLE)
        ) and make_sortable_symbol(language, auto.title, auto.type) in topic.title:
            topic.type = auto.type
            topic.prototype = auto.prototype
            if topic.type.info.scope is not Scope.START:
                topic.scope = auto.scope
            merged.append(topic)
            topic_index += 1
            auto_index += 1

        else:
            if topic.type.is_list and topic.type.base_type in listed:
                listed[topic.type.base_type].update(name for name, _ in list_entries(topic.body))
            merged.append(topic)
            topic_index += 1

    merged.extend(topics[topic_index:])
    if not documented_only:
        merged.extend(auto_topics[auto_index:])
    return merged


def add_package_delineators(topics: list[Topic], language: LanguageDescriptor) -> list[Topic]:
    """Insert a topic wherever the package changes without a Class or Section topic.

    Returning to global scope gets a "Global" Section.  Entering a package
    for the first time gets a Class topic named after it; re-entering one
    gets a "(continued)" copy of the topic that opened it.
    """
    result: list[Topic] = []
    current: Symbol | None = None
    used: dict[Symbol, tuple[str, TopicType]] = {}

    for topic in topics:
        package = topic.package
        if package != current:
            current = package
            if topic.type.info.scope is Scope.START:
                if package is not None:
                    used[package] = (topic.title, topic.type)
            elif topic.type.info.scope is not Scope.END:
                result.append(_delineator(package, used, topic.line_number, language))
        result.append(topic)
    return result


def _delineator(
    package: Symbol | None,
    used: dict[Symbol, tuple[str, TopicType]],
    line_number: int,
    language: LanguageDescriptor,
) -> Topic:
    if package is None:
        return Topic(type=TopicType.SECTION, title="Global", line_number=line_number)

    body: str | None = None
    summary: str | None = None
    if package in used:
        title, topic_type = used[package]
        body = "<p>(continued)</p>"
        summary = "(continued)"
    else:
        title, topic_type = to_text(package, language.package_separator), TopicType.CLASS
        used[package] = (title, topic_type)

    outer = package[: len(package) - len(symbol_from_text(title))]
    return Topic(
        type=topic_type,
        title=title,
        scope=outer or None,
        summary=summary,
        body=body,
        line_number=line_number,
    )


def match_exported_symbols(topics: Iterable[Topic], exported: set[str]) -> None:
    """Flag topics and list entries whose names the file exports.

    Each exported name is matched at most once.
    """
    remaining = set(exported)
    for topic in topics:
        if topic.type.is_list:
            entries = {name for name, _ in list_entries(topic.body) if name in remaining}
            if entries:
                remaining -= entries
                topic.is_exported = True
                topic.exported_entries = topic.exported_entries | entries
        elif topic.title in remaining:
            remaining.discard(topic.title)
            topic.is_exported = True


def make_auto_groups(topics: list[Topic], level: str) -> list[Topic]:
    """Insert Group topics named after each run of one auto-groupable type.

    Works per package run and leaves runs that contain a manual Group alone.
    """
    result = list(topics)
    if len(result) < 2:
        return result

    index = 0
    start = 0
    current: Symbol | None = None
    while index < len(result):
        if result[index].package != current:
            index += _make_auto_groups_for(result, start, index, level)
            current = result[index].package
            start = index
        index += 1
    _make_auto_groups_for(result, start, index, level)
    return result


def _make_auto_groups_for(topics: list[Topic], start: int, end: int, level: str) -> int:
    if start == 0 and topics[0].type is TopicType.FILE:
        start += 1
    if start >= end:
        return 0
    if any(topics[i].type is TopicType.GROUP for i in range(start, end)):
        return 0

    current_type: TopicType | None = None
    inserted = 0
    while start < end:
        topic = topics[start]
        topic_type = topic.type.base_type
        if topic_type is not current_type and topic_type.is_auto_groupable(level):
            topics.insert(
                start,
                Topic(
                    type=TopicType.GROUP,
                    title=topic_type.info.plural_name,
                    scope=topic.package,
                    using=topic.using,
                    line_number=topic.line_number,
                ),
            )
            current_type = topic_type
            start += 1
            end += 1
            inserted += 1
        elif _opens_or_ends_scope(topic_type):
            current_type = None
        start += 1
    return inserted


def default_menu_title(topics: list[Topic], relative_path: str) -> str:
    """Pick the file's title, prepending a File topic when no topic can serve.

    The first topic names the file when it is the only one or is a type that
    can title a page.  Otherwise a File topic named after the path is
    inserted, shortened to ``.../parent/dir/file`` for deep paths.
    """
    if not topics:
        return relative_path
    if len(topics) == 1 or topics[0].type.info.page_title_if_first:
        return topics[0].title

    parts = PurePosixPath(relative_path).parts
    if len(parts) > DEEP_PATH_PARTS:
        name = "/".join(("...", *parts[-DEEP_PATH_PARTS:]))
    else:
        name = relative_path
    topics.insert(0, Topic(type=TopicType.FILE, title=name, line_number=1))
    return name


# =============================================================================
# Parser
# =============================================================================


class Parser:
    """Parses source files into topic lists.

    Holds the language registry and project settings for a run; a fresh
    comment parser is used for every file.
    """

    def __init__(self, registry: LanguageRegistry, config: ProjectConfig | None = None) -> None:
        self.registry = registry
        self.config = config or ProjectConfig()

    def extractor_for(
        self, language: LanguageDescriptor
    ) -> SimpleExtractor | StatementExtractor:
        comment_parser = CommentParser(self.config.tab_length)
        extractor_class = _STATEMENT_EXTRACTORS.get(language.extractor)
        if extractor_class is None:
            return SimpleExtractor(language, comment_parser)
        return extractor_class(language, comment_parser)

    def parse(
        self, path: str | PurePosixPath, source: str, language: LanguageDescriptor
    ) -> ParsedFile:
        """Parse source text that belongs to ``path`` (a project-relative path)."""
        file = str(path)
        extraction = self.extractor_for(language).parse_text(source)
        topics = self._post_process(extraction, language)
        title = default_menu_title(topics, file)
        log.debug("file_parsed", file=file, language=language.name, topics=len(topics))
        return ParsedFile(file, language, topics, title, list(extraction.class_parents or ()))

    def parse_path(self, root: Path, relative: str) -> ParsedFile | None:
        """Parse a file on disk.  Returns None when its language is unknown.

        Raises:
            SourceError: If the file can't be read.
        """
        path = root / relative
        language = self.registry.language_of(path)
        if language is None:
            return None
        return self.parse(relative, read_source(path), language)

    def _post_process(self, extraction: Extraction, language: LanguageDescriptor) -> list[Topic]:
        topics = extraction.topics
        if extraction.auto_topics is not None:
            if extraction.scope_record:
                repair_packages(topics, extraction.auto_topics, extraction.scope_record)
            topics = merge_auto_topics(
                topics,
                extraction.auto_topics,
                language,
                documented_only=self.config.documented_only,
            )
            topics = add_package_delineators(topics, language)
        if extraction.exported:
            match_exported_symbols(topics, extraction.exported)
        if self.config.auto_group != "none":
            topics = make_auto_groups(topics, self.config.auto_group)
        return topics

    def parse_for_information(self, parsed: ParsedFile, table: SymbolTable) -> None:
        """Register a parsed file's symbols and references.

        The table retracts whatever the file contributed before, so calling
        this again after the file changed leaves no stale definitions.
        """
        table.watch_file_for_changes(parsed.file)

        for topic in parsed.topics:
            table.add_symbol(topic.symbol, parsed.file, topic.type, topic.prototype, topic.summary)
            if topic.is_exported and not topic.type.is_list and topic.scope:
                table.add_symbol(
                    topic.title_symbol, parsed.file, topic.type, topic.prototype, topic.summary
                )

            if topic.type.is_list:
                for text, description in list_entries(topic.body):
                    entry = symbol_from_text(text)
                    summary = first_sentence(description) or None
                    table.add_symbol(
                        join(topic.package, entry), parsed.file, topic.type.base_type, None, summary
                    )
                    if text in topic.exported_entries and topic.package:
                        table.add_symbol(entry, parsed.file, topic.type.base_type, None, summary)

            for link in links_in(topic.body):
                table.add_reference(
                    symbol_from_text(link), topic.package, topic.using, parsed.file
                )

        for class_symbol, parent in parsed.class_parents:
            table.add_class_parent(class_symbol, parent, parsed.file)

        table.analyze_changes()
