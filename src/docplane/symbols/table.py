"""The project-wide symbol table.

Holds every symbol definition and every reference across the project, plus
the parents that classes declare, and keeps each reference's current
interpretation up to date as files come and go.

Updates are per file: ``watch_file_for_changes`` starts collecting what a
file contributes, ``add_symbol``, ``add_reference`` and ``add_class_parent``
record it, and ``analyze_changes`` retracts whatever the file contributed
last time but not this time.  Reparsing an unchanged file therefore leaves
the table exactly as it was.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from docplane.core.languages import LanguageDescriptor
from docplane.core.logging import get_logger
from docplane.parse.prototype import make_sortable_symbol
from docplane.parse.symbols import Symbol, last_identifier, symbol_from_text, to_text
from docplane.parse.topics import INDEXABLE_TYPES, TopicType
from docplane.symbols.index import BUCKET_COUNT, IndexElement, bucket_of, sort_key
from docplane.symbols.reference import (
    Reference,
    ReferenceString,
    ReferenceTarget,
    SymbolDefinition,
    interpretations_of,
)

log = get_logger(__name__)


@dataclass(slots=True)
class SymbolEntry:
    """A symbol's definitions by file and the references that could mean it."""

    definitions: dict[str, SymbolDefinition] = field(default_factory=dict)
    references: set[ReferenceString] = field(default_factory=set)

    @property
    def is_defined(self) -> bool:
        return bool(self.definitions)

    @property
    def is_empty(self) -> bool:
        return not self.definitions and not self.references


@dataclass(slots=True)
class FileContributions:
    symbols: set[Symbol] = field(default_factory=set)
    references: set[ReferenceString] = field(default_factory=set)
    parents: set[tuple[Symbol, Symbol]] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.symbols or self.references or self.parents)


class SymbolTable:
    """Symbols, references and their resolution for one project."""

    def __init__(self) -> None:
        self._symbols: dict[Symbol, SymbolEntry] = {}
        self._references: dict[ReferenceString, Reference] = {}
        # class -> parent -> files declaring it
        self._parents: dict[Symbol, dict[Symbol, set[str]]] = {}
        self._files: dict[str, FileContributions] = {}
        self._watched_file: str | None = None
        self._watched = FileContributions()

    # =========================================================================
    # Queries
    # =========================================================================

    def __len__(self) -> int:
        return sum(1 for entry in self._symbols.values() if entry.is_defined)

    def __contains__(self, symbol: Symbol) -> bool:
        return self.is_defined(symbol)

    def is_defined(self, symbol: Symbol) -> bool:
        entry = self._symbols.get(symbol)
        return entry is not None and entry.is_defined

    def symbols(self) -> Iterator[Symbol]:
        """Every defined symbol, in no particular order."""
        return (symbol for symbol, entry in self._symbols.items() if entry.is_defined)

    def files(self) -> Iterator[str]:
        return iter(self._files)

    def file_symbols(self, file: str) -> dict[Symbol, SymbolDefinition]:
        """The definitions ``file`` contributes, by symbol."""
        contributions = self._files.get(file)
        if contributions is None:
            return {}
        return {
            symbol: self._symbols[symbol].definitions[file]
            for symbol in sorted(contributions.symbols)
        }

    def file_references(self, file: str) -> list[ReferenceString]:
        """The references ``file`` contains, in a stable order."""
        contributions = self._files.get(file)
        if contributions is None:
            return []
        return sorted(
            contributions.references,
            key=lambda key: (key.symbol, key.scope or (), key.using),
        )

    def file_parents(self, file: str) -> list[tuple[Symbol, Symbol]]:
        """The class and parent pairs ``file`` declares."""
        contributions = self._files.get(file)
        return sorted(contributions.parents) if contributions is not None else []

    def parents_of(self, class_symbol: Symbol) -> list[Symbol]:
        return sorted(self._parents.get(class_symbol, ()))

    def children_of(self, class_symbol: Symbol) -> list[Symbol]:
        return sorted(
            child for child, parents in self._parents.items() if class_symbol in parents
        )

    def definitions(self, symbol: Symbol) -> dict[str, SymbolDefinition]:
        entry = self._symbols.get(symbol)
        return dict(entry.definitions) if entry is not None else {}

    def lookup(self, symbol: Symbol, file: str | None = None) -> ReferenceTarget | None:
        """The definition to link to for ``symbol``.

        Prefers the definition in ``file`` when there is one.
        """
        entry = self._symbols.get(symbol)
        if entry is None or not entry.is_defined:
            return None
        if file is not None and file in entry.definitions:
            chosen = file
        else:
            chosen = min(entry.definitions, key=sort_key)
        definition = entry.definitions[chosen]
        return ReferenceTarget(
            symbol, chosen, definition.type, definition.prototype, definition.summary
        )

    def reference(
        self,
        symbol: Symbol,
        scope: Symbol | None = None,
        using: tuple[Symbol, ...] = (),
    ) -> Symbol | None:
        """The symbol a link resolves to, or None when nothing matches.

        Registered references answer from their tracked interpretation;
        others are resolved on the spot without changing the table.
        """
        key = ReferenceString(symbol, scope or None, tuple(using))
        if (tracked := self._references.get(key)) is not None:
            return tracked.current
        candidate = Reference(interpretations=interpretations_of(key))
        candidate.choose(self.is_defined)
        return candidate.current

    def resolve(
        self, link_text: str, scope: Symbol | None = None, using: tuple[Symbol, ...] = ()
    ) -> ReferenceTarget | None:
        """Resolve link text as written, e.g. ``Foo.Bar()``, to its definition."""
        symbol = symbol_from_text(link_text)
        if not symbol:
            return None
        target = self.reference(symbol, scope, using)
        return self.lookup(target) if target is not None else None

    def references(self) -> dict[ReferenceString, Symbol | None]:
        """Every tracked reference and what it currently resolves to."""
        return {key: reference.current for key, reference in self._references.items()}

    # =========================================================================
    # Updates
    # =========================================================================

    def watch_file_for_changes(self, file: str) -> None:
        """Start recording what ``file`` contributes."""
        if self._watched_file is not None:
            self.analyze_changes()
        self._watched_file = file
        self._watched = FileContributions()

    def add_symbol(
        self,
        symbol: Symbol,
        file: str,
        topic_type: TopicType,
        prototype: str | None = None,
        summary: str | None = None,
    ) -> None:
        """Record that ``file`` defines ``symbol``.

        While a file is watched, a repeated symbol keeps its first definition.
        """
        if not symbol:
            return
        if file == self._watched_file:
            if symbol in self._watched.symbols:
                return
            self._watched.symbols.add(symbol)
        else:
            self._files.setdefault(file, FileContributions()).symbols.add(symbol)

        entry = self._symbols.setdefault(symbol, SymbolEntry())
        newly_defined = not entry.is_defined
        entry.definitions[file] = SymbolDefinition(topic_type, prototype, summary)
        log.debug("symbol_defined", symbol=to_text(symbol), file=file, type=topic_type.key)
        if newly_defined:
            self._reinterpret(entry.references)

    def add_reference(
        self,
        symbol: Symbol,
        scope: Symbol | None,
        using: tuple[Symbol, ...],
        file: str,
    ) -> None:
        """Record that ``file`` links to ``symbol`` from the given context."""
        if not symbol:
            return
        key = ReferenceString(symbol, scope or None, tuple(using))
        if file == self._watched_file:
            self._watched.references.add(key)
        else:
            self._files.setdefault(file, FileContributions()).references.add(key)

        reference = self._references.get(key)
        if reference is None:
            reference = Reference(interpretations=interpretations_of(key))
            self._references[key] = reference
            for interpretation in reference.interpretations:
                self._symbols.setdefault(interpretation, SymbolEntry()).references.add(key)
            reference.choose(self.is_defined)
            self._log_resolution(key, reference)
        reference.files.add(file)

    def add_class_parent(self, class_symbol: Symbol, parent: Symbol, file: str) -> None:
        """Record that ``file`` declares ``parent`` as a base of ``class_symbol``."""
        if not class_symbol or not parent:
            return
        pair = (class_symbol, parent)
        if file == self._watched_file:
            self._watched.parents.add(pair)
        else:
            self._files.setdefault(file, FileContributions()).parents.add(pair)
        self._parents.setdefault(class_symbol, {}).setdefault(parent, set()).add(file)
        log.debug(
            "class_parent_added", symbol=to_text(class_symbol), parent=to_text(parent), file=file
        )

    def analyze_changes(self) -> None:
        """Retract what the watched file no longer contributes."""
        file = self._watched_file
        if file is None:
            return
        previous = self._files.get(file, FileContributions())
        current = self._watched
        self._watched_file = None
        self._watched = FileContributions()

        for symbol in previous.symbols - current.symbols:
            self._delete_symbol(symbol, file)
        for key in previous.references - current.references:
            self._delete_reference(key, file)
        for pair in previous.parents - current.parents:
            self._delete_parent(pair, file)

        if current:
            self._files[file] = current
        else:
            self._files.pop(file, None)

    def undefine_file(self, file: str) -> None:
        """Remove every symbol and reference ``file`` contributed."""
        if self._watched_file == file:
            self._watched = FileContributions()
        else:
            self.watch_file_for_changes(file)
        self.analyze_changes()
        log.debug("files_undefined", file=file)

    # =========================================================================
    # Internals
    # =========================================================================

    def _delete_symbol(self, symbol: Symbol, file: str) -> None:
        entry = self._symbols.get(symbol)
        if entry is None or entry.definitions.pop(file, None) is None:
            return
        if not entry.is_defined:
            self._reinterpret(entry.references)
        if entry.is_empty:
            del self._symbols[symbol]

    def _delete_reference(self, key: ReferenceString, file: str) -> None:
        reference = self._references.get(key)
        if reference is None:
            return
        reference.files.discard(file)
        if reference.files:
            return
        del self._references[key]
        for interpretation in reference.interpretations:
            entry = self._symbols.get(interpretation)
            if entry is None:
                continue
            entry.references.discard(key)
            if entry.is_empty:
                del self._symbols[interpretation]

    def _delete_parent(self, pair: tuple[Symbol, Symbol], file: str) -> None:
        class_symbol, parent = pair
        parents = self._parents.get(class_symbol)
        if parents is None or parent not in parents:
            return
        parents[parent].discard(file)
        if not parents[parent]:
            del parents[parent]
        if not parents:
            del self._parents[class_symbol]

    def _reinterpret(self, keys: set[ReferenceString]) -> None:
        for key in list(keys):
            reference = self._references.get(key)
            if reference is not None and reference.choose(self.is_defined):
                self._log_resolution(key, reference)

    def _log_resolution(self, key: ReferenceString, reference: Reference) -> None:
        log.debug(
            "reference_resolved",
            reference=to_text(key.symbol),
            scope=to_text(key.scope),
            target=to_text(reference.current) if reference.current else None,
            score=reference.current_score,
        )

    # =========================================================================
    # Index
    # =========================================================================

    def index(
        self,
        topic_type: TopicType | None = None,
        languages: Mapping[str, LanguageDescriptor] | None = None,
    ) -> list[list[IndexElement]]:
        """Build the index, grouped into 28 buckets: symbols, digits, then A to Z.

        With ``topic_type`` only definitions of that type are listed;
        otherwise every indexable type is.  ``languages`` maps files to their
        language so sigils and ignored prefixes are left out of the sort.
        """
        languages = languages or {}
        by_text: dict[str, IndexElement] = {}

        for symbol, entry in self._symbols.items():
            for file, definition in sorted(entry.definitions.items(), key=lambda d: sort_key(d[0])):
                if topic_type is None:
                    if definition.type not in INDEXABLE_TYPES:
                        continue
                elif definition.type is not topic_type:
                    continue

                text = last_identifier(symbol)
                package = symbol[:-1] or None
                element = by_text.get(text)
                if element is None:
                    by_text[text] = IndexElement(
                        text,
                        sort_text=self._sort_text(text, definition.type, languages.get(file)),
                        package=package,
                        file=file,
                        type=definition.type,
                        prototype=definition.prototype,
                        summary=definition.summary,
                    )
                else:
                    element.merge(
                        package, file, definition.type, definition.prototype, definition.summary
                    )

        buckets: list[list[IndexElement]] = [[] for _ in range(BUCKET_COUNT)]
        for element in by_text.values():
            element.sort()
            buckets[bucket_of(element.sort_text)].append(element)
        for bucket in buckets:
            bucket.sort(key=lambda element: sort_key(element.sort_text))
        return buckets

    @staticmethod
    def _sort_text(
        text: str, topic_type: TopicType, language: LanguageDescriptor | None
    ) -> str:
        if language is None:
            return text
        sortable = make_sortable_symbol(language, text, topic_type)
        for prefix in language.ignored_prefixes_for(topic_type.key):
            if sortable.startswith(prefix) and len(sortable) > len(prefix):
                return sortable[len(prefix) :]
        return sortable
