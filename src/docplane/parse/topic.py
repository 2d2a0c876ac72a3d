"""The Topic record produced by the extractors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docplane.parse.symbols import Symbol, join, symbol_from_text
from docplane.parse.topics import TopicType

if TYPE_CHECKING:
    from docplane.parse.advanced.scope import ScopeChange


@dataclass(slots=True)
class Topic:
    """One documented entity.

    ``scope`` is the package the topic appeared in (None is global).  The
    externally visible ``package`` and ``symbol`` follow two special cases:
    a File topic's symbol comes from its title alone while its package stays
    available for resolving links in its body, and a Class topic reports its
    own symbol as its package so classes nest by title.
    """

    type: TopicType
    title: str
    scope: Symbol | None = None
    using: tuple[Symbol, ...] = ()
    prototype: str | None = None
    summary: str | None = None
    body: str | None = None
    line_number: int = 1
    is_exported: bool = False
    exported_entries: frozenset[str] = field(default_factory=frozenset)
    is_auto: bool = False

    @property
    def title_symbol(self) -> Symbol:
        return symbol_from_text(self.title)

    @property
    def symbol(self) -> Symbol:
        if self.type is TopicType.FILE:
            return self.title_symbol
        return join(self.scope, self.title_symbol)

    @property
    def package(self) -> Symbol | None:
        if self.type is TopicType.CLASS:
            return self.symbol
        return self.scope or None

    def attach_prototype(self, prototype: str) -> None:
        self.prototype = prototype


@dataclass(slots=True)
class Extraction:
    """What an extractor produces for one file.

    ``auto_topics`` is None for extractors that don't detect declarations by
    themselves.  ``scope_record`` lists the package changes seen while walking
    the code, ``exported`` holds titles that are also visible globally and
    ``class_parents`` pairs each class with a base class it declares.
    """

    topics: list[Topic] = field(default_factory=list)
    auto_topics: list[Topic] | None = None
    scope_record: list[ScopeChange] | None = None
    exported: set[str] | None = None
    class_parents: list[tuple[Symbol, Symbol]] | None = None
