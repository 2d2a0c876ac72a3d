"""Shared machinery for the scope-aware statement extractors.

A statement extractor reads a file twice.  The comment pass hands every
comment run to the ``CommentParser`` exactly like the line-oriented
extractor does.  The token pass walks the whole file once, skipping
whitespace, comments and strings, recognizing declarations and maintaining
the scope stack.  Each recognized declaration becomes an auto-topic carrying
the exact source text of the declaration as its prototype.

Cursor positions are plain token indexes.  ``try_*`` helpers return the index
after what they recognized, or None when nothing matched; ``skip_*`` helpers
always return an index, unchanged when there was nothing to skip.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docplane.core.languages import LanguageDescriptor
from docplane.core.logging import get_logger
from docplane.parse.advanced.scope import ScopeStack
from docplane.parse.comments import CommentParser
from docplane.parse.prototype import normalize_prototype
from docplane.parse.simple import scan_lines, split_lines
from docplane.parse.symbols import Symbol, symbol_from_text
from docplane.parse.tokenizer import Span, TokenBuffer, TokenKind, tokenize
from docplane.parse.topic import Extraction, Topic
from docplane.parse.topics import TopicType

log = get_logger(__name__)

_BRACKETS = {"{": "}", "(": ")", "[": "]"}


class StatementExtractor(ABC):
    """Base class for extractors that understand a language's block structure."""

    def __init__(self, language: LanguageDescriptor, comment_parser: CommentParser) -> None:
        self.language = language
        self.comment_parser = comment_parser
        self.tokens = TokenBuffer("", ())
        self.scopes = ScopeStack()
        self.auto_topics: list[Topic] = []
        self.exported: set[str] = set()
        self.class_parents: list[tuple[Symbol, Symbol]] = []
        self._line_comments = frozenset(language.line_comments)
        self._block_comments = dict(language.block_comments)

    # =========================================================================
    # Entry point
    # =========================================================================

    def parse_text(self, text: str) -> Extraction:
        topics: list[Topic] = []
        for run in scan_lines(split_lines(text), self.language):
            if run.is_comment:
                self.comment_parser.parse_comment(run.lines, run.line_number, topics)

        self.tokens = tokenize(text, self.language)
        self.scopes = ScopeStack()
        self.auto_topics = []
        self.exported = set()
        self.class_parents = []

        self.walk()

        if len(self.scopes):
            log.debug(
                "scope_unclosed_at_eof",
                language=self.language.name,
                depth=len(self.scopes),
                closing=self.scopes.closing_symbol,
            )
        self.scopes.clear()

        return Extraction(
            topics,
            auto_topics=self.auto_topics,
            scope_record=self.scopes.record or None,
            exported=self.exported or None,
            class_parents=self.class_parents or None,
        )

    @abstractmethod
    def walk(self) -> None:
        """Walk ``self.tokens`` from start to end."""

    # =========================================================================
    # Token access
    # =========================================================================

    def at(self, index: int) -> str:
        """Text of the token at ``index``, or "" past the end."""
        token = self.tokens.get(index)
        return token.text if token is not None else ""

    def at_end(self, index: int) -> bool:
        return index >= len(self.tokens)

    def line_at(self, index: int) -> int:
        return self.tokens.line_of(index)

    def is_line_break(self, index: int) -> bool:
        token = self.tokens.get(index)
        return token is not None and token.kind is TokenKind.LINE_BREAK

    def is_blank(self, index: int) -> bool:
        token = self.tokens.get(index)
        return token is not None and token.kind in (TokenKind.WHITESPACE, TokenKind.LINE_BREAK)

    def create_string(self, start: int, end: int) -> str:
        return self.tokens.text(Span(start, end))

    def is_backslashed(self, index: int) -> bool:
        """Whether an odd number of backslashes directly precedes the token."""
        count = 0
        index -= 1
        while index >= 0 and self.at(index) == "\\":
            count += 1
            index -= 1
        return count % 2 == 1

    def is_at_sequence(self, index: int, *sequence: str) -> bool:
        return all(self.at(index + offset) == text for offset, text in enumerate(sequence))

    def previous_significant(self, index: int) -> str:
        """Text of the closest token before ``index`` that isn't whitespace."""
        index -= 1
        while index >= 0 and self.is_blank(index):
            index -= 1
        return self.at(index) if index >= 0 else ""

    # =========================================================================
    # Skipping
    # =========================================================================

    def skip_rest_of_line(self, index: int) -> int:
        while not self.at_end(index) and not self.is_line_break(index):
            index += 1
        return index + 1 if not self.at_end(index) else index

    def skip_until_after_sequence(self, index: int, *sequence: str) -> int:
        while not self.at_end(index) and not self.is_at_sequence(index, *sequence):
            index += 1
        if self.is_at_sequence(index, *sequence):
            index += len(sequence)
        return index

    def try_skip_comment(self, index: int) -> int | None:
        text = self.at(index)
        if text in self._line_comments:
            return self.skip_rest_of_line(index)
        if text in self._block_comments:
            return self.skip_until_after_sequence(index + 1, self._block_comments[text])
        return None

    def skip_whitespace(self, index: int) -> int:
        """Skip whitespace, line breaks and comments."""
        while not self.at_end(index):
            if self.is_blank(index):
                index += 1
            elif (after := self.try_skip_comment(index)) is not None:
                index = after
            else:
                break
        return index

    def try_skip_quoted(
        self, index: int, opening: str, closing: str | None = None
    ) -> tuple[int, Span] | None:
        """Skip a string delimited by ``opening`` and ``closing``.

        Returns the index after the string and the span of its content.  An
        unterminated string runs to the end of the file.
        """
        if self.at(index) != opening:
            return None
        closing = closing or opening
        end = index + 1
        while not self.at_end(end):
            if self.at(end) == closing and not self.is_backslashed(end):
                return end + 1, Span(index + 1, end)
            end += 1
        return end, Span(index + 1, end)

    def try_skip_string(self, index: int) -> tuple[int, Span] | None:
        """Skip a string literal.  The default knows single and double quotes."""
        return self.try_skip_quoted(index, "'") or self.try_skip_quoted(index, '"')

    def try_skip_regexp(self, index: int) -> int | None:
        return None

    def generic_skip(self, index: int) -> int:
        """Skip one token, or one whole bracketed group, string or comment."""
        text = self.at(index)
        if text in _BRACKETS:
            return self.generic_skip_until_after(index + 1, _BRACKETS[text])
        if (after := self.skip_whitespace(index)) != index:
            return after
        if (string := self.try_skip_string(index)) is not None:
            return string[0]
        if (after := self.try_skip_regexp(index)) is not None:
            return after
        return index + 1

    def generic_skip_until_after(self, index: int, closing: str) -> int:
        while not self.at_end(index) and self.at(index) != closing:
            index = self.generic_skip(index)
        return index + 1 if not self.at_end(index) else index

    # =========================================================================
    # Scopes and auto-topics
    # =========================================================================

    def start_scope(
        self, closing_symbol: str, index: int, *, package: Symbol | None = None
    ) -> None:
        self.scopes.push(closing_symbol, self.line_at(index), package=package)

    def end_scope(self, index: int) -> None:
        self.scopes.pop(self.line_at(index))

    def set_package(self, name: str, index: int) -> None:
        self.scopes.set_package(symbol_from_text(name) or None, self.line_at(index))

    def add_auto_topic(
        self,
        topic_type: TopicType,
        title: str,
        start: int,
        *,
        prototype: str | None = None,
        scope: Symbol | None = None,
        using: tuple[Symbol, ...] = (),
    ) -> Topic:
        if prototype is not None:
            prototype = normalize_prototype(self.language, prototype, topic_type).strip()
        topic = Topic(
            type=topic_type,
            title=title,
            scope=scope,
            using=using,
            prototype=prototype or None,
            line_number=self.line_at(start),
            is_auto=True,
        )
        self.auto_topics.append(topic)
        return topic
