"""Statement extractor for JavaScript."""

from __future__ import annotations

import re

from docplane.parse.advanced.base import StatementExtractor
from docplane.parse.tokenizer import Span
from docplane.parse.topics import TopicType

DECLARATION_ENDERS = frozenset({";", "}", "{", "var", "let", "const", "function"})
VARIABLE_KEYWORDS = frozenset({"var", "let", "const"})

_IDENTIFIER_START = re.compile(r"^[a-z$_]", re.IGNORECASE)
_IDENTIFIER_PART = re.compile(r"^[a-z0-9$_]", re.IGNORECASE)
_REGEXP_PRECEDERS = frozenset(":=([,!&|?{};")
_REGEXP_FLAGS = re.compile(r"^[dgimsuyv]+$")


class JavaScriptExtractor(StatementExtractor):
    """Finds ``function name(...)`` and ``var``/``let``/``const`` declarations.

    Function bodies are skipped whole, so only declarations at file level or
    inside plain blocks become auto-topics.
    """

    def walk(self) -> None:
        index = 0
        while not self.at_end(index):
            if (after := self.skip_whitespace(index)) != index:
                index = after
            elif (after := self._try_function(index)) is not None:
                index = after
            elif (after := self._try_variable(index)) is not None:
                index = after
            elif self.at(index) == "{":
                self.start_scope("}", index)
                index += 1
            elif self.at(index) == "}":
                if self.scopes.closing_symbol == "}":
                    self.end_scope(index)
                index += 1
            else:
                index = self._skip_to_next_statement(index)

    def _try_identifier(self, index: int) -> tuple[str, int] | None:
        """Read a possibly dotted identifier such as ``a.b.c``."""
        identifier = ""
        expecting_start = True
        while not self.at_end(index):
            text = self.at(index)
            if expecting_start:
                if not _IDENTIFIER_START.match(text):
                    break
                expecting_start = False
            elif text == ".":
                expecting_start = True
            elif not _IDENTIFIER_PART.match(text):
                break
            identifier += text
            index += 1

        if not identifier or expecting_start:
            return None
        return identifier, index

    def _try_function(self, index: int) -> int | None:
        if self.at(index) != "function":
            return None
        start = index

        index = self.skip_whitespace(index + 1)
        if (identifier := self._try_identifier(index)) is None:
            return None
        name, index = identifier

        index = self.skip_whitespace(index)
        if self.at(index) != "(":
            return None
        index = self.generic_skip_until_after(index + 1, ")")
        index = self.skip_whitespace(index)

        prototype = self.create_string(start, index)
        if self.at(index) == "{":
            index = self.generic_skip(index)
        elif self.at(index) not in DECLARATION_ENDERS and not self.at_end(index):
            return None

        self.add_auto_topic(
            TopicType.FUNCTION, name, start, prototype=prototype, scope=self.scopes.package
        )
        return index

    def _try_variable(self, index: int) -> int | None:
        if self.at(index) not in VARIABLE_KEYWORDS:
            return None
        start = index
        index = self.skip_whitespace(index + 1)
        end_of_keyword = index

        names: list[str] = []
        while True:
            if (identifier := self._try_identifier(index)) is None:
                return None
            name, index = identifier
            index = self.skip_whitespace(index)

            if self.at(index) == "=":
                index = self.generic_skip(index)
                while (
                    not self.at_end(index)
                    and self.at(index) != ","
                    and self.at(index) not in DECLARATION_ENDERS
                ):
                    index = self.generic_skip(index)

            names.append(name)
            if self.at(index) == ",":
                index = self.skip_whitespace(index + 1)
            elif self.at(index) in DECLARATION_ENDERS or self.at_end(index):
                break
            else:
                return None

        prefix = self.create_string(start, end_of_keyword)
        for name in names:
            self.add_auto_topic(
                TopicType.VARIABLE,
                name,
                start,
                prototype=f"{prefix} {name}",
                scope=self.scopes.package,
            )
        return index

    def _skip_to_next_statement(self, index: int) -> int:
        if self.at(index) == ";":
            return index + 1
        index = self.generic_skip(index)
        while not self.at_end(index) and self.at(index) not in DECLARATION_ENDERS:
            index = self.generic_skip(index)
        return index

    def try_skip_string(self, index: int) -> tuple[int, Span] | None:
        return (
            self.try_skip_quoted(index, "'")
            or self.try_skip_quoted(index, '"')
            or self.try_skip_quoted(index, "`")
        )

    def try_skip_regexp(self, index: int) -> int | None:
        """Skip a regular expression literal.

        A ``/`` starts one only after an operator or opening bracket;
        elsewhere it is division.
        """
        if self.at(index) != "/":
            return None
        previous = self.previous_significant(index)
        if previous and previous not in _REGEXP_PRECEDERS and previous != "return":
            return None

        index += 1
        while not self.at_end(index) and self.at(index) != "/":
            if self.is_line_break(index):
                return index
            index += 2 if self.at(index) == "\\" else 1
        if not self.at_end(index):
            index += 1
            if _REGEXP_FLAGS.match(self.at(index)):
                index += 1
        return index
