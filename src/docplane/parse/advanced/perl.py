"""Statement extractor for Perl.

Recognizes ``package`` statements, ``sub`` definitions, ``my``/``our``/
``local`` declarations and base classes given through ``use base`` or
assignments to ``@ISA``.  Most of the work is in not being fooled by Perl's
quoting: ``q//`` style strings, regular expressions with arbitrary
delimiters, POD blocks and ``$#``/``${`` forms where punctuation belongs to a
variable rather than the code around it.
"""

from __future__ import annotations

import re

from docplane.parse.advanced.base import StatementExtractor
from docplane.parse.symbols import symbol_from_text
from docplane.parse.tokenizer import Span
from docplane.parse.topics import TopicType

_PAIRED = {"{": "}", "(": ")", "[": "]", "<": ">"}
_NAME_PART = re.compile(r"^[a-z_:]", re.IGNORECASE)
_TYPE_PART = re.compile(r"^[a-z:]", re.IGNORECASE)
_WORD_START = re.compile(r"^[a-z_]", re.IGNORECASE)
_SIGIL = re.compile(r"^[$@%*]")
_QUOTE_OPERATORS = frozenset({"q", "qq", "qx", "qw"})
_REGEXP_OPERATORS = frozenset({"m", "qr", "s", "tr", "y"})
_NOT_BEFORE_REGEXP = re.compile(r"^[a-zA-Z0-9_)\]}'\"`]")
_EXPORT_LISTS = frozenset({"@EXPORT", "@EXPORT_OK"})
_DECLARATORS = frozenset({"my", "our", "local"})
_ISA_PREFIX = re.compile(r"^[a-z0-9_:]", re.IGNORECASE)


class PerlExtractor(StatementExtractor):
    def walk(self) -> None:
        index = 0
        while not self.at_end(index):
            if (after := self.skip_whitespace(index)) != index:
                index = after
            elif (after := self._try_package(index)) is not None:
                index = after
            elif (after := self._try_base(index)) is not None:
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
            elif self.at(index).lower() == "eval":
                index += 1
            else:
                index = self.skip_rest_of_statement(index)

    @property
    def _using(self) -> tuple[tuple[str, ...], ...]:
        package = self.scopes.package
        return (package,) if package else ()

    # =========================================================================
    # Declarations
    # =========================================================================

    def _try_package(self, index: int) -> int | None:
        if self.at(index).lower() != "package":
            return None
        start = index
        index += 1
        if (after := self.skip_whitespace(index)) == index:
            return None
        index = after

        name = ""
        while not self.at_end(index) and _NAME_PART.match(self.at(index)):
            name += self.at(index)
            index += 1
        if not name:
            return None

        self.add_auto_topic(TopicType.CLASS, name, start)
        self.set_package(name, start)
        return self.skip_rest_of_statement(index)

    def _try_base(self, index: int) -> int | None:
        """Read ``use base LIST``, ``@ISA = LIST``, ``@Pkg::ISA = LIST`` or ``our @ISA = LIST``."""
        class_name = ""
        parents: list[str] | None = None

        if self.at(index).lower() == "use":
            end = self.skip_whitespace(index + 1)
            if end == index + 1 or self.at(end).lower() != "base":
                return None
            parents, end = self._try_list_of_strings(self.skip_whitespace(end + 1))
        else:
            end = index
            if self.at(end).lower() == "our":
                end = self.skip_whitespace(end + 1)
            if self.at(end) != "@":
                return None
            end += 1
            while not self.at_end(end):
                if self.at(end) == "ISA":
                    end = self.skip_whitespace(end + 1)
                    if self.at(end) == "=":
                        parents, end = self._try_list_of_strings(self.skip_whitespace(end + 1))
                    break
                if not _ISA_PREFIX.match(self.at(end)):
                    break
                class_name += self.at(end)
                end += 1

        if not parents:
            return None
        if class_name:
            class_symbol = symbol_from_text(class_name.rstrip(":"))
        else:
            class_symbol = self.scopes.package or ()
        if class_symbol:
            for parent in parents:
                self.class_parents.append((class_symbol, symbol_from_text(parent)))
        return self.skip_rest_of_statement(end)

    def _try_function(self, index: int) -> int | None:
        if self.at(index).lower() != "sub":
            return None
        start = index
        end = self.skip_whitespace(index + 1)
        if end == index + 1 or not _WORD_START.match(self.at(end)):
            return None
        name = self.at(end)
        end += 1

        while True:
            if self.at_end(end) or self.at(end) == ";":
                return None
            if self.at(end) == "{":
                break
            end = self.generic_skip(end)

        self.add_auto_topic(
            TopicType.FUNCTION,
            name,
            start,
            prototype=self.create_string(start, end),
            scope=self.scopes.package,
            using=self._using,
        )
        return self.skip_rest_of_statement(end)

    def _try_variable(self, index: int) -> int | None:
        declarator = self.at(index).lower()
        if declarator not in _DECLARATORS:
            return None
        start = index
        end = self.skip_whitespace(index + 1)
        if end == index + 1:
            return None

        type_name = ""
        if _TYPE_PART.match(self.at(end)):
            while _TYPE_PART.match(self.at(end)):
                type_name += self.at(end)
                end += 1
            if (after := self.skip_whitespace(end)) == end:
                return None
            end = after

        if self.at(end) == "(":
            names: list[str] = []
            end += 1
            while True:
                end = self.skip_whitespace(end)
                if (variable := self._try_variable_name(end)) is None:
                    return None
                name, end = variable
                names.append(name)
                end = self.skip_whitespace(end)
                if self.at(end) == ")":
                    end += 1
                    break
                if self.at(end) != ",":
                    return None
                end += 1

            suffix_start = end
            end = self._find_assignment_or_end(end)
            prefix = f"{declarator} {type_name} " if type_name else f"{declarator} "
            suffix = self.create_string(suffix_start, end)
            for name in names:
                self._add_variable(name, start, f"{prefix}{name} {suffix}")
        else:
            if (variable := self._try_variable_name(end)) is None:
                return None
            name, end = variable
            end = self._find_assignment_or_end(end)
            self._add_variable(name, start, self.create_string(start, end))
            if name in _EXPORT_LISTS and self.at(end) == "=":
                self._collect_exports(end + 1)

        return self.skip_rest_of_statement(end)

    def _add_variable(self, name: str, start: int, prototype: str) -> None:
        self.add_auto_topic(
            TopicType.VARIABLE,
            name,
            start,
            prototype=prototype,
            scope=self.scopes.package,
            using=self._using,
        )

    def _find_assignment_or_end(self, index: int) -> int:
        while not self.at_end(index) and self.at(index) not in (";", "="):
            index += 1
        return index

    def _try_variable_name(self, index: int) -> tuple[str, int] | None:
        """Read a sigiled name such as ``$foo`` or ``@bar``."""
        if not _SIGIL.match(self.at(index)):
            return None
        sigil = self.at(index)
        index = self.skip_whitespace(index + 1)
        if not _WORD_START.match(self.at(index)):
            return None
        return sigil + self.at(index), index + 1

    def _collect_exports(self, index: int) -> None:
        strings, _ = self._try_list_of_strings(index)
        if strings:
            self.exported.update(strings)

    def _try_list_of_strings(self, index: int) -> tuple[list[str] | None, int]:
        """Read a list such as ``('A', "B")`` or ``qw(A B)``, stopping at anything else.

        Returns the strings, or None if there were none, and the index after them.
        """
        index = self.skip_whitespace(index)
        strings: list[str] = []
        depth = 0
        while not self.at_end(index):
            text = self.at(index)
            if text == "(":
                depth += 1
                index += 1
            elif text == ")":
                if depth == 0:
                    break
                depth -= 1
                index += 1
            elif text == ",":
                index += 1
            else:
                operator = text.lower()
                if (string := self.try_skip_string(index)) is None:
                    break
                index, content = string
                words = self.create_string(content.start, content.end)
                if operator == "qw":
                    strings.extend(words.split())
                else:
                    strings.append(words)
            index = self.skip_whitespace(index)
        return strings or None, index

    # =========================================================================
    # Skipping
    # =========================================================================

    def is_stringed(self, index: int) -> bool:
        """Whether the token is part of a variable, as in ``$#array`` or ``${name}``."""
        return index > 0 and self.at(index - 1) == "$"

    def skip_rest_of_statement(self, index: int) -> int:
        while not self.at_end(index) and self.at(index) != ";":
            if self.at(index) == "{" and not self.is_stringed(index):
                return self.generic_skip(index)
            index = self.generic_skip(index)
        return index + 1 if not self.at_end(index) else index

    def generic_skip(self, index: int, *, regexps: bool = True) -> int:
        text = self.at(index)
        if text == "\\" and not self.at_end(index + 1) and not self.is_line_break(index + 1):
            return index + 2
        if text == "{" and not self.is_backslashed(index):
            return self.generic_skip_until_after(index + 1, "}", regexps=regexps)
        if text in ("(", "[") and not self.is_backslashed(index) and not self.is_stringed(index):
            closing = _PAIRED[text]
            index = self.generic_skip_until_after(index + 1, closing, regexps=regexps)
            while not self.at_end(index) and self.is_stringed(index - 1):
                index = self.generic_skip_until_after(index, closing, regexps=regexps)
            return index
        if (after := self.skip_whitespace(index)) != index:
            return after
        if (string := self.try_skip_string(index)) is not None:
            return string[0]
        if regexps and (after := self.try_skip_regexp(index)) is not None:
            return after
        return index + 1

    def generic_skip_until_after(self, index: int, closing: str, *, regexps: bool = True) -> int:
        while not self.at_end(index) and self.at(index) != closing:
            index = self.generic_skip(index, regexps=regexps)
        return index + 1 if not self.at_end(index) else index

    def try_skip_comment(self, index: int) -> int | None:
        text = self.at(index)
        if text == "#" and not self.is_stringed(index):
            return self.skip_rest_of_line(index)
        if (
            text == "="
            and (index == 0 or self.is_line_break(index - 1))
            and _WORD_START.match(self.at(index + 1))
        ):
            return self._skip_pod(index)
        return None

    def _skip_pod(self, index: int) -> int:
        while not self.at_end(index):
            is_cut = self.at(index) == "=" and self.at(index + 1).lower() == "cut"
            index = self.skip_rest_of_line(index)
            if is_cut:
                break
        return index

    def try_skip_string(self, index: int) -> tuple[int, Span] | None:
        if not self.is_stringed(index):
            for quote in ("'", '"', "`"):
                if (string := self.try_skip_quoted(index, quote)) is not None:
                    return string

        if self.at(index).lower() in _QUOTE_OPERATORS and (
            index == 0 or not _SIGIL.match(self.at(index - 1))
        ):
            opening_index = self.skip_whitespace(index + 1)
            opening = self.at(opening_index)
            if not opening or opening[0].isalnum() or opening in (",", "=", ";"):
                return None
            return self.try_skip_quoted(opening_index, opening, _PAIRED.get(opening, opening))
        return None

    def try_skip_regexp(self, index: int) -> int | None:
        text = self.at(index)
        operator = text.lower()
        if operator in _REGEXP_OPERATORS:
            if index > 0 and (_SIGIL.match(self.at(index - 1)) or self.at(index - 1) == "-"):
                return None
            opening_index = self.skip_whitespace(index + 1)
        elif text in ("/", "?"):
            previous = self.previous_significant(index)
            if previous and _NOT_BEFORE_REGEXP.match(previous):
                return None
            operator = "m"
            opening_index = index
        else:
            return None

        opening = self.at(opening_index)
        if not opening or re.match(r"^\w", opening) or opening in (",", ";"):
            return None
        if opening == "=" and self.at(opening_index + 1) == ">":
            return None
        closing = _PAIRED.get(opening, opening)

        index = self._regexp_skip_until_after(opening_index + 1, closing)

        if operator in ("s", "tr", "y"):
            if opening != closing:
                index = self.skip_whitespace(index)
                opening = self.at(index)
                closing = _PAIRED.get(opening, opening)
                index += 1
            if operator == "s":
                index = self.generic_skip_until_after(index, closing, regexps=False)
            else:
                while not self.at_end(index) and (
                    self.at(index) != closing or self.is_backslashed(index)
                ):
                    index += 1
                index += 1
        return index

    def _regexp_skip_until_after(self, index: int, closing: str) -> int:
        in_brackets = closing == "]"
        while not self.at_end(index) and self.at(index) != closing:
            text = self.at(index)
            if text == "\\" and not self.at_end(index + 1) and not self.is_line_break(index + 1):
                index += 2
            elif text in ("{", "(") and not self.is_backslashed(index) and not in_brackets:
                index = self._regexp_skip_until_after(index + 1, _PAIRED[text])
            elif text == "[" and not self.is_backslashed(index) and not self.is_stringed(index):
                index = self._regexp_skip_until_after(index + 1, "]")
            else:
                index += 1
        return index + 1 if not self.at_end(index) else index
