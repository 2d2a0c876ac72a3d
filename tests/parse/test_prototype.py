"""Tests for parse/prototype.py module.

Covers:
- find_end() and the false-positive strategies
- end_of_prototype() per language quirk
- format_prototype() splitting
- normalize_prototype() and make_sortable_symbol()
"""

from __future__ import annotations

import pytest

from docplane.core.languages import LanguageRegistry
from docplane.parse.prototype import (
    FormattedPrototype,
    braces_before_parameter_block_end,
    end_of_prototype,
    find_end,
    format_prototype,
    make_sortable_symbol,
    normalize_prototype,
    remove_extenders,
    semicolons_in_parens,
)
from docplane.parse.topics import TopicType


class TestFindEnd:
    """find_end() tests."""

    def test_earliest_symbol_wins(self) -> None:
        """The first ender of any kind ends the prototype."""
        assert find_end("void f() { x; }", [";", "{"]) == 9

    def test_no_ender(self) -> None:
        """Returns -1 when no ender appears."""
        assert find_end("void f()", [";"]) == -1

    def test_keyword_ender_needs_word_boundaries(self) -> None:
        """A keyword inside an identifier doesn't count."""
        assert find_end("procedure is_done is begin", ["is"]) == 18

    def test_line_break_after_extender_is_skipped(self) -> None:
        """A line ending in the extender continues the prototype."""
        text = "Sub Foo(a, _\n  b)\nEnd"
        assert find_end(text, ["\n"], line_extender="_") == 17

    def test_false_positives_are_skipped(self) -> None:
        """Listed indexes are never accepted."""
        assert find_end("a;b;", [";"], false_positives={1}) == 3


class TestFalsePositiveStrategies:
    """Index sets that suppress enders."""

    def test_semicolons_in_parens(self) -> None:
        """Semicolons separating Pascal parameters are false positives."""
        assert semicolons_in_parens("function Foo(a, b; c);") == {17}

    def test_semicolons_in_unclosed_parens(self) -> None:
        """An unclosed parenthesis swallows every later semicolon."""
        assert semicolons_in_parens("f(a; b; c") == {3, 6}

    def test_braces_before_parameter_block_end(self) -> None:
        """Braces of a braced parameter block are false positives."""
        assert braces_before_parameter_block_end("proc Foo {a {b 1}} {") == {9, 12}


class TestEndOfPrototype:
    """end_of_prototype() per language."""

    def test_pascal_semicolons_in_parens(self, registry: LanguageRegistry) -> None:
        """The closing semicolon ends, not the parameter separator."""
        pascal = registry.by_name("Pascal")
        text = "function Foo(a, b; c);\n"
        assert end_of_prototype(pascal, TopicType.FUNCTION, text) == 21

    def test_pascal_directives_are_folded_in(self, registry: LanguageRegistry) -> None:
        """Directives after the semicolon stay part of the prototype."""
        pascal = registry.by_name("Pascal")
        text = "procedure Foo; virtual; abstract;\nbegin"
        end = end_of_prototype(pascal, TopicType.FUNCTION, text)
        assert text[:end] == "procedure Foo; virtual; abstract"

    def test_pascal_incomplete_directive_reads_on(self, registry: LanguageRegistry) -> None:
        """A trailing directive without its semicolon isn't finished yet."""
        pascal = registry.by_name("Pascal")
        assert end_of_prototype(pascal, TopicType.FUNCTION, "procedure Foo; virtual") == -1

    def test_pascal_directives_after_parameters(self, registry: LanguageRegistry) -> None:
        """Directives fold in after a parameter list with its own semicolons."""
        pascal = registry.by_name("Pascal")
        text = "function MyFunction(a: integer; b: integer); virtual; abstract;"
        end = end_of_prototype(pascal, TopicType.FUNCTION, text)
        assert text[:end] == "function MyFunction(a: integer; b: integer); virtual; abstract"

    def test_pascal_unknown_directive_stops_folding(self, registry: LanguageRegistry) -> None:
        """Folding stops before a word that isn't a directive."""
        pascal = registry.by_name("Pascal")
        text = "function MyFunction(a: integer; b: integer); virtual; foo;"
        end = end_of_prototype(pascal, TopicType.FUNCTION, text)
        assert text[:end] == "function MyFunction(a: integer; b: integer); virtual"

    def test_pascal_variables_ignore_directives(self, registry: LanguageRegistry) -> None:
        """Directive folding only applies to functions."""
        pascal = registry.by_name("Pascal")
        assert end_of_prototype(pascal, TopicType.VARIABLE, "x: integer; virtual;") == 10

    def test_tcl_braced_parameters(self, registry: LanguageRegistry) -> None:
        """The parameter block's braces don't end a Tcl proc."""
        tcl = registry.by_name("Tcl")
        assert end_of_prototype(tcl, TopicType.FUNCTION, "proc Foo {a b} {\n body") == 15

    def test_sql_marker_parameters(self, registry: LanguageRegistry) -> None:
        """Commas between @-parameters don't end a procedure."""
        sql = registry.by_name("SQL")
        text = "create procedure foo @a int, @b int as begin"
        assert end_of_prototype(sql, TopicType.FUNCTION, text) == 36

    def test_sql_keyword_after_marker(self, registry: LanguageRegistry) -> None:
        """A parameter named like a keyword isn't an ender."""
        sql = registry.by_name("SQL")
        text = "create procedure foo @is int as begin"
        assert text[: end_of_prototype(sql, TopicType.FUNCTION, text)] == (
            "create procedure foo @is int "
        )

    def test_type_without_enders(self, registry: LanguageRegistry) -> None:
        """Types without an ender kind have no prototype."""
        c = registry.by_name("C/C++")
        assert end_of_prototype(c, TopicType.CLASS, "class Foo {") == -1


class TestRemoveExtenders:
    """remove_extenders() tests."""

    def test_joins_extended_lines(self) -> None:
        """Trailing extenders are dropped and lines joined with spaces."""
        assert remove_extenders("a = 1 + \\\n  2", "\\") == "a = 1 +    2"

    def test_without_extender(self) -> None:
        """Text is unchanged when the language has no extender."""
        assert remove_extenders("a\nb", None) == "a\nb"


class TestFormatPrototype:
    """format_prototype() tests."""

    def test_parenthesized_parameters(self, registry: LanguageRegistry) -> None:
        """Parameters are split after their separators."""
        formatted = format_prototype(
            registry.by_name("C/C++"), TopicType.FUNCTION, "int add(int a,\n  int b)"
        )
        assert formatted == FormattedPrototype("int add", "(", ("int a,", "int b"), ")", None)

    def test_single_parameter_is_not_split(self, registry: LanguageRegistry) -> None:
        """Without a separator the prototype stays whole."""
        formatted = format_prototype(registry.by_name("C/C++"), TopicType.FUNCTION, "void f()")
        assert formatted == FormattedPrototype("void f()")
        assert not formatted.has_params

    def test_variables_are_collapsed(self, registry: LanguageRegistry) -> None:
        """Non-function prototypes just collapse whitespace."""
        formatted = format_prototype(registry.by_name("C/C++"), TopicType.VARIABLE, "int  x\n= 5")
        assert formatted == FormattedPrototype("int x = 5")

    def test_tcl_braces(self, registry: LanguageRegistry) -> None:
        """Tcl parameters are split on spaces, nested braces kept whole."""
        formatted = format_prototype(
            registry.by_name("Tcl"), TopicType.FUNCTION, "proc Foo {a b {c 1}}"
        )
        assert formatted.pre == "proc Foo "
        assert formatted.params == ("a", "b", "{c 1}")

    def test_tcl_spaced_braces(self, registry: LanguageRegistry) -> None:
        """Spaces inside the braces don't make extra parameters."""
        formatted = format_prototype(
            registry.by_name("Tcl"), TopicType.FUNCTION, "name { param1 param2 { seconds 20 } }"
        )
        assert formatted.pre == "name "
        assert formatted.params == ("param1", "param2", "{ seconds 20 }")

    def test_sql_marker_params(self, registry: LanguageRegistry) -> None:
        """@-parameters without parentheses are split on the marker."""
        formatted = format_prototype(
            registry.by_name("SQL"), TopicType.FUNCTION, "PROCEDURE Foo @a int, @b int"
        )
        assert formatted.pre == "PROCEDURE Foo"
        assert formatted.params == ("@a int,", "@b int")

    def test_pascal_directive_suffix(self, registry: LanguageRegistry) -> None:
        """A Pascal semicolon after the parameters moves into the close symbol."""
        formatted = format_prototype(
            registry.by_name("Pascal"), TopicType.FUNCTION, "procedure Foo(a; b); virtual"
        )
        assert formatted.params == ("a;", "b")
        assert formatted.close == "); "
        assert formatted.post == "virtual"


class TestNormalizePrototype:
    """normalize_prototype() for JavaScript."""

    @pytest.mark.parametrize(
        ("prototype", "topic_type", "expected"),
        [
            ("var foo = function(a)", TopicType.FUNCTION, "function foo(a)"),
            ("foo: function (a, b)", TopicType.FUNCTION, "function foo(a, b)"),
            ("function a.b.c(x)", TopicType.FUNCTION, "function c(x)"),
            ("bar", TopicType.FUNCTION, "function bar()"),
            ("bar", TopicType.VARIABLE, "var bar"),
            ("function  add(a,\n   b)", TopicType.FUNCTION, "function add(a, b)"),
        ],
    )
    def test_javascript_rewrites(
        self,
        registry: LanguageRegistry,
        prototype: str,
        topic_type: TopicType,
        expected: str,
    ) -> None:
        """Assignment and object-literal forms become function declarations."""
        js = registry.by_name("JavaScript")
        assert normalize_prototype(js, prototype, topic_type) == expected

    def test_other_languages_untouched(self, registry: LanguageRegistry) -> None:
        """Languages without a normalizer keep their prototypes verbatim."""
        c = registry.by_name("C/C++")
        assert normalize_prototype(c, "int  f( )", TopicType.FUNCTION) == "int  f( )"


class TestMakeSortableSymbol:
    """make_sortable_symbol() tests."""

    def test_strips_variable_sigil(self, registry: LanguageRegistry) -> None:
        """Perl variables sort by name, not sigil."""
        perl = registry.by_name("Perl")
        assert make_sortable_symbol(perl, "$count", TopicType.VARIABLE) == "count"
        assert make_sortable_symbol(perl, "@items", TopicType.VARIABLE_LIST) == "items"

    def test_functions_keep_their_names(self, registry: LanguageRegistry) -> None:
        """Only variables lose sigils."""
        perl = registry.by_name("Perl")
        assert make_sortable_symbol(perl, "$count", TopicType.FUNCTION) == "$count"
