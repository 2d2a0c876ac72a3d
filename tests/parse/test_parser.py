"""Tests for parse/parser.py module.

Covers:
- Pipeline steps: package repair, auto-topic merging, delineators,
  exports, auto-groups and menu titles
- Parser.parse() end to end per extractor
- Parser.parse_for_information() feeding the symbol table
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docplane.config.models import ProjectConfig
from docplane.core.languages import LanguageRegistry
from docplane.parse.parser import (
    Parser,
    add_package_delineators,
    default_menu_title,
    make_auto_groups,
    match_exported_symbols,
)
from docplane.parse.topic import Topic
from docplane.parse.topics import TopicType
from docplane.symbols.reference import ReferenceString
from docplane.symbols.table import SymbolTable


@pytest.fixture
def parser(registry: LanguageRegistry) -> Parser:
    return Parser(registry, ProjectConfig(auto_group="none"))


def _function(title: str, scope: tuple[str, ...] | None = None, line: int = 1) -> Topic:
    return Topic(type=TopicType.FUNCTION, title=title, scope=scope, line_number=line)


# =============================================================================
# Pipeline steps
# =============================================================================


class TestPackageDelineators:
    """add_package_delineators() tests."""

    def test_package_changes_get_topics(self, registry: LanguageRegistry) -> None:
        """Entering, leaving and re-entering a package insert topics."""
        topics = [
            _function("f", ("A", "B")),
            _function("g"),
            _function("h", ("A", "B")),
        ]
        result = add_package_delineators(topics, registry.by_name("C/C++"))

        assert [(t.type, t.title) for t in result] == [
            (TopicType.CLASS, "A::B"),
            (TopicType.FUNCTION, "f"),
            (TopicType.SECTION, "Global"),
            (TopicType.FUNCTION, "g"),
            (TopicType.CLASS, "A::B"),
            (TopicType.FUNCTION, "h"),
        ]
        assert result[0].symbol == ("A", "B")
        assert result[4].summary == "(continued)"

    def test_class_topic_opens_package_itself(self, registry: LanguageRegistry) -> None:
        """An explicit Class topic needs no delineator."""
        topics = [
            Topic(type=TopicType.CLASS, title="Foo"),
            _function("bar", ("Foo",)),
        ]
        result = add_package_delineators(topics, registry.by_name("C/C++"))
        assert len(result) == 2


class TestMatchExportedSymbols:
    """match_exported_symbols() tests."""

    def test_topics_and_list_entries(self) -> None:
        """Exported names flag their topic or list entry once."""
        greet = _function("greet")
        helpers = Topic(
            type=TopicType.FUNCTION_LIST,
            title="Helpers",
            body="<dl><ds>a</ds><dd>A.</dd><ds>b</ds><dd>B.</dd></dl>",
        )
        other = _function("other")
        duplicate = _function("greet")

        match_exported_symbols([greet, helpers, other, duplicate], {"greet", "a"})

        assert greet.is_exported
        assert helpers.is_exported
        assert helpers.exported_entries == frozenset({"a"})
        assert not other.is_exported
        assert not duplicate.is_exported


class TestMakeAutoGroups:
    """make_auto_groups() tests."""

    def test_groups_runs_of_types(self) -> None:
        """Each run of one type gets a group named after it."""
        topics = [
            _function("f1"),
            _function("f2"),
            Topic(type=TopicType.VARIABLE, title="v"),
        ]
        result = make_auto_groups(topics, "full")
        assert [(t.type, t.title) for t in result] == [
            (TopicType.GROUP, "Functions"),
            (TopicType.FUNCTION, "f1"),
            (TopicType.FUNCTION, "f2"),
            (TopicType.GROUP, "Variables"),
            (TopicType.VARIABLE, "v"),
        ]

    def test_leading_file_topic_is_skipped(self) -> None:
        """A File topic at the top stays above the groups."""
        topics = [Topic(type=TopicType.FILE, title="x.c"), _function("f")]
        result = make_auto_groups(topics, "full")
        assert [t.type for t in result] == [TopicType.FILE, TopicType.GROUP, TopicType.FUNCTION]

    def test_manual_groups_are_respected(self) -> None:
        """Runs that already have a Group are left alone."""
        topics = [Topic(type=TopicType.GROUP, title="Mine"), _function("f"), _function("g")]
        assert make_auto_groups(topics, "full") == topics

    def test_basic_level_skips_types(self) -> None:
        """Basic grouping leaves types and constants ungrouped."""
        topics = [Topic(type=TopicType.TYPE, title="T"), Topic(type=TopicType.CONSTANT, title="C")]
        assert make_auto_groups(topics, "basic") == topics

    def test_single_topic(self) -> None:
        """One topic is never grouped."""
        topics = [_function("f")]
        assert make_auto_groups(topics, "full") == topics


class TestDefaultMenuTitle:
    """default_menu_title() tests."""

    def test_no_topics(self) -> None:
        """An empty file is titled by its path."""
        assert default_menu_title([], "src/a.c") == "src/a.c"

    def test_single_topic(self) -> None:
        """A lone topic titles the file."""
        assert default_menu_title([_function("main")], "a.c") == "main"

    def test_class_first(self) -> None:
        """A leading Class titles the file."""
        topics = [Topic(type=TopicType.CLASS, title="Widget"), _function("draw")]
        assert default_menu_title(topics, "w.cs") == "Widget"
        assert len(topics) == 2

    def test_inserts_file_topic(self) -> None:
        """Otherwise a File topic named after the path is added."""
        topics = [_function("a"), _function("b")]
        assert default_menu_title(topics, "a.c") == "a.c"
        assert topics[0].type is TopicType.FILE

    def test_deep_paths_are_shortened(self) -> None:
        """Long paths keep their last three parts."""
        topics = [_function("a"), _function("b")]
        assert default_menu_title(topics, "one/two/three/four/five.c") == ".../three/four/five.c"


# =============================================================================
# Parser
# =============================================================================


class TestParserSimple:
    """Parser.parse() with the line-oriented extractor."""

    def test_text_file(self, parser: Parser, registry: LanguageRegistry) -> None:
        """Text files parse entirely as documentation."""
        parsed = parser.parse(
            "notes.txt", "Class: Foo\n\nFunction: Bar\nDoes it.\n", registry.by_name("Text File")
        )
        assert parsed.file == "notes.txt"
        assert parsed.default_menu_title == "Foo"
        assert [t.symbol for t in parsed.topics] == [("Foo",), ("Foo", "Bar")]
        assert parsed.has_content

    def test_auto_groups_follow_config(self, registry: LanguageRegistry) -> None:
        """Full auto-grouping inserts a group under the class."""
        parsed = Parser(registry).parse(
            "notes.txt", "Class: Foo\n\nFunction: Bar\n", registry.by_name("Text File")
        )
        assert [t.type for t in parsed.topics] == [
            TopicType.CLASS,
            TopicType.GROUP,
            TopicType.FUNCTION,
        ]

    def test_parse_path(self, parser: Parser, tmp_path: Path) -> None:
        """Files on disk are parsed in their detected language."""
        (tmp_path / "a.c").write_text("// Function: main\nint main(void);\n")
        parsed = parser.parse_path(tmp_path, "a.c")
        assert parsed is not None
        assert parsed.language.name == "C/C++"
        assert parsed.topics[0].prototype == "int main(void)"

    def test_parse_path_unknown_language(self, parser: Parser, tmp_path: Path) -> None:
        """Files in unknown languages are skipped."""
        (tmp_path / "a.png").write_bytes(b"\x89PNG")
        assert parser.parse_path(tmp_path, "a.png") is None


class TestParserStatement:
    """Parser.parse() with the statement extractors."""

    def test_perl_package_and_prototype(self, parser: Parser, registry: LanguageRegistry) -> None:
        """Documented subs take the package and prototype from the code."""
        source = (
            "package Foo::Bar;\n"
            "\n"
            "# Function: greet\n"
            "# Says hello.\n"
            "sub greet {\n"
            "    return 'hi';\n"
            "}\n"
        )
        parsed = parser.parse("lib/Foo/Bar.pm", source, registry.by_name("Perl"))

        assert [(t.type, t.symbol) for t in parsed.topics] == [
            (TopicType.CLASS, ("Foo", "Bar")),
            (TopicType.FUNCTION, ("Foo", "Bar", "greet")),
        ]
        greet = parsed.topics[1]
        assert greet.prototype == "sub greet"
        assert greet.summary == "Says hello."
        assert parsed.default_menu_title == "Foo::Bar"

    def test_perl_exports(self, parser: Parser, registry: LanguageRegistry) -> None:
        """Exported subs are flagged."""
        source = (
            "package Util;\n"
            "our @EXPORT_OK = qw(greet);\n"
            "\n"
            "# Function: greet\n"
            "sub greet {}\n"
        )
        parsed = parser.parse("Util.pm", source, registry.by_name("Perl"))
        greet = next(t for t in parsed.topics if t.title == "greet")
        assert greet.is_exported

    def test_undocumented_declarations_are_kept(
        self, parser: Parser, registry: LanguageRegistry
    ) -> None:
        """Auto-topics without comments appear in line order."""
        source = "function a() {}\n/* Function: b */\nfunction b() {}\n"
        parsed = parser.parse("app.js", source, registry.by_name("JavaScript"))
        assert [t.title for t in parsed.topics] == ["app.js", "a", "b"]
        assert parsed.topics[2].prototype == "function b()"

    def test_documented_only(self, registry: LanguageRegistry) -> None:
        """documented_only drops declarations without comments."""
        parser = Parser(registry, ProjectConfig(auto_group="none", documented_only=True))
        source = "function a() {}\n/* Function: b */\nfunction b() {}\n"
        parsed = parser.parse("app.js", source, registry.by_name("JavaScript"))
        assert [t.title for t in parsed.topics] == ["b"]
        assert parsed.default_menu_title == "b"

    def test_list_entries_cover_declarations(
        self, parser: Parser, registry: LanguageRegistry
    ) -> None:
        """Declarations documented in a list topic aren't repeated."""
        source = (
            "/* Functions: Helpers\n"
            "   a - Does A. */\n"
            "function a() {}\n"
            "function b() {}\n"
            "/* Function: c */\n"
            "function c() {}\n"
        )
        parsed = parser.parse("lib.js", source, registry.by_name("JavaScript"))
        assert [t.title for t in parsed.topics] == ["lib.js", "Helpers", "b", "c"]


class TestParseForInformation:
    """Parser.parse_for_information() tests."""

    def test_registers_symbols_and_references(
        self, parser: Parser, registry: LanguageRegistry
    ) -> None:
        """Topics become symbols and links become references."""
        table = SymbolTable()
        parsed = parser.parse(
            "notes.txt",
            "Class: Foo\n\nFunction: Bar\nSee <Baz>.\n",
            registry.by_name("Text File"),
        )
        parser.parse_for_information(parsed, table)

        assert table.is_defined(("Foo",))
        assert table.is_defined(("Foo", "Bar"))
        assert table.references() == {ReferenceString(("Baz",), ("Foo",)): None}

    def test_list_entries_are_symbols(self, parser: Parser, registry: LanguageRegistry) -> None:
        """Each list entry is defined with the list's base type."""
        table = SymbolTable()
        parsed = parser.parse(
            "notes.txt",
            "Class: Foo\n\nFunctions: Helpers\n\n  a - Does A. More.\n",
            registry.by_name("Text File"),
        )
        parser.parse_for_information(parsed, table)

        target = table.lookup(("Foo", "a"))
        assert target is not None
        assert target.type is TopicType.FUNCTION
        assert target.summary == "Does A."

    def test_exported_topics_are_also_global(
        self, parser: Parser, registry: LanguageRegistry
    ) -> None:
        """An exported sub is defined in its package and globally."""
        table = SymbolTable()
        source = "package Util;\nour @EXPORT = qw(greet);\n\n# Function: greet\nsub greet {}\n"
        parser.parse_for_information(
            parser.parse("Util.pm", source, registry.by_name("Perl")), table
        )
        assert table.is_defined(("Util", "greet"))
        assert table.is_defined(("greet",))

    def test_reparse_retracts_removed_symbols(
        self, parser: Parser, registry: LanguageRegistry
    ) -> None:
        """Parsing a file again drops what it no longer defines."""
        table = SymbolTable()
        text_file = registry.by_name("Text File")
        parser.parse_for_information(
            parser.parse("n.txt", "Function: A\n\nFunction: B\n", text_file), table
        )
        assert len(table) == 3

        parser.parse_for_information(parser.parse("n.txt", "Function: A\n", text_file), table)
        assert table.is_defined(("A",))
        assert not table.is_defined(("B",))
