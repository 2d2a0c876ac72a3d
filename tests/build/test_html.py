"""Tests for build/html.py module.

Covers:
- Prototype tables and plain prototypes
- Index entries with and without a definition file
- Parent and child lines on class pages
"""

from __future__ import annotations

from pathlib import Path

from docplane.build.html import HtmlBuilder
from docplane.parse.prototype import FormattedPrototype
from docplane.parse.topics import TopicType
from docplane.symbols.index import IndexElement
from docplane.symbols.table import SymbolTable


class TestPrototypeHtml:
    """HtmlBuilder._prototype_html() tests."""

    def test_params_become_rows(self) -> None:
        formatted = FormattedPrototype("int add", "(", ("int a,", "int b"), ")", None)

        html = HtmlBuilder._prototype_html(formatted)

        assert html.startswith('<table class="prototype">')
        assert "<td>int add(</td><td>int a,</td><td></td>" in html
        assert "<td></td><td>int b</td><td>)</td>" in html

    def test_missing_params_render_plain(self) -> None:
        """Open and close symbols without params fall back to the plain prototype."""
        formatted = FormattedPrototype("void f<x>", "(", None, ")", None)

        assert HtmlBuilder._prototype_html(formatted) == (
            '<pre class="prototype">void f&lt;x&gt;</pre>'
        )


class TestIndexPage:
    """build_index() entries."""

    def test_entry_without_file_is_plain_text(self, tmp_path: Path) -> None:
        builder = HtmlBuilder(tmp_path, SymbolTable())

        builder.build_index([[], [], [IndexElement("Alpha")]])

        index = (tmp_path / "index.html").read_text()
        assert "<li>Alpha</li>" in index

    def test_entry_links_to_file(self, tmp_path: Path) -> None:
        builder = HtmlBuilder(tmp_path, SymbolTable())
        element = IndexElement("Alpha", file="a.txt", summary="First.")

        builder.build_index([[], [], [element]], {"a.txt": "A"})

        index = (tmp_path / "index.html").read_text()
        assert '<li><a href="a.txt.html#Alpha">Alpha</a> <span>First.</span></li>' in index


class TestHierarchyHtml:
    """Parents and children of a class."""

    def test_defined_classes_are_linked(self, tmp_path: Path) -> None:
        table = SymbolTable()
        table.add_symbol(("Animal",), "lib/Animal.pm", TopicType.CLASS)
        table.add_class_parent(("Dog",), ("Animal",), "lib/Dog.pm")

        lines = HtmlBuilder(tmp_path, table)._hierarchy_html(("Dog",), "lib/Dog.pm.html")

        assert lines == [
            '<p class="parents">Parents: <a href="Animal.pm.html#Animal">Animal</a></p>'
        ]

    def test_undefined_parent_is_plain_text(self, tmp_path: Path) -> None:
        table = SymbolTable()
        table.add_class_parent(("Dog",), ("Exporter",), "Dog.pm")
        table.add_class_parent(("Puppy",), ("Dog",), "Puppy.pm")

        lines = HtmlBuilder(tmp_path, table)._hierarchy_html(("Dog",), "Dog.pm.html")

        assert lines == [
            '<p class="parents">Parents: Exporter</p>',
            '<p class="children">Children: Puppy</p>',
        ]
