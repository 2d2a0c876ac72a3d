"""Tests for build/runner.py module.

Covers:
- BuildSession: parsing, removing and restoring files
- file_state round trips through the state file model
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docplane.build.runner import BuildSession
from docplane.config.models import ProjectConfig
from docplane.core.languages import LanguageRegistry
from docplane.parse.parser import Parser
from docplane.project import FileState, Project, SourceFile


@pytest.fixture
def sources(tmp_path: Path, registry: LanguageRegistry) -> dict[str, SourceFile]:
    (tmp_path / "lib.txt").write_text("Class: Foo\n\nFunction: Bar\nDoes bar.\n")
    (tmp_path / "app.cs").write_text(
        "using Foo;\n\n// Function: Run\n// Calls <Bar>.\nvoid Run();\n"
    )
    found = Project(tmp_path, ProjectConfig(), registry).discover()
    return {source.relative: source for source in found}


def _session(registry: LanguageRegistry) -> BuildSession:
    return BuildSession(Parser(registry, ProjectConfig(auto_group="none")))


class TestBuildSession:
    """BuildSession tests."""

    def test_add_registers_symbols_and_references(
        self, sources: dict[str, SourceFile], registry: LanguageRegistry
    ) -> None:
        session = _session(registry)
        session.update([], list(sources.values()))

        assert ("Foo", "Bar") in session.table
        assert session.unresolved_links() == 0
        assert set(session.languages) == {"lib.txt", "app.cs"}

    def test_remove_undefines_file(
        self, sources: dict[str, SourceFile], registry: LanguageRegistry
    ) -> None:
        """Removing a file retracts its symbols and unresolves links to them."""
        session = _session(registry)
        session.update([], list(sources.values()))

        session.update(["lib.txt"], [])

        assert ("Foo", "Bar") not in session.table
        assert "lib.txt" not in session.parsed
        assert session.unresolved_links() == 1

    def test_read_leaves_table_alone(
        self, sources: dict[str, SourceFile], registry: LanguageRegistry
    ) -> None:
        session = _session(registry)

        parsed = session.read(sources["lib.txt"])

        assert [topic.title for topic in parsed.topics] == ["Foo", "Bar"]
        assert len(session.table) == 0
        assert session.parsed == {}


class TestRestore:
    """Putting files back from saved state."""

    def test_given_saved_state_when_restored_then_table_matches(
        self, sources: dict[str, SourceFile], registry: LanguageRegistry
    ) -> None:
        """A table restored from state equals the one parsing produced."""
        # Given
        parsed = _session(registry)
        parsed.update([], list(sources.values()))
        saved = {
            relative: FileState.model_validate_json(
                parsed.file_state(relative, source.digest, "title").model_dump_json()
            )
            for relative, source in sources.items()
        }

        # When
        restored = _session(registry)
        for relative, state in saved.items():
            restored.restore(relative, state, sources[relative].language)

        # Then
        for relative in sources:
            assert restored.table.file_symbols(relative) == parsed.table.file_symbols(relative)
            assert restored.table.file_references(relative) == parsed.table.file_references(
                relative
            )
            assert restored.link_digest(relative) == parsed.link_digest(relative)
        assert restored.table.references() == parsed.table.references()
        assert restored.parsed == {}
        assert restored.languages == parsed.languages

    def test_restore_order_does_not_matter(
        self, sources: dict[str, SourceFile], registry: LanguageRegistry
    ) -> None:
        """A reference restored before its target still resolves."""
        parsed = _session(registry)
        parsed.update([], list(sources.values()))
        app = parsed.file_state("app.cs", sources["app.cs"].digest, "")
        lib = parsed.file_state("lib.txt", sources["lib.txt"].digest, "")

        restored = _session(registry)
        restored.restore("app.cs", app)
        assert restored.unresolved_links() == 1
        restored.restore("lib.txt", lib)

        assert restored.unresolved_links() == 0

    def test_reparse_after_restore_retracts_stale_symbols(
        self, sources: dict[str, SourceFile], registry: LanguageRegistry, tmp_path: Path
    ) -> None:
        """Reparsing a changed file drops what its old state contributed."""
        parsed = _session(registry)
        parsed.update([], list(sources.values()))
        lib = parsed.file_state("lib.txt", sources["lib.txt"].digest, "")

        (tmp_path / "lib.txt").write_text("Class: Foo\n\nFunction: Baz\n")
        session = _session(registry)
        session.restore("lib.txt", lib)
        session.update([], [sources["lib.txt"]])

        assert ("Foo", "Baz") in session.table
        assert ("Foo", "Bar") not in session.table

    def test_file_state_lists_contributions(
        self, sources: dict[str, SourceFile], registry: LanguageRegistry
    ) -> None:
        session = _session(registry)
        session.update([], list(sources.values()))

        lib = session.file_state("lib.txt", "d", "Lib")
        app = session.file_state("app.cs", "d", "App")

        assert [definition.symbol for definition in lib.symbols] == [("Foo",), ("Foo", "Bar")]
        assert lib.symbols[1].summary == "Does bar."
        assert lib.references == []
        assert [(ref.symbol, ref.using) for ref in app.references] == [(("Bar",), (("Foo",),))]
