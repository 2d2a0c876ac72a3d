"""Tests for core/languages.py module.

Covers:
- LanguageDescriptor helpers
- LanguageRegistry lookup by name, extension and shebang
- Config overrides merged into the static table
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docplane.config.models import LanguageOverride
from docplane.core.errors import ConfigError
from docplane.core.languages import (
    ALL_LANGUAGES,
    SHEBANG_SCRIPT,
    TEXT_FILE,
    ExtractorKind,
    FalsePositiveStrategy,
    LanguageDescriptor,
    LanguageRegistry,
    PrototypeFormat,
)


class TestLanguageDescriptor:
    """Descriptor helper properties."""

    def test_language_without_comment_symbols_is_all_comment(self) -> None:
        """A language with no comment symbols treats the whole file as a comment."""
        assert LanguageDescriptor(name="Notes").file_is_comment
        assert not LanguageDescriptor(name="X", line_comments=("#",)).file_is_comment

    def test_enders_for_kinds(self) -> None:
        """Ender kinds map to the function and variable ender lists."""
        lang = LanguageDescriptor(name="X", function_enders=(";",), variable_enders=("=",))
        assert lang.enders_for("function") == (";",)
        assert lang.enders_for("variable") == ("=",)
        assert lang.enders_for(None) is None

    def test_empty_enders_mean_no_prototype(self) -> None:
        """A kind with no enders has no prototypes."""
        assert LanguageDescriptor(name="X").enders_for("function") is None

    def test_ignored_prefixes_for_type(self) -> None:
        """Ignored prefixes are looked up per topic type key."""
        lang = LanguageDescriptor(name="X", ignored_prefixes=(("function", ("_", "m_")),))
        assert lang.ignored_prefixes_for("function") == ("_", "m_")
        assert lang.ignored_prefixes_for("variable") == ()

    def test_full_support_follows_extractor(self) -> None:
        """Only statement-extractor languages have full support."""
        assert not LanguageDescriptor(name="X").has_full_support
        assert LanguageDescriptor(name="X", extractor=ExtractorKind.PERL).has_full_support


class TestStaticTable:
    """Built-in language definitions."""

    def test_names_are_unique(self) -> None:
        """No two built-in languages share a name."""
        names = [lang.name.lower() for lang in ALL_LANGUAGES]
        assert len(names) == len(set(names))

    def test_text_file_is_all_comment(self) -> None:
        """Text files are parsed as one big comment."""
        registry = LanguageRegistry()
        assert registry.by_name(TEXT_FILE).file_is_comment

    def test_quirk_strategies(self) -> None:
        """Languages name their prototype quirks."""
        registry = LanguageRegistry()
        pascal = registry.by_name("Pascal")
        plsql = registry.by_name("PL/SQL")
        assert pascal.false_positives is FalsePositiveStrategy.SEMICOLONS_IN_PARENS
        assert plsql.false_positives is FalsePositiveStrategy.SIGIL_PRECEDED_KEYWORD
        assert registry.by_name("Tcl").prototype_format is PrototypeFormat.BRACES
        assert registry.by_name("JavaScript").extractor is ExtractorKind.JAVASCRIPT
        assert registry.by_name("Perl").extractor is ExtractorKind.PERL


class TestRegistryLookup:
    """Lookup by name, extension and shebang line."""

    def test_by_name_is_case_insensitive(self, registry: LanguageRegistry) -> None:
        """Names match regardless of case."""
        assert registry.by_name("c#").name == "C#"

    def test_by_name_unknown_raises(self, registry: LanguageRegistry) -> None:
        """Unknown names raise ConfigError."""
        with pytest.raises(ConfigError):
            registry.by_name("Cobol")

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("main.c", "C/C++"),
            ("Widget.CS", "C#"),
            ("app.js", "JavaScript"),
            ("Module.pm", "Perl"),
            ("setup.py", "Python"),
            ("unit.pas", "Pascal"),
            ("notes.txt", TEXT_FILE),
        ],
    )
    def test_language_of_by_extension(
        self, registry: LanguageRegistry, tmp_path: Path, filename: str, expected: str
    ) -> None:
        """Extensions pick the language without reading the file."""
        lang = registry.language_of(tmp_path / filename)
        assert lang is not None
        assert lang.name == expected

    def test_unknown_extension(self, registry: LanguageRegistry, tmp_path: Path) -> None:
        """An unclaimed extension has no language."""
        assert registry.language_of(tmp_path / "image.png") is None

    def test_extensionless_file_is_checked_for_shebang(
        self, registry: LanguageRegistry, tmp_path: Path
    ) -> None:
        """A file without extension is matched by its #! line."""
        script = tmp_path / "deploy"
        script.write_text("#!/usr/bin/env perl\nprint 1;\n")
        lang = registry.language_of(script)
        assert lang is not None
        assert lang.name == "Perl"

    def test_cgi_file_is_checked_for_shebang(
        self, registry: LanguageRegistry, tmp_path: Path
    ) -> None:
        """The .cgi placeholder extension defers to the #! line."""
        script = tmp_path / "form.cgi"
        script.write_text("#!/usr/bin/python3\n")
        lang = registry.language_of(script)
        assert lang is not None
        assert lang.name == "Python"

    def test_extensionless_file_without_shebang(
        self, registry: LanguageRegistry, tmp_path: Path
    ) -> None:
        """No extension and no #! line means no language."""
        plain = tmp_path / "README"
        plain.write_text("hello\n")
        assert registry.language_of(plain) is None

    def test_shebang_placeholder_is_registered(self, registry: LanguageRegistry) -> None:
        """The shebang placeholder language exists."""
        assert registry.get(SHEBANG_SCRIPT) is not None


class TestOverrides:
    """Language overrides from configuration."""

    def test_define_new_language(self, tmp_path: Path) -> None:
        """A new language gets its extensions and comment symbols."""
        registry = LanguageRegistry.with_overrides(
            [LanguageOverride(name="Nim", extensions=["nim"], line_comments=["#"])]
        )
        lang = registry.language_of(tmp_path / "main.nim")
        assert lang is not None
        assert lang.name == "Nim"
        assert lang.line_comments == ("#",)

    def test_redefining_existing_language_requires_alter(self) -> None:
        """Defining a built-in language again without alter is an error."""
        with pytest.raises(ConfigError):
            LanguageRegistry.with_overrides([LanguageOverride(name="Python", extensions=["pyx"])])

    def test_altering_unknown_language_fails(self) -> None:
        """Alter needs an existing language."""
        with pytest.raises(ConfigError):
            LanguageRegistry.with_overrides([LanguageOverride(name="Nim", alter=True)])

    def test_altering_list_requires_mode(self) -> None:
        """Changing an existing extension list needs add or replace."""
        with pytest.raises(ConfigError):
            LanguageRegistry.with_overrides(
                [LanguageOverride(name="Python", alter=True, extensions=["pyx"])]
            )

    def test_add_mode_extends_extensions(self, tmp_path: Path) -> None:
        """Add mode keeps the built-in extensions."""
        registry = LanguageRegistry.with_overrides(
            [
                LanguageOverride(
                    name="Python", alter=True, extensions=["pyx"], extensions_mode="add"
                )
            ]
        )
        assert registry.language_of(tmp_path / "a.pyx").name == "Python"
        assert registry.language_of(tmp_path / "a.py").name == "Python"

    def test_full_support_language_rejects_comment_changes(self) -> None:
        """Comment symbols of a statement-extractor language are fixed."""
        with pytest.raises(ConfigError):
            LanguageRegistry.with_overrides(
                [LanguageOverride(name="Perl", alter=True, line_comments=["//"])]
            )

    def test_ignored_extensions_are_dropped(self, tmp_path: Path) -> None:
        """Ignored extensions stop matching any language."""
        registry = LanguageRegistry.with_overrides(
            [LanguageOverride(name="Text File", alter=True, ignored_extensions=["txt"])]
        )
        assert registry.language_of(tmp_path / "notes.txt") is None

    def test_line_break_ender_is_unescaped(self) -> None:
        """A configured \\n ender means a line break."""
        registry = LanguageRegistry.with_overrides(
            [LanguageOverride(name="Nim", extensions=["nim"], function_enders=["\\n", "="])]
        )
        assert registry.by_name("Nim").function_enders == ("\n", "=")
