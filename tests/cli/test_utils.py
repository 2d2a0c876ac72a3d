"""Tests for CLI utilities.

Covers:
- reports_errors() exit behavior
- load_project() config overrides and language registry
"""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from docplane.cli.utils import load_project, reports_errors
from docplane.core.errors import ConfigError


@pytest.fixture
def ctx() -> click.Context:
    return click.Context(click.Command("test"), obj={"verbose": False})


class TestReportsErrors:
    """reports_errors() tests."""

    def test_docplane_error_exits_1(self) -> None:
        with pytest.raises(SystemExit) as exc_info, reports_errors():
            raise ConfigError.unknown_language("Zork")
        assert exc_info.value.code == 1

    def test_other_errors_propagate(self) -> None:
        """Bugs keep their traceback."""
        with pytest.raises(ValueError), reports_errors():
            raise ValueError("boom")

    def test_no_error(self) -> None:
        with reports_errors():
            pass


class TestLoadProject:
    """load_project() tests."""

    def test_defaults(self, tmp_path: Path, ctx: click.Context) -> None:
        config, registry = load_project(tmp_path, ctx)
        assert config.project.output == "docs"
        assert registry.get("Perl") is not None

    def test_overrides_replace_settings(self, tmp_path: Path, ctx: click.Context) -> None:
        config, _ = load_project(tmp_path, ctx, output="html", inputs=["src"])
        assert config.project.output == "html"
        assert config.project.inputs == ["src"]

    def test_none_overrides_are_ignored(self, tmp_path: Path, ctx: click.Context) -> None:
        config, _ = load_project(tmp_path, ctx, output=None)
        assert config.project.output == "docs"

    def test_language_overrides(self, tmp_path: Path, ctx: click.Context) -> None:
        """Configured languages extend the registry."""
        config_dir = tmp_path / ".docplane"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            "languages:\n"
            "  - name: Perl\n"
            "    alter: true\n"
            "    extensions: [plx]\n"
            "    extensions_mode: add\n"
        )

        _, registry = load_project(tmp_path, ctx)

        assert registry.by_extension("plx").name == "Perl"

    def test_bad_override_raises(self, tmp_path: Path, ctx: click.Context) -> None:
        config_dir = tmp_path / ".docplane"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("languages:\n  - name: Perl\n")

        with pytest.raises(ConfigError):
            load_project(tmp_path, ctx)
