"""Tests for dpl index command."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from docplane.cli.main import cli

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "notes.txt").write_text("Class: Foo\n\nFunction: Bar\n")
    return tmp_path


class TestIndexCommand:
    """dpl index command tests."""

    def test_prints_buckets(self, project: Path) -> None:
        result = runner.invoke(cli, ["index", str(project)])

        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert lines.index("B") < lines.index("  Bar  Foo (notes.txt)") < lines.index("F")
        assert "  Foo  (notes.txt)" in lines

    def test_filter_by_type(self, project: Path) -> None:
        result = runner.invoke(cli, ["index", str(project), "--type", "Class"])

        assert result.exit_code == 0, result.output
        assert "Bar" not in result.stdout
        assert "Foo" in result.stdout

    def test_unknown_type_exits_1(self, project: Path) -> None:
        result = runner.invoke(cli, ["index", str(project), "--type", "Gizmo"])
        assert result.exit_code == 1

    def test_does_not_write_output(self, project: Path) -> None:
        runner.invoke(cli, ["index", str(project)])
        assert not (project / "docs").exists()

    def test_stdout_holds_only_index_lines(self, project: Path) -> None:
        """Log events never reach stdout, whatever their level."""
        result = runner.invoke(cli, ["index", str(project)])

        assert result.exit_code == 0, result.output
        for line in result.stdout.splitlines():
            assert line in ("B", "F") or line.startswith("  "), line
        assert "symbol_defined" not in result.stdout

    def test_verbose_logs_stay_off_stdout(self, project: Path) -> None:
        """Debug events from --verbose don't mix into the index."""
        result = runner.invoke(cli, ["--verbose", "index", str(project)])

        assert result.exit_code == 0, result.output
        assert "symbol_defined" not in result.stdout
