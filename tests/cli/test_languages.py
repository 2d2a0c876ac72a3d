"""Tests for dpl languages command."""

from pathlib import Path

from click.testing import CliRunner

from docplane.cli.main import cli

runner = CliRunner()


class TestLanguagesCommand:
    """dpl languages command tests."""

    def test_lists_builtin_languages(self, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["languages", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Perl" in result.output
        assert "JavaScript" in result.output

    def test_includes_configured_languages(self, tmp_path: Path) -> None:
        """Languages added in the project config are listed too."""
        config_dir = tmp_path / ".docplane"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            "languages:\n"
            "  - name: Zork\n"
            "    extensions: [zrk]\n"
            "    line_comments: ['%%']\n"
        )

        result = runner.invoke(cli, ["languages", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Zork" in result.output
