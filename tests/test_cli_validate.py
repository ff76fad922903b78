"""Tests for the evalbench validate CLI command and top-level options."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from evalbench import __version__
from evalbench.cli.main import app

runner = CliRunner()

VALID = "generation:\n  model: gpt-4o-mini\ndataset:\n  - id: a\n    input: hi\n"
TYPO = "generaton:\n  model: gpt-4o-mini\n"


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestValidateCommand:
    def test_valid_suite(self, tmp_path: Path):
        path = _write(tmp_path, "ok.yaml", VALID)
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 0, result.output
        assert f"{path} ... valid" in result.output
        assert "1/1 suites valid" in result.output

    def test_invalid_suite_annotated(self, tmp_path: Path):
        path = _write(tmp_path, "bad.yaml", TYPO)
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "error[E001]: unknown field" in result.output
        assert "Did you mean 'generation'?" in result.output
        assert "0/1 suites valid" in result.output

    def test_ci_mode(self, tmp_path: Path):
        path = _write(tmp_path, "bad.yaml", TYPO)
        result = runner.invoke(app, ["validate", "--ci", str(path)])
        assert result.exit_code == 1
        assert f"{path}:1:1 -- generaton: Extra inputs are not permitted" in result.output

    def test_multiple_files(self, tmp_path: Path):
        good = _write(tmp_path, "ok.yaml", VALID)
        bad = _write(tmp_path, "bad.yaml", TYPO)
        result = runner.invoke(app, ["validate", str(good), str(bad)])
        assert result.exit_code == 1
        assert "1/2 suites valid" in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestMainOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"evalbench {__version__}"

    def test_invalid_log_format(self, tmp_path: Path):
        path = _write(tmp_path, "ok.yaml", VALID)
        result = runner.invoke(app, ["--log-format", "xml", "validate", str(path)])
        assert result.exit_code == 2
        assert "Invalid log format" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "run" in result.output
        assert "simulate" in result.output
