"""Tests for the CLI."""

import json
from pathlib import Path

from typer.testing import CliRunner

from fiscalrag import __version__

from .main import app

runner = CliRunner()


def test_version() -> None:
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_intent_exclusive_theme() -> None:
    """Test an IBA question is pinned to 2026."""
    result = runner.invoke(app, ["intent", "Quel est le taux de l'IBA ?"])
    assert result.exit_code == 0
    assert "2026" in result.output
    assert "0.95" in result.output


def test_intent_comparison() -> None:
    """Test a question naming both editions is a comparison."""
    result = runner.invoke(app, ["intent", "Quelle différence entre 2025 et 2026 pour l'IS ?"])
    assert result.exit_code == 0
    assert "comparison" in result.output


def test_check_rules_packaged_tables() -> None:
    """Test the packaged rule tables validate."""
    result = runner.invoke(app, ["check-rules"])
    assert result.exit_code == 0
    assert "Rule tables OK" in result.output


def test_check_rules_broken_tables(tmp_path: Path) -> None:
    """Test a broken index.json fails with exit code 1."""
    (tmp_path / "index.json").write_text(json.dumps({"versions": {}}), encoding="utf-8")

    result = runner.invoke(app, ["check-rules", "--rules", str(tmp_path)])

    assert result.exit_code == 1
    assert "Invalid rule tables" in result.output


def test_search_rejects_unknown_edition() -> None:
    """Test --version only accepts 2025 or 2026."""
    result = runner.invoke(app, ["search", "taux", "--version", "2024"])
    assert result.exit_code == 1
