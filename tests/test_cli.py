"""Tests for the codex-mcp CLI."""

import sys

from typer.testing import CliRunner

from codex_mcp.cli import app
from codex_mcp.config import settings

runner = CliRunner()


def test_check_available(monkeypatch):
    monkeypatch.setattr(settings, "binary", sys.executable)
    result = runner.invoke(app, ["check"])
    assert result.exit_code == 0
    assert "codex is available" in result.output


def test_check_unavailable(monkeypatch):
    monkeypatch.setattr(settings, "binary", "/nonexistent/codex-binary")
    result = runner.invoke(app, ["check"])
    assert result.exit_code == 1
    assert "codex is not available" in result.output
    assert "CODEX_BIN" in result.output
