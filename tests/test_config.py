"""Tests for environment-driven settings."""

from codex_mcp.config import CodexSettings


def test_defaults(monkeypatch):
    for name in ("CODEX_BIN", "CODEX_DEFAULT_MODEL", "MAX_OUTPUT_SIZE", "CODEX_MAX_OUTPUT_SIZE"):
        monkeypatch.delenv(name, raising=False)
    cfg = CodexSettings()
    assert cfg.binary == "codex"
    assert cfg.default_model == "o3"
    assert cfg.max_output_size == 10485760
    assert cfg.wait_timeout_ms == 300_000
    assert cfg.log_level == "INFO"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("CODEX_BIN", "/opt/codex/bin/codex")
    monkeypatch.setenv("CODEX_DEFAULT_MODEL", "o4-mini")
    monkeypatch.setenv("MAX_OUTPUT_SIZE", "2048")
    monkeypatch.setenv("CODEX_DRAIN_TIMEOUT", "0.5")
    cfg = CodexSettings()
    assert cfg.binary == "/opt/codex/bin/codex"
    assert cfg.default_model == "o4-mini"
    assert cfg.max_output_size == 2048
    assert cfg.drain_timeout == 0.5


def test_prefixed_output_size(monkeypatch):
    monkeypatch.delenv("MAX_OUTPUT_SIZE", raising=False)
    monkeypatch.setenv("CODEX_MAX_OUTPUT_SIZE", "99")
    assert CodexSettings().max_output_size == 99


def test_init_by_field_name():
    cfg = CodexSettings(binary="/usr/bin/codex", max_output_size=10)
    assert cfg.binary == "/usr/bin/codex"
    assert cfg.max_output_size == 10
