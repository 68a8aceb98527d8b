"""Tests for codex argv construction."""

import pytest

from codex_mcp.command import build_exec_args, codex_option_flags
from codex_mcp.types import ReasoningEffort


def test_exec_args_layout():
    args = build_exec_args("fix the bug", "o3", "/work")
    assert args == [
        "exec",
        "--dangerously-bypass-approvals-and-sandbox",
        "-m", "o3",
        "-C", "/work",
        "--json",
        "--color", "never",
        "fix the bug",
    ]


def test_extra_args_go_before_task():
    args = build_exec_args("task", "o3", "/work", ["--skip-git-repo-check", "--foo"])
    assert args[-3:] == ["--skip-git-repo-check", "--foo", "task"]


def test_option_flags_default_skips_git_check():
    assert codex_option_flags() == ["--skip-git-repo-check"]


def test_option_flags_without_git_skip():
    assert codex_option_flags(skip_git_check=False) == []


@pytest.mark.parametrize(
    "effort, expected",
    [
        ("low", "low"),
        ("medium", "medium"),
        ("high", "high"),
        ("extra_high", "xhigh"),
        (ReasoningEffort.EXTRA_HIGH, "xhigh"),
    ],
)
def test_reasoning_effort_flag(effort, expected):
    flags = codex_option_flags(effort, skip_git_check=True)
    assert flags == [
        "--skip-git-repo-check",
        "-c",
        f'model_reasoning_effort="{expected}"',
    ]


def test_unknown_reasoning_effort_rejected():
    with pytest.raises(ValueError):
        codex_option_flags("maximum")
