"""Argument vectors for ``codex exec``."""

from __future__ import annotations

from typing import Sequence

from codex_mcp.types import ReasoningEffort

_BASE_FLAGS = ["--dangerously-bypass-approvals-and-sandbox"]

# codex spells the top effort level differently from our tool schema
_EFFORT_VALUES = {
    ReasoningEffort.LOW: "low",
    ReasoningEffort.MEDIUM: "medium",
    ReasoningEffort.HIGH: "high",
    ReasoningEffort.EXTRA_HIGH: "xhigh",
}


def build_exec_args(
    task: str,
    model: str,
    workdir: str,
    extra_args: Sequence[str] = (),
) -> list[str]:
    """Build the argv (minus the binary) for a non-interactive codex run.

    The task prompt always goes last so extra flags cannot swallow it.
    """
    return [
        "exec",
        *_BASE_FLAGS,
        "-m", model,
        "-C", workdir,
        "--json",
        "--color", "never",
        *extra_args,
        task,
    ]


def codex_option_flags(
    reasoning_effort: ReasoningEffort | str | None = None,
    skip_git_check: bool = True,
) -> list[str]:
    """Optional codex flags, in the order codex expects them."""
    flags: list[str] = []
    if skip_git_check:
        flags.append("--skip-git-repo-check")
    if reasoning_effort:
        effort = _EFFORT_VALUES[ReasoningEffort(reasoning_effort)]
        flags.extend(["-c", f'model_reasoning_effort="{effort}"'])
    return flags
