"""Shared test fixtures — supervisors that run Python scripts instead of codex."""

from __future__ import annotations

import asyncio
import contextlib
import sys

import pytest_asyncio

from codex_mcp.supervisor.manager import AgentSupervisor
from codex_mcp.types import StopSignal


def python_command(task, model, workdir, extra_args):
    """Command builder that treats the task as a Python script."""
    return ["-c", task]


async def _reap(supervisor: AgentSupervisor) -> None:
    """Kill whatever is still running and wait for the exit observers."""
    supervisor.shutdown(StopSignal.SIGKILL)
    for record in supervisor.registry:
        if record.is_running:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(record.wait_completed(), timeout=5)


@pytest_asyncio.fixture
async def make_supervisor():
    created: list[AgentSupervisor] = []

    def _factory(**kwargs) -> AgentSupervisor:
        kwargs.setdefault("binary", sys.executable)
        kwargs.setdefault("command_builder", python_command)
        kwargs.setdefault("default_model", "test-model")
        sup = AgentSupervisor(**kwargs)
        created.append(sup)
        return sup

    yield _factory
    for sup in created:
        await _reap(sup)


@pytest_asyncio.fixture
async def supervisor(make_supervisor):
    return make_supervisor()
