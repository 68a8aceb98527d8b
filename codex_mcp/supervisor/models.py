"""Read-only projections of agent state returned to callers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from codex_mcp.types import AgentId, AgentStatus, StopSignal


class AgentSummary(BaseModel):
    """One row of the agent table; buffers are left out."""

    agent_id: AgentId
    task: str
    workdir: str
    model: str
    status: AgentStatus
    exit_code: int | None = None
    exit_signal: str | None = None
    started_at: datetime
    finished_at: datetime | None = None
    runtime_seconds: float


class AgentSnapshot(AgentSummary):
    """Full point-in-time view of an agent, output included."""

    stdout: str = ""
    stderr: str = ""
    stdout_truncated: bool = False
    stderr_truncated: bool = False


class TerminateAck(BaseModel):
    agent_id: AgentId
    status: str = "terminated"
    signal: StopSignal


class ProbeResult(BaseModel):
    """Outcome of running ``<binary> --version``."""

    available: bool
    binary: str
    version: str | None = None
    error: str | None = None
