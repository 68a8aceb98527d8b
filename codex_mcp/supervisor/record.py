"""AgentRecord — the tracked state of one spawned agent subprocess."""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass, field
from datetime import datetime, timezone

from codex_mcp.exceptions import AgentStateError
from codex_mcp.supervisor.buffer import OutputBuffer
from codex_mcp.supervisor.models import AgentSnapshot, AgentSummary
from codex_mcp.types import AgentId, AgentStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def signal_name(exit_code: int | None) -> str | None:
    """Name of the signal that killed the process, if any.

    asyncio reports death-by-signal as a negative return code.
    """
    if exit_code is None or exit_code >= 0:
        return None
    try:
        return signal.Signals(-exit_code).name
    except ValueError:
        return None


@dataclass
class AgentRecord:
    """One agent. RUNNING until the exit observer calls mark_completed()."""

    id: AgentId
    task: str
    workdir: str
    model: str
    stdout: OutputBuffer
    stderr: OutputBuffer
    command: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    exit_code: int | None = None
    finished_at: datetime | None = None
    process: asyncio.subprocess.Process | None = field(default=None, repr=False)
    _done: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)

    @property
    def status(self) -> AgentStatus:
        return AgentStatus.RUNNING if self.exit_code is None else AgentStatus.COMPLETED

    @property
    def is_running(self) -> bool:
        return self.exit_code is None

    def mark_completed(self, exit_code: int) -> None:
        """The single RUNNING -> COMPLETED transition."""
        if self.exit_code is not None:
            raise AgentStateError(
                f"Agent {self.id} already completed with exit code {self.exit_code}"
            )
        self.exit_code = exit_code
        self.finished_at = utcnow()
        self._done.set()

    async def wait_completed(self) -> None:
        await self._done.wait()

    def runtime_seconds(self, now: datetime | None = None) -> float:
        end = self.finished_at or now or utcnow()
        return (end - self.started_at).total_seconds()

    def summary(self) -> AgentSummary:
        return AgentSummary(**self._summary_fields())

    def snapshot(self) -> AgentSnapshot:
        return AgentSnapshot(
            **self._summary_fields(),
            stdout=self.stdout.content,
            stderr=self.stderr.content,
            stdout_truncated=self.stdout.truncated,
            stderr_truncated=self.stderr.truncated,
        )

    def _summary_fields(self) -> dict:
        return {
            "agent_id": self.id,
            "task": self.task,
            "workdir": self.workdir,
            "model": self.model,
            "status": self.status,
            "exit_code": self.exit_code,
            "exit_signal": signal_name(self.exit_code),
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "runtime_seconds": self.runtime_seconds(),
        }
