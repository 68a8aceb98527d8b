"""AgentSupervisor — spawns codex agents and tracks them until they exit.

Every agent is a real OS subprocess. The supervisor wires its stdout and
stderr into capped buffers, watches for its exit, and serves status, output,
wait and stop requests against the shared AgentRegistry.

All bookkeeping runs as tasks on one asyncio event loop, so records are only
ever mutated from that loop and need no locking.
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import logging
import os
from pathlib import Path
from typing import Callable, Sequence

from codex_mcp.command import build_exec_args
from codex_mcp.config import CodexSettings
from codex_mcp.exceptions import (
    AgentAlreadyCompletedError,
    AvailabilityCheckError,
    SpawnError,
    WaitTimeoutError,
)
from codex_mcp.supervisor.buffer import DEFAULT_MAX_OUTPUT_SIZE, OutputBuffer
from codex_mcp.supervisor.models import (
    AgentSnapshot,
    AgentSummary,
    ProbeResult,
    TerminateAck,
)
from codex_mcp.supervisor.record import AgentRecord
from codex_mcp.supervisor.registry import AgentRegistry
from codex_mcp.types import AgentId, StatusFilter, StopSignal, new_id

_logger = logging.getLogger(__name__)

# (task, model, workdir, extra_args) -> argv without the binary
CommandBuilder = Callable[[str, str, str, Sequence[str]], list[str]]

_READ_CHUNK = 64 * 1024
_EXIT_CHECK_INTERVAL = 0.1


def _send_signal(proc: asyncio.subprocess.Process, sig: StopSignal) -> None:
    if sig is StopSignal.SIGKILL:
        proc.kill()
    else:
        proc.terminate()


class AgentSupervisor:
    """Process supervisor for codex agents.

    Output ordering: once a process exits, its record flips to COMPLETED
    only after both pipes reach EOF, or after ``drain_timeout`` seconds if
    something (usually an orphaned grandchild) keeps a pipe open. In that
    second case the buffers may still receive trailing output after the
    flip.
    """

    def __init__(
        self,
        binary: str = "codex",
        default_model: str = "o3",
        max_output_size: int = DEFAULT_MAX_OUTPUT_SIZE,
        registry: AgentRegistry | None = None,
        command_builder: CommandBuilder = build_exec_args,
        drain_timeout: float = 2.0,
        probe_timeout: float = 30.0,
        wait_timeout_ms: int = 300_000,
    ) -> None:
        self.binary = binary
        self.default_model = default_model
        self.max_output_size = max_output_size
        self.wait_timeout_ms = wait_timeout_ms
        self._registry = registry if registry is not None else AgentRegistry()
        self._command_builder = command_builder
        self._drain_timeout = drain_timeout
        self._probe_timeout = probe_timeout
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: CodexSettings, **kwargs) -> AgentSupervisor:
        return cls(
            binary=settings.binary,
            default_model=settings.default_model,
            max_output_size=settings.max_output_size,
            drain_timeout=settings.drain_timeout,
            probe_timeout=settings.probe_timeout,
            wait_timeout_ms=settings.wait_timeout_ms,
            **kwargs,
        )

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    # ── Launch ───────────────────────────────────────────────────────────

    async def spawn(
        self,
        task: str,
        workdir: str | None = None,
        model: str | None = None,
        extra_args: Sequence[str] = (),
        env: dict[str, str] | None = None,
    ) -> AgentRecord:
        """Start an agent subprocess and register it.

        Raises SpawnError if the binary cannot be started; in that case
        nothing is registered.
        """
        resolved_workdir = str(Path(workdir or os.getcwd()).resolve())
        model = model or self.default_model
        command = [
            self.binary,
            *self._command_builder(task, model, resolved_workdir, list(extra_args)),
        ]
        proc_env = {**os.environ, **(env or {})}

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=resolved_workdir,
                env=proc_env,
            )
        except (OSError, ValueError) as e:
            # ValueError: NUL byte in an argument or env value
            _logger.error("Failed to start %s in %s: %s", self.binary, resolved_workdir, e)
            raise SpawnError(f"Failed to start {self.binary}: {e}") from e

        agent_id = new_id()
        while agent_id in self._registry:
            agent_id = new_id()

        record = AgentRecord(
            id=agent_id,
            task=task,
            workdir=resolved_workdir,
            model=model,
            command=command,
            stdout=OutputBuffer(self.max_output_size),
            stderr=OutputBuffer(self.max_output_size),
            process=proc,
        )
        self._registry.add(record)

        readers = [
            self._start_task(self._pump(proc.stdout, record.stdout)),
            self._start_task(self._pump(proc.stderr, record.stderr)),
        ]
        self._start_task(self._track_exit(record, proc, readers))

        _logger.info(
            "Spawned agent %s (pid %s, model %s) in %s",
            agent_id, proc.pid, model, resolved_workdir,
        )
        return record

    def _start_task(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _pump(self, stream: asyncio.StreamReader, buffer: OutputBuffer) -> None:
        """Copy one pipe into its buffer until EOF."""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await stream.read(_READ_CHUNK)
            if not data:
                break
            buffer.append(decoder.decode(data))
        buffer.append(decoder.decode(b"", final=True))

    async def _wait_exit(self, proc: asyncio.subprocess.Process) -> int:
        """Return the exit code as soon as the OS reports it.

        Process.wait() can also hold out until the pipes close, which an
        orphaned grandchild may never do, so the return code is checked too.
        """
        waiter = asyncio.ensure_future(proc.wait())
        while proc.returncode is None:
            await asyncio.wait({waiter}, timeout=_EXIT_CHECK_INTERVAL)
        if not waiter.done():
            waiter.cancel()
        return proc.returncode

    async def _track_exit(
        self,
        record: AgentRecord,
        proc: asyncio.subprocess.Process,
        readers: list[asyncio.Task],
    ) -> None:
        """Exit observer: the only place a record becomes COMPLETED."""
        returncode = await self._wait_exit(proc)

        done, pending = await asyncio.wait(readers, timeout=self._drain_timeout)
        for reader in done:
            if not reader.cancelled() and reader.exception() is not None:
                _logger.warning(
                    "Agent %s output reader failed: %r", record.id, reader.exception(),
                )
        if pending:
            _logger.warning(
                "Agent %s exited but its output is still open after %.1fs; "
                "late output may arrive after completion",
                record.id, self._drain_timeout,
            )

        record.mark_completed(returncode)
        _logger.info(
            "Agent %s completed with exit code %s after %.1fs",
            record.id, returncode, record.runtime_seconds(),
        )

    # ── Queries ──────────────────────────────────────────────────────────

    def get(self, agent_id: AgentId) -> AgentRecord:
        return self._registry.get(agent_id)

    def describe(self, agent_id: AgentId) -> AgentSnapshot:
        return self._registry.get(agent_id).snapshot()

    def list_agents(self, status: StatusFilter | str = StatusFilter.ALL) -> list[AgentSummary]:
        return [r.summary() for r in self._registry.select(StatusFilter(status))]

    # ── Waiting ──────────────────────────────────────────────────────────

    async def wait_for(
        self, agent_id: AgentId, timeout_ms: float | None = None,
    ) -> AgentSnapshot:
        """Wait up to ``timeout_ms`` for the agent to exit.

        Raises WaitTimeoutError if it is still running when time is up; the
        agent itself keeps running.
        """
        record = self._registry.get(agent_id)
        if timeout_ms is None:
            timeout_ms = self.wait_timeout_ms

        if record.is_running:
            try:
                await asyncio.wait_for(
                    record.wait_completed(), timeout=max(timeout_ms, 0) / 1000,
                )
            except asyncio.TimeoutError:
                raise WaitTimeoutError(agent_id, timeout_ms) from None

        return record.snapshot()

    # ── Termination ──────────────────────────────────────────────────────

    def terminate(
        self, agent_id: AgentId, signal: StopSignal | str = StopSignal.SIGTERM,
    ) -> TerminateAck:
        """Signal a running agent. Does not wait for it to exit."""
        record = self._registry.get(agent_id)
        sig = StopSignal(signal)
        if not record.is_running:
            raise AgentAlreadyCompletedError(agent_id, record.exit_code)

        try:
            _send_signal(record.process, sig)
        except ProcessLookupError:
            # Already reaped; the exit observer will catch up.
            _logger.debug("Agent %s exited before %s was delivered", agent_id, sig.value)
        else:
            _logger.info("Sent %s to agent %s", sig.value, agent_id)
        return TerminateAck(agent_id=agent_id, signal=sig)

    def shutdown(self, signal: StopSignal | str = StopSignal.SIGTERM) -> int:
        """Signal every live agent. Best effort, returns without waiting."""
        sig = StopSignal(signal)
        signalled = 0
        for record in self._registry:
            proc = record.process
            if proc is None or proc.returncode is not None:
                continue
            try:
                _send_signal(proc, sig)
            except ProcessLookupError:
                continue
            signalled += 1

        _logger.info("Shutdown: sent %s to %d running agent(s)", sig.value, signalled)
        return signalled

    # ── Availability ─────────────────────────────────────────────────────

    async def probe_availability(self, binary: str | None = None) -> ProbeResult:
        """Run ``<binary> --version`` without registering anything."""
        binary = binary or self.binary
        try:
            version = await self._version_query(binary)
        except AvailabilityCheckError as e:
            _logger.warning("%s is not available: %s", binary, e)
            return ProbeResult(available=False, binary=binary, error=str(e))
        return ProbeResult(available=True, binary=binary, version=version)

    async def _version_query(self, binary: str) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                binary, "--version",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise AvailabilityCheckError(str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._probe_timeout,
            )
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise AvailabilityCheckError(
                f"{binary} --version did not finish within {self._probe_timeout}s"
            ) from None

        if proc.returncode != 0:
            err = stderr.decode("utf-8", errors="replace")
            raise AvailabilityCheckError(err or f"Failed to execute {binary}")
        return stdout.decode("utf-8", errors="replace").strip()
