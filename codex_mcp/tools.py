"""Tool dispatch — the named operations exposed to MCP clients.

Each tool validates its JSON arguments with a pydantic model, calls into the
AgentSupervisor, and returns a JSON-ready dict. Domain errors come back as
``{"error": ..., **details}`` payloads flagged as errors, never as crashes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import orjson
from pydantic import BaseModel, Field, ValidationError

from codex_mcp.command import codex_option_flags
from codex_mcp.exceptions import CodexMCPError, SpawnError, UnknownToolError
from codex_mcp.supervisor.manager import AgentSupervisor
from codex_mcp.types import ReasoningEffort, StatusFilter, StopSignal

_logger = logging.getLogger(__name__)

_EFFORT_SCHEMA = {
    "type": "string",
    "enum": [e.value for e in ReasoningEffort],
    "description": (
        "How much the model should think before responding. low=fast/economical, "
        "medium=balanced (default), high=more complete reasoning, "
        "extra_high=maximum thinking"
    ),
}


def tool_definitions(default_model: str) -> list[dict[str, Any]]:
    """Tool names, descriptions and JSON Schemas, as advertised to clients."""
    return [
        {
            "name": "spawn_agent",
            "description": (
                "Spawn a new codex agent to execute a task autonomously "
                "(dangerous, no approvals)"
            ),
            "inputSchema": {
                "type": "object",
                "properties": {
                    "task": {
                        "type": "string",
                        "description": "The task/prompt for the codex agent to execute",
                    },
                    "workdir": {
                        "type": "string",
                        "description": "Working directory for the agent (defaults to current directory)",
                    },
                    "model": {
                        "type": "string",
                        "description": f"Model to use (default: {default_model})",
                    },
                    "reasoning_effort": _EFFORT_SCHEMA,
                    "additional_flags": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Additional codex CLI flags to pass",
                    },
                    "skip_git_check": {
                        "type": "boolean",
                        "description": "Skip git repository check (default: true)",
                    },
                },
                "required": ["task"],
            },
        },
        {
            "name": "list_agents",
            "description": "List all active and completed codex agents",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "filter": {
                        "type": "string",
                        "enum": [f.value for f in StatusFilter],
                        "description": "Filter agents by status (default: all)",
                    },
                },
            },
        },
        {
            "name": "get_agent_output",
            "description": "Get the output (stdout/stderr) from a specific agent",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "agent_id": {"type": "string", "description": "The agent ID to query"},
                },
                "required": ["agent_id"],
            },
        },
        {
            "name": "stop_agent",
            "description": "Terminate a running codex agent",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "agent_id": {"type": "string", "description": "The agent ID to stop"},
                    "signal": {
                        "type": "string",
                        "enum": [s.value for s in StopSignal],
                        "description": "Signal to send (default: SIGTERM)",
                    },
                },
                "required": ["agent_id"],
            },
        },
        {
            "name": "wait_for_agent",
            "description": "Wait for an agent to complete and return its final output",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "agent_id": {"type": "string", "description": "The agent ID to wait for"},
                    "timeout": {
                        "type": "number",
                        "description": "Timeout in milliseconds (default: 300000 = 5 minutes)",
                    },
                },
                "required": ["agent_id"],
            },
        },
        {
            "name": "spawn_parallel_agents",
            "description": "Spawn multiple codex agents in parallel for concurrent task execution",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "tasks": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "task": {"type": "string"},
                                "workdir": {"type": "string"},
                                "model": {"type": "string"},
                                "reasoning_effort": _EFFORT_SCHEMA,
                            },
                            "required": ["task"],
                        },
                        "description": "Array of tasks to execute in parallel",
                    },
                },
                "required": ["tasks"],
            },
        },
        {
            "name": "check_codex_available",
            "description": "Check if codex CLI is installed and available",
            "inputSchema": {"type": "object", "properties": {}},
        },
    ]


# ── Argument models ─────────────────────────────────────────────────────────


class SpawnAgentArgs(BaseModel):
    task: str
    workdir: str | None = None
    model: str | None = None
    reasoning_effort: ReasoningEffort | None = None
    additional_flags: list[str] = Field(default_factory=list)
    skip_git_check: bool = True


class ListAgentsArgs(BaseModel):
    filter: StatusFilter = StatusFilter.ALL


class AgentIdArgs(BaseModel):
    agent_id: str


class StopAgentArgs(AgentIdArgs):
    signal: StopSignal = StopSignal.SIGTERM


class WaitForAgentArgs(AgentIdArgs):
    timeout: int | float | None = None  # milliseconds


class ParallelTask(BaseModel):
    task: str
    workdir: str | None = None
    model: str | None = None
    reasoning_effort: ReasoningEffort | None = None


class SpawnParallelArgs(BaseModel):
    tasks: list[ParallelTask]


# ── Dispatch ────────────────────────────────────────────────────────────────


@dataclass
class ToolResponse:
    payload: dict[str, Any]
    is_error: bool = False

    def to_json(self) -> str:
        return encode_json(self.payload)


def encode_json(payload: dict[str, Any]) -> str:
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode()


def error_payload(exc: Exception) -> dict[str, Any]:
    if isinstance(exc, CodexMCPError):
        return {"error": str(exc), **exc.details()}
    return {"error": str(exc)}


class CodexTools:
    """Routes tool calls to the supervisor."""

    def __init__(self, supervisor: AgentSupervisor) -> None:
        self._supervisor = supervisor
        self._handlers: dict[str, Callable[[dict], Awaitable[dict[str, Any]]]] = {
            "spawn_agent": self._spawn_agent,
            "list_agents": self._list_agents,
            "get_agent_output": self._get_agent_output,
            "stop_agent": self._stop_agent,
            "wait_for_agent": self._wait_for_agent,
            "spawn_parallel_agents": self._spawn_parallel_agents,
            "check_codex_available": self._check_codex_available,
        }

    @property
    def names(self) -> list[str]:
        return list(self._handlers)

    def definitions(self) -> list[dict[str, Any]]:
        return tool_definitions(self._supervisor.default_model)

    async def call(self, name: str, arguments: dict | None = None) -> dict[str, Any]:
        """Run a tool, raising on any failure."""
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)
        return await handler(arguments or {})

    async def respond(self, name: str, arguments: dict | None = None) -> ToolResponse:
        """Run a tool and fold failures into an error payload."""
        try:
            return ToolResponse(await self.call(name, arguments))
        except CodexMCPError as e:
            return ToolResponse(error_payload(e), is_error=True)
        except ValidationError as e:
            return ToolResponse(
                {"error": f"Invalid arguments for {name}: {e}"}, is_error=True,
            )
        except Exception as e:
            _logger.exception("Tool %s failed", name)
            return ToolResponse(error_payload(e), is_error=True)

    # ── Handlers ────────────────────────────────────────────────────────────

    async def _spawn_agent(self, arguments: dict) -> dict[str, Any]:
        args = SpawnAgentArgs.model_validate(arguments)
        extra = [
            *codex_option_flags(args.reasoning_effort, args.skip_git_check),
            *args.additional_flags,
        ]
        record = await self._supervisor.spawn(
            args.task, workdir=args.workdir, model=args.model, extra_args=extra,
        )
        summary = record.summary().model_dump(mode="json")
        return {
            "agent_id": record.id,
            "status": "spawned",
            "task": record.task,
            "workdir": record.workdir,
            "model": record.model,
            "started_at": summary["started_at"],
            "command": " ".join(record.command),
        }

    async def _list_agents(self, arguments: dict) -> dict[str, Any]:
        args = ListAgentsArgs.model_validate(arguments)
        agents = self._supervisor.list_agents(args.filter)
        running = sum(1 for a in agents if a.exit_code is None)
        return {
            "total": len(self._supervisor.registry),
            "running": running,
            "completed": len(agents) - running,
            "agents": [a.model_dump(mode="json") for a in agents],
        }

    async def _get_agent_output(self, arguments: dict) -> dict[str, Any]:
        args = AgentIdArgs.model_validate(arguments)
        return self._supervisor.describe(args.agent_id).model_dump(mode="json")

    async def _stop_agent(self, arguments: dict) -> dict[str, Any]:
        args = StopAgentArgs.model_validate(arguments)
        return self._supervisor.terminate(args.agent_id, args.signal).model_dump(mode="json")

    async def _wait_for_agent(self, arguments: dict) -> dict[str, Any]:
        args = WaitForAgentArgs.model_validate(arguments)
        snapshot = await self._supervisor.wait_for(args.agent_id, args.timeout)
        return snapshot.model_dump(mode="json")

    async def _spawn_parallel_agents(self, arguments: dict) -> dict[str, Any]:
        args = SpawnParallelArgs.model_validate(arguments)
        spawned: list[str] = []
        failed: list[dict[str, Any]] = []

        for index, item in enumerate(args.tasks):
            try:
                record = await self._supervisor.spawn(
                    item.task,
                    workdir=item.workdir,
                    model=item.model,
                    extra_args=codex_option_flags(item.reasoning_effort, skip_git_check=True),
                )
            except SpawnError as e:
                failed.append({"index": index, "task": item.task, "error": str(e)})
                continue
            spawned.append(record.id)

        return {
            "spawned_count": len(spawned),
            "agent_ids": spawned,
            "status": "parallel_execution_started",
            "failed": failed,
        }

    async def _check_codex_available(self, arguments: dict) -> dict[str, Any]:
        result = await self._supervisor.probe_availability()
        return result.model_dump(mode="json", exclude_none=True)
