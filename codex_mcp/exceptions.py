"""Custom exception hierarchy for codex-mcp."""

from __future__ import annotations


class CodexMCPError(Exception):
    """Base for all codex-mcp errors."""

    def details(self) -> dict:
        """Extra fields reported alongside the error message."""
        return {}


class AgentNotFoundError(CodexMCPError):
    """No agent with the given ID exists."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent {agent_id} not found")
        self.agent_id = agent_id


class AgentStateError(CodexMCPError):
    """Invalid agent lifecycle transition."""


class AgentAlreadyCompletedError(CodexMCPError):
    """The agent has already exited."""

    def __init__(self, agent_id: str, exit_code: int) -> None:
        super().__init__(f"Agent {agent_id} already completed")
        self.agent_id = agent_id
        self.exit_code = exit_code

    def details(self) -> dict:
        return {"exit_code": self.exit_code}


class WaitTimeoutError(CodexMCPError, TimeoutError):
    """The agent did not complete within the requested time."""

    def __init__(self, agent_id: str, timeout_ms: float) -> None:
        super().__init__(f"Timeout waiting for agent {agent_id}")
        self.agent_id = agent_id
        self.timeout_ms = timeout_ms

    def details(self) -> dict:
        return {"timeout_ms": self.timeout_ms}


class SpawnError(CodexMCPError):
    """The agent binary could not be started."""


class AvailabilityCheckError(CodexMCPError):
    """The agent binary did not run or did not exit cleanly."""


class UnknownToolError(CodexMCPError):
    """Requested tool is not exposed by the server."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name
