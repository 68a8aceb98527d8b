"""AgentRegistry — the supervisor's table of every agent it has spawned."""

from __future__ import annotations

from typing import Iterator

from codex_mcp.exceptions import AgentNotFoundError
from codex_mcp.supervisor.record import AgentRecord
from codex_mcp.types import AgentId, StatusFilter


class AgentRegistry:
    """Maps agent IDs to records. Entries live as long as the registry."""

    def __init__(self) -> None:
        self._agents: dict[AgentId, AgentRecord] = {}

    def add(self, record: AgentRecord) -> None:
        if record.id in self._agents:
            raise ValueError(f"Agent {record.id} is already registered")
        self._agents[record.id] = record

    def get(self, agent_id: AgentId) -> AgentRecord:
        record = self._agents.get(agent_id)
        if record is None:
            raise AgentNotFoundError(agent_id)
        return record

    def find(self, agent_id: AgentId) -> AgentRecord | None:
        return self._agents.get(agent_id)

    def select(self, status: StatusFilter = StatusFilter.ALL) -> list[AgentRecord]:
        return [r for r in self._agents.values() if status.matches(r.status)]

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator[AgentRecord]:
        return iter(list(self._agents.values()))

    def __len__(self) -> int:
        return len(self._agents)
