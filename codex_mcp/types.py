"""Core types shared across codex-mcp."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import TypeAlias

AgentId: TypeAlias = str


def new_id() -> AgentId:
    return str(uuid.uuid4())


class AgentStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"


class StatusFilter(str, Enum):
    ALL = "all"
    RUNNING = "running"
    COMPLETED = "completed"

    def matches(self, status: AgentStatus) -> bool:
        return self is StatusFilter.ALL or self.value == status.value


class StopSignal(str, Enum):
    SIGTERM = "SIGTERM"
    SIGKILL = "SIGKILL"


class ReasoningEffort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTRA_HIGH = "extra_high"
