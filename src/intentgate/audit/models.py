"""Data models for the audit subsystem."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from intentgate.core.decision import DecisionType  # noqa: TC001
from intentgate.core.gate import LogEntry
from intentgate.core.intent import ToolType  # noqa: TC001

DEFAULT_LIMIT = 100


class StoredLogEntry(LogEntry):
    """A :class:`LogEntry` with the id assigned by the audit logger."""

    id: str = Field(..., description="Unique id (uuid4 hex) assigned at write time.")


class AuditFilter(BaseModel):
    """Criteria for querying stored entries.  Unset fields match everything."""

    model_config = ConfigDict(populate_by_name=True)

    agent_id: str | None = None
    tool: ToolType | None = None
    decision_type: DecisionType | None = None
    from_: int | None = Field(default=None, alias="from", description="Inclusive lower bound, Unix ms.")
    to: int | None = Field(default=None, description="Inclusive upper bound, Unix ms.")
    limit: int = Field(default=DEFAULT_LIMIT, ge=0)
    offset: int = Field(default=0, ge=0)

    def matches(self, entry: LogEntry) -> bool:
        """Return ``True`` if *entry* satisfies every set criterion."""
        if self.agent_id is not None and entry.agent_id != self.agent_id:
            return False
        if self.tool is not None and entry.tool != self.tool:
            return False
        if self.decision_type is not None and entry.decision.type != self.decision_type.value:
            return False
        if self.from_ is not None and entry.timestamp < self.from_:
            return False
        if self.to is not None and entry.timestamp > self.to:
            return False
        return True
