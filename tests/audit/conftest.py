"""Shared fixtures for audit tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from intentgate.audit.models import StoredLogEntry
from intentgate.core.decision import Decision, allow
from intentgate.core.gate import LogEntry, LogLevel
from intentgate.core.intent import ToolType

_LEVELS = {"allow": LogLevel.INFO, "require-approval": LogLevel.WARN, "block": LogLevel.ERROR}


def make_log_entry(
    *,
    agent_id: str = "agent-1",
    tool: ToolType = ToolType.HTTP,
    target: str = "https://api.example.com",
    decision: Decision | None = None,
    timestamp: int = 1_700_000_000_000,
    dry_run: bool = False,
) -> LogEntry:
    decision = decision or allow()
    return LogEntry(
        timestamp=timestamp,
        level=_LEVELS[decision.type],
        agent_id=agent_id,
        tool=tool,
        target=target,
        decision=decision,
        duration_ms=0.5,
        dry_run=dry_run,
    )


@pytest.fixture
def entry_factory() -> Callable[..., StoredLogEntry]:
    counter = iter(range(1_000_000))

    def _make(**kwargs: object) -> StoredLogEntry:
        entry = make_log_entry(**kwargs)  # type: ignore[arg-type]
        return StoredLogEntry(id=f"entry-{next(counter)}", **entry.model_dump())

    return _make
