"""Intents describe an action an agent wants to take.

Intents are agent independent and framework neutral.  Framework adapters
build them from tool calls; the gate only ever reads them.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from intentgate.errors import IntentValidationError


class ToolType(str, Enum):
    """Kinds of action the gate can evaluate."""

    EXEC = "exec"
    BROWSER = "browser"
    HTTP = "http"
    WRITE = "write"


class IntentMetadata(BaseModel):
    """Optional audit context attached to an intent."""

    model_config = ConfigDict(frozen=True)

    timestamp: int | None = Field(default=None, description="Creation time in Unix ms.")
    session_id: str | None = Field(default=None, description="Session or conversation id.")
    reason: str | None = Field(default=None, description="Why the agent wants this action.")


class Intent(BaseModel):
    """A request from an agent to perform an action."""

    model_config = ConfigDict(frozen=True)

    agent_id: str
    tool: ToolType
    target: str = Field(..., description="Command, URL or path, depending on the tool.")
    payload: Any = None
    metadata: IntentMetadata = Field(default_factory=IntentMetadata)

    @field_validator("agent_id", "target")
    @classmethod
    def _strip_non_empty(cls, value: str, info: Any) -> str:
        stripped = value.strip()
        if not stripped:
            msg = f"{info.field_name} must not be empty"
            raise ValueError(msg)
        return stripped


def now_ms() -> int:
    """Current wall-clock time in Unix milliseconds."""
    return int(time.time() * 1000)


def create_intent(
    agent_id: str,
    tool: ToolType | str,
    target: str,
    payload: Any = None,
    metadata: IntentMetadata | dict[str, Any] | None = None,
) -> Intent:
    """Build a validated :class:`Intent`, stamping ``metadata.timestamp``.

    Provided metadata is merged over the generated timestamp.

    Raises:
        IntentValidationError: If ``agent_id`` or ``target`` is empty or
            whitespace-only, or ``tool`` is not a known :class:`ToolType`.
    """
    if isinstance(metadata, IntentMetadata):
        extra = metadata.model_dump(exclude_none=True)
    else:
        extra = {k: v for k, v in (metadata or {}).items() if v is not None}

    try:
        return Intent(
            agent_id=agent_id,
            tool=tool,
            target=target,
            payload=payload,
            metadata=IntentMetadata(**{"timestamp": now_ms(), **extra}),
        )
    except ValidationError as exc:
        error = exc.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else "intent"
        detail = error["msg"].removeprefix("Value error, ")
        raise IntentValidationError(field, detail) from exc
