"""Gate Agent-to-Agent (A2A) tasks.

An A2A server receives tasks from client agents and should evaluate each
one before processing it.  The invoked skill, picked from the server's
``AgentCard``, decides the tool type; the first text or file part of the
task message becomes the target.

Usage::

    decision = guard_task(gate, card, task, client_agent_id=caller)
    if isinstance(decision, Block):
        return error_response(task.id, decision.reason)
    if isinstance(decision, RequireApproval):
        return input_required_response(task.id, decision.reason)
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from intentgate.core.intent import ToolType, create_intent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from intentgate.core.decision import Decision
    from intentgate.core.gate import Gate
    from intentgate.core.intent import Intent

DEFAULT_CLIENT_ID = "a2a-client"
TARGET_MAX_CHARS = 200
JSONRPC_INTERNAL_ERROR = -32603

# ---------------------------------------------------------------------------
# Agent discovery
# ---------------------------------------------------------------------------


class AgentSkill(BaseModel):
    """A single skill advertised by an agent."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str = ""
    tags: list[str] = []
    input_modes: list[str] = Field(default=[], alias="inputModes")
    output_modes: list[str] = Field(default=[], alias="outputModes")


class AgentCapabilities(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    streaming: bool = False
    push_notifications: bool = Field(default=False, alias="pushNotifications")


class AgentCard(BaseModel):
    """Agent metadata served at ``.well-known/agent.json``."""

    name: str
    description: str = ""
    url: str
    version: str = ""
    skills: list[AgentSkill] = []
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskState(str, Enum):
    SUBMITTED = "submitted"
    WORKING = "working"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"
    INPUT_REQUIRED = "input-required"


class A2APart(BaseModel):
    """A content part within an A2A message."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["text", "file", "data"] = "text"
    text: str | None = None
    file_url: str | None = Field(default=None, alias="fileUrl")
    data: Any = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class A2AMessage(BaseModel):
    role: Literal["user", "agent"] = "user"
    parts: list[A2APart] = []


class A2ATask(BaseModel):
    """The unit of work one agent delegates to another."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    session_id: str | None = Field(default=None, alias="sessionId")
    status: TaskState | None = None
    message: A2AMessage | None = None
    metadata: dict[str, Any] = {}


class A2ATaskResult(BaseModel):
    id: str
    status: TaskState
    message: A2AMessage | None = None


class A2AError(BaseModel):
    code: int
    message: str


class A2AResponse(BaseModel):
    """JSON-RPC response envelope."""

    jsonrpc: str = "2.0"
    id: str
    result: A2ATaskResult | None = None
    error: A2AError | None = None


SkillMapper = Callable[[AgentSkill], ToolType]

# ---------------------------------------------------------------------------
# Skill mapping
# ---------------------------------------------------------------------------

_SKILL_KEYWORDS: list[tuple[tuple[str, ...], ToolType]] = [
    (("exec", "shell", "bash", "command", "run", "script"), ToolType.EXEC),
    (("browser", "navigate", "click", "screenshot", "web-ui", "playwright"), ToolType.BROWSER),
    (("http", "fetch", "api", "request", "webhook", "rest", "graphql"), ToolType.HTTP),
    (("write", "file", "save", "create", "upload", "storage", "disk"), ToolType.WRITE),
]


def map_skill_to_tool(skill: AgentSkill) -> ToolType:
    """Map a skill to a :class:`ToolType` by keywords in its id, name and tags.

    Falls back to ``http``: A2A agents are remote.
    """
    haystack = " ".join([skill.id, skill.name, *skill.tags]).lower()
    for keywords, tool in _SKILL_KEYWORDS:
        if any(word in haystack for word in keywords):
            return tool
    return ToolType.HTTP


def create_skill_mapper(overrides: dict[str, ToolType | str]) -> SkillMapper:
    """Return a mapper that consults *overrides* by skill id before the keywords."""
    resolved = {skill_id: ToolType(tool) for skill_id, tool in overrides.items()}

    def mapper(skill: AgentSkill) -> ToolType:
        return resolved.get(skill.id) or map_skill_to_tool(skill)

    return mapper


# ---------------------------------------------------------------------------
# Intent construction
# ---------------------------------------------------------------------------


def extract_task_target(task: A2ATask, card: AgentCard) -> str:
    """First text or file part of the message, else the agent's endpoint."""
    parts = task.message.parts if task.message else []
    for part in parts:
        if part.type == "text" and part.text:
            return part.text[:TARGET_MAX_CHARS]
        if part.type == "file" and part.file_url:
            return part.file_url[:TARGET_MAX_CHARS]
    return card.url


def _invoked_skill(card: AgentCard, task: A2ATask) -> tuple[AgentSkill | None, str | None]:
    skill_id = task.metadata.get("skillId")
    if skill_id is None and card.skills:
        skill_id = card.skills[0].id
    for skill in card.skills:
        if skill.id == skill_id:
            return skill, skill_id
    return (card.skills[0] if card.skills else None), skill_id


def intent_from_task(
    card: AgentCard,
    task: A2ATask,
    client_agent_id: str = DEFAULT_CLIENT_ID,
    skill_mapper: SkillMapper | None = None,
) -> Intent:
    """Build the intent for *task* arriving at the agent described by *card*.

    The skill is the one named by ``metadata["skillId"]``; an unknown or
    missing id falls back to the card's first skill.  A card without skills
    maps to ``http``.
    """
    skill, skill_id = _invoked_skill(card, task)
    mapper = skill_mapper or map_skill_to_tool
    label = skill.name if skill else (skill_id or "unknown")
    return create_intent(
        client_agent_id,
        mapper(skill) if skill else ToolType.HTTP,
        extract_task_target(task, card),
        task.message.model_dump(by_alias=True, exclude_none=True) if task.message else None,
        {"session_id": task.session_id, "reason": f"A2A task: {label}"},
    )


def guard_task(
    gate: Gate,
    card: AgentCard,
    task: A2ATask,
    client_agent_id: str = DEFAULT_CLIENT_ID,
    skill_mapper: SkillMapper | None = None,
) -> Decision:
    """Evaluate an incoming task with the gate's sync rules."""
    return gate.evaluate(intent_from_task(card, task, client_agent_id, skill_mapper))


async def guard_task_async(
    gate: Gate,
    card: AgentCard,
    task: A2ATask,
    client_agent_id: str = DEFAULT_CLIENT_ID,
    async_rules: Iterable[Any] = (),
    skill_mapper: SkillMapper | None = None,
) -> Decision:
    intent = intent_from_task(card, task, client_agent_id, skill_mapper)
    return await gate.evaluate_async(intent, async_rules)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def error_response(task_id: str, reason: str | None = None) -> A2AResponse:
    """JSON-RPC error for a blocked task."""
    return A2AResponse(
        id=task_id,
        error=A2AError(code=JSONRPC_INTERNAL_ERROR, message=reason or "Task blocked by policy"),
    )


def input_required_response(task_id: str, reason: str | None = None) -> A2AResponse:
    """``input-required`` result asking the client to surface an approval prompt."""
    text = f"Human approval required: {reason or 'Please review this action before proceeding.'}"
    return A2AResponse(
        id=task_id,
        result=A2ATaskResult(
            id=task_id,
            status=TaskState.INPUT_REQUIRED,
            message=A2AMessage(role="agent", parts=[A2APart(text=text)]),
        ),
    )
