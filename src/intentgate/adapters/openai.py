"""Gate OpenAI-style function and tool calls.

:class:`GuardedToolExecutor` turns each tool call into an intent, evaluates
it, and only then runs the registered handler.  Every outcome, including
refusals and handler failures, comes back as a ``tool`` role message the
model can read.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

from intentgate.core.decision import Block, Decision, RequireApproval
from intentgate.core.intent import ToolType, create_intent

if TYPE_CHECKING:
    from intentgate.core.gate import Gate
    from intentgate.core.intent import Intent

logger = logging.getLogger(__name__)

DEFAULT_AGENT_ID = "openai-agent"


class FunctionCall(BaseModel):
    name: str
    arguments: str = "{}"


class OpenAIToolCall(BaseModel):
    """A ``tool_calls`` item from a chat completion."""

    id: str
    type: Literal["function"] = "function"
    function: FunctionCall


class ToolMessage(BaseModel):
    """The ``tool`` role message answering a tool call."""

    tool_call_id: str
    role: Literal["tool"] = "tool"
    content: str


ToolHandler = Callable[[Any], Awaitable[str]]
ApprovalCallback = Callable[[OpenAIToolCall, Decision], Awaitable[bool]]


def map_function_to_tool(name: str) -> ToolType:
    """Map a function name to a :class:`ToolType`; unknown names map to ``exec``."""
    lowered = name.lower()
    if any(word in lowered for word in ("exec", "run", "shell")):
        return ToolType.EXEC
    if any(word in lowered for word in ("browse", "navigate", "click")):
        return ToolType.BROWSER
    if any(word in lowered for word in ("fetch", "request", "http")):
        return ToolType.HTTP
    if any(word in lowered for word in ("write", "save", "create")):
        return ToolType.WRITE
    return ToolType.EXEC


def extract_target(name: str, args: Any) -> str:
    """Pick the most meaningful target from the call arguments."""
    if isinstance(args, dict):
        for key in ("url", "path", "command", "target"):
            value = args.get(key)
            if value is not None and str(value).strip():
                return str(value)
    return name


def parse_arguments(raw: str) -> Any:
    """Decode the JSON argument string; undecodable input is kept as text."""
    try:
        return json.loads(raw) if raw else {}
    except json.JSONDecodeError:
        return raw


def intent_from_tool_call(call: OpenAIToolCall, agent_id: str = DEFAULT_AGENT_ID) -> Intent:
    args = parse_arguments(call.function.arguments)
    return create_intent(
        agent_id,
        map_function_to_tool(call.function.name),
        extract_target(call.function.name, args),
        args,
        {"reason": f"OpenAI tool call: {call.function.name}"},
    )


class GuardedToolExecutor:
    """Evaluate then execute OpenAI tool calls.

    When a call requires approval, *on_approval_required* is awaited; a
    missing callback or a ``False`` answer refuses the call.
    """

    def __init__(
        self,
        gate: Gate,
        handlers: dict[str, ToolHandler],
        *,
        agent_id: str = DEFAULT_AGENT_ID,
        on_approval_required: ApprovalCallback | None = None,
    ) -> None:
        self._gate = gate
        self._handlers = handlers
        self._agent_id = agent_id
        self._on_approval_required = on_approval_required

    async def __call__(self, call: OpenAIToolCall) -> ToolMessage:
        args = parse_arguments(call.function.arguments)
        intent = intent_from_tool_call(call, self._agent_id)
        decision = self._gate.evaluate(intent)

        if isinstance(decision, Block):
            return self._reply(call, f"Error: Action blocked. {decision.reason}")

        if isinstance(decision, RequireApproval):
            reason = decision.reason or ""
            if self._on_approval_required is None:
                return self._reply(call, f"Error: Action requires human approval. {reason}".rstrip())
            if not await self._on_approval_required(call, decision):
                return self._reply(call, f"Error: Action declined by user. {reason}".rstrip())

        handler = self._handlers.get(call.function.name)
        if handler is None:
            return self._reply(call, f'Error: No handler registered for tool "{call.function.name}"')

        try:
            result = await handler(args)
        except Exception as exc:
            logger.warning("Tool %s failed", call.function.name, exc_info=True)
            return self._reply(call, f"Error: Tool execution failed. {exc}")
        return self._reply(call, result)

    async def execute_all(self, calls: list[OpenAIToolCall]) -> list[ToolMessage]:
        """Execute calls one at a time, in order."""
        results: list[ToolMessage] = []
        for call in calls:
            results.append(await self(call))
        return results

    @staticmethod
    def _reply(call: OpenAIToolCall, content: str) -> ToolMessage:
        return ToolMessage(tool_call_id=call.id, content=content)
