"""Gate LangChain-style tools.

:func:`guard_tool` wraps any object with LangChain's tool surface (``name``,
``description``, ``invoke`` and ``ainvoke``) so every call is evaluated
first.  Refusals come back as an error string the agent can read, the way
LangChain tools report failures.  LangChain itself is not imported.

Usage::

    tools = guard_tools(gate, [search_tool, write_tool], agent_id="agent-1")
    agent = create_react_agent(llm, tools)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from intentgate.core.decision import Block, RequireApproval
from intentgate.core.intent import ToolType, create_intent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from intentgate.core.gate import Gate
    from intentgate.core.intent import Intent

DEFAULT_AGENT_ID = "langchain-agent"
TARGET_MAX_CHARS = 200


@runtime_checkable
class LangChainTool(Protocol):
    """The part of a LangChain ``BaseTool`` the guard relies on."""

    name: str
    description: str

    def invoke(self, input: Any) -> Any: ...

    async def ainvoke(self, input: Any) -> Any: ...


def map_langchain_tool(name: str) -> ToolType:
    """Map a tool name to a :class:`ToolType`; unknown names map to ``exec``."""
    lowered = name.lower()
    if any(word in lowered for word in ("shell", "bash", "exec")):
        return ToolType.EXEC
    if any(word in lowered for word in ("browser", "navigate", "click")):
        return ToolType.BROWSER
    if any(word in lowered for word in ("http", "fetch", "request", "api")):
        return ToolType.HTTP
    if any(word in lowered for word in ("write", "file", "save")):
        return ToolType.WRITE
    return ToolType.EXEC


def extract_input_target(name: str, input: Any) -> str:
    """A string input is its own target; a dict contributes its first known key."""
    if isinstance(input, str):
        target = input
    elif isinstance(input, dict):
        target = next(
            (str(input[key]) for key in ("url", "path", "command", "query", "input") if input.get(key) is not None),
            name,
        )
    else:
        target = name
    target = target[:TARGET_MAX_CHARS]
    return target if target.strip() else name


def intent_from_tool_input(name: str, input: Any, agent_id: str = DEFAULT_AGENT_ID) -> Intent:
    return create_intent(
        agent_id,
        map_langchain_tool(name),
        extract_input_target(name, input),
        input,
        {"reason": f"LangChain tool: {name}"},
    )


class GuardedTool:
    """A tool wrapper that evaluates each call before delegating."""

    def __init__(self, gate: Gate, tool: LangChainTool, agent_id: str = DEFAULT_AGENT_ID) -> None:
        self.name = tool.name
        self.description = tool.description
        self.wrapped = tool
        self._gate = gate
        self._agent_id = agent_id

    def invoke(self, input: Any) -> Any:
        refusal = self._refusal(input)
        if refusal is not None:
            return refusal
        return self.wrapped.invoke(input)

    async def ainvoke(self, input: Any) -> Any:
        refusal = self._refusal(input)
        if refusal is not None:
            return refusal
        return await self.wrapped.ainvoke(input)

    def _refusal(self, input: Any) -> str | None:
        decision = self._gate.evaluate(intent_from_tool_input(self.name, input, self._agent_id))
        if isinstance(decision, Block):
            return f"Error: Action blocked. {decision.reason}"
        if isinstance(decision, RequireApproval):
            return f"Error: Action requires human approval. {decision.reason or 'Please review before proceeding.'}"
        return None


def guard_tool(gate: Gate, tool: LangChainTool, agent_id: str = DEFAULT_AGENT_ID) -> GuardedTool:
    return GuardedTool(gate, tool, agent_id)


def guard_tools(gate: Gate, tools: Iterable[LangChainTool], agent_id: str = DEFAULT_AGENT_ID) -> list[GuardedTool]:
    """Wrap every tool, preserving order."""
    return [GuardedTool(gate, tool, agent_id) for tool in tools]
