"""Gate Model Context Protocol tool calls.

Wraps an async MCP tool handler so every call is evaluated before it runs.
Blocked calls and calls that need approval get an error response instead
of executing.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

from intentgate.core.decision import Block, RequireApproval
from intentgate.core.intent import ToolType, create_intent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from intentgate.core.gate import Gate
    from intentgate.core.intent import Intent

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "mcp-session"


class McpRequest(BaseModel):
    """An incoming MCP ``tools/call`` request."""

    tool: str
    arguments: dict[str, Any] = {}
    session_id: str | None = None


class McpTextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class McpResponse(BaseModel):
    """An MCP tool result."""

    content: list[McpTextContent] = []
    is_error: bool = False

    @classmethod
    def error(cls, text: str) -> McpResponse:
        return cls(content=[McpTextContent(text=text)], is_error=True)


McpHandler = Callable[[McpRequest], Awaitable[McpResponse]]


def map_mcp_tool(name: str) -> ToolType:
    """Map an MCP tool name to a :class:`ToolType`.

    Unknown tools map to ``exec``, the most restrictive type.
    """
    if name.startswith("exec_") or name in ("bash", "shell"):
        return ToolType.EXEC
    if name.startswith("browser_") or name in ("navigate", "click"):
        return ToolType.BROWSER
    if name.startswith("http_") or name in ("fetch", "request"):
        return ToolType.HTTP
    if name.startswith("write_") or name in ("create_file", "edit_file"):
        return ToolType.WRITE
    return ToolType.EXEC


def intent_from_mcp(request: McpRequest) -> Intent:
    """Build the intent for an MCP request; the tool name is the target."""
    return create_intent(
        request.session_id or DEFAULT_SESSION,
        map_mcp_tool(request.tool),
        request.tool,
        request.arguments,
        {"session_id": request.session_id, "reason": f"MCP tool call: {request.tool}"},
    )


class GuardedMcpHandler:
    """Callable MCP handler that evaluates each request before delegating."""

    def __init__(
        self,
        gate: Gate,
        handler: McpHandler,
        *,
        async_rules: Iterable[Any] = (),
    ) -> None:
        self._gate = gate
        self._handler = handler
        self._async_rules = list(async_rules)

    async def __call__(self, request: McpRequest) -> McpResponse:
        intent = intent_from_mcp(request)
        decision = await self._gate.evaluate_async(intent, self._async_rules)

        if isinstance(decision, Block):
            logger.info("MCP tool %s blocked: %s", request.tool, decision.reason)
            return McpResponse.error(f"Blocked: {decision.reason}")

        if isinstance(decision, RequireApproval):
            return McpResponse.error(
                f"Requires human approval: {decision.reason or 'action needs review'}"
            )

        return await self._handler(request)
