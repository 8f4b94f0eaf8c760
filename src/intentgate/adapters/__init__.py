"""Framework adapters that map agent tool calls onto intents."""

from intentgate.adapters.a2a import (
    A2ATask,
    AgentCard,
    AgentSkill,
    create_skill_mapper,
    error_response,
    guard_task,
    guard_task_async,
    input_required_response,
    map_skill_to_tool,
)
from intentgate.adapters.langchain import GuardedTool, guard_tool, guard_tools, map_langchain_tool
from intentgate.adapters.mcp import (
    GuardedMcpHandler,
    McpRequest,
    McpResponse,
    intent_from_mcp,
    map_mcp_tool,
)
from intentgate.adapters.openai import (
    GuardedToolExecutor,
    OpenAIToolCall,
    ToolMessage,
    extract_target,
    intent_from_tool_call,
    map_function_to_tool,
)

__all__ = [
    "A2ATask",
    "AgentCard",
    "AgentSkill",
    "GuardedMcpHandler",
    "GuardedTool",
    "GuardedToolExecutor",
    "McpRequest",
    "McpResponse",
    "OpenAIToolCall",
    "ToolMessage",
    "create_skill_mapper",
    "error_response",
    "extract_target",
    "guard_task",
    "guard_task_async",
    "guard_tool",
    "guard_tools",
    "input_required_response",
    "intent_from_mcp",
    "intent_from_tool_call",
    "map_function_to_tool",
    "map_langchain_tool",
    "map_mcp_tool",
]
