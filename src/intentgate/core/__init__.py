"""Evaluation engine: intents, decisions, rules and the gate."""

from intentgate.core.decision import (
    Allow,
    Block,
    Decision,
    DecisionType,
    RequireApproval,
    allow,
    block,
    decision_type,
    is_allowed,
    is_blocked,
    require_approval,
    requires_approval,
)
from intentgate.core.gate import Gate, LogEntry, LogLevel, LogSink, create_gate
from intentgate.core.intent import Intent, IntentMetadata, ToolType, create_intent
from intentgate.core.rate_limit import RateLimiter, rate_limit
from intentgate.core.rules import (
    AllowAll,
    AllowOnlyAgents,
    AsyncFunctionRule,
    AsyncRule,
    BlockAgents,
    BlockExec,
    BlockSensitivePaths,
    FunctionRule,
    RequireApprovalForExternalBrowser,
    RequireApprovalForExternalHttp,
    Rule,
    compose_rules,
)

__all__ = [
    "Allow",
    "AllowAll",
    "AllowOnlyAgents",
    "AsyncFunctionRule",
    "AsyncRule",
    "Block",
    "BlockAgents",
    "BlockExec",
    "BlockSensitivePaths",
    "Decision",
    "DecisionType",
    "FunctionRule",
    "Gate",
    "Intent",
    "IntentMetadata",
    "LogEntry",
    "LogLevel",
    "LogSink",
    "RateLimiter",
    "RequireApproval",
    "RequireApprovalForExternalBrowser",
    "RequireApprovalForExternalHttp",
    "Rule",
    "ToolType",
    "allow",
    "block",
    "compose_rules",
    "create_gate",
    "create_intent",
    "decision_type",
    "is_allowed",
    "is_blocked",
    "rate_limit",
    "require_approval",
    "requires_approval",
]
