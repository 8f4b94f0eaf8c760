"""Rule contracts and built-in rules.

A rule inspects an :class:`~intentgate.core.intent.Intent` and either
returns a decision or ``None`` to pass through ("no opinion, continue").
Rules are evaluated by :class:`~intentgate.core.gate.Gate` in declaration
order; the first decision wins.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from urllib.parse import urlparse

from intentgate.core.decision import allow, block, require_approval
from intentgate.core.intent import ToolType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from intentgate.core.decision import Decision
    from intentgate.core.intent import Intent


@runtime_checkable
class Rule(Protocol):
    """A synchronous policy check."""

    def evaluate(self, intent: Intent) -> Decision | None:
        """Return a decision, or ``None`` to pass through."""
        ...


@runtime_checkable
class AsyncRule(Protocol):
    """A policy check that needs to await I/O (lookups, remote services)."""

    async def evaluate(self, intent: Intent) -> Decision | None:
        """Return a decision, or ``None`` to pass through."""
        ...


class FunctionRule:
    """Adapt a plain ``intent -> decision | None`` callable to :class:`Rule`."""

    def __init__(self, func: Callable[[Intent], Decision | None], *, name: str | None = None) -> None:
        self._func = func
        self.name = name or getattr(func, "__name__", type(func).__name__)

    def evaluate(self, intent: Intent) -> Decision | None:
        return self._func(intent)


class AsyncFunctionRule:
    """Adapt an ``async intent -> decision | None`` callable to :class:`AsyncRule`."""

    def __init__(
        self, func: Callable[[Intent], Awaitable[Decision | None]], *, name: str | None = None
    ) -> None:
        self._func = func
        self.name = name or getattr(func, "__name__", type(func).__name__)

    async def evaluate(self, intent: Intent) -> Decision | None:
        return await self._func(intent)


def rule_name(rule: object) -> str:
    """Display name for *rule* in failure reasons and logs."""
    for attr in ("name", "__name__"):
        name = getattr(rule, attr, None)
        if isinstance(name, str) and name:
            return name
    return type(rule).__name__


def compose_rules(*rules: Rule | Iterable[Rule]) -> list[Rule]:
    """Flatten rules and rule lists into one ordered list.

    Usage::

        baseline = compose_rules(BlockExec(), BlockSensitivePaths([r"\\.env$"]))
        gate = Gate([*baseline, AllowAll()])
    """
    flat: list[Rule] = []
    for item in rules:
        if isinstance(item, Iterable):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------


class BlockExec:
    """Block every shell execution."""

    name = "block_exec"

    def evaluate(self, intent: Intent) -> Decision | None:
        if intent.tool is ToolType.EXEC:
            return block("Shell execution blocked by default")
        return None


class BlockSensitivePaths:
    """Block writes whose target matches any of *patterns* (``re.search``)."""

    name = "block_sensitive_paths"

    def __init__(self, patterns: Iterable[str | re.Pattern[str]]) -> None:
        self._patterns = [re.compile(p) if isinstance(p, str) else p for p in patterns]

    def evaluate(self, intent: Intent) -> Decision | None:
        if intent.tool is not ToolType.WRITE:
            return None
        for pattern in self._patterns:
            if pattern.search(intent.target):
                return block(f"Write to sensitive path blocked: {intent.target}")
        return None


class _ExternalDomainRule:
    """Require approval for URLs whose host is not allow-listed."""

    tool: ToolType
    label: str

    def __init__(self, allowed_domains: Iterable[str]) -> None:
        self._allowed = {d.lower() for d in allowed_domains}

    def evaluate(self, intent: Intent) -> Decision | None:
        if intent.tool is not self.tool:
            return None
        try:
            host = urlparse(intent.target).hostname
        except ValueError:
            host = None
        if not host:
            return block("Invalid URL")
        if host not in self._allowed:
            return require_approval(f"External {self.label} to {host}")
        return None


class RequireApprovalForExternalHttp(_ExternalDomainRule):
    name = "require_approval_for_external_http"
    tool = ToolType.HTTP
    label = "HTTP request"


class RequireApprovalForExternalBrowser(_ExternalDomainRule):
    name = "require_approval_for_external_browser"
    tool = ToolType.BROWSER
    label = "browser navigation"


class AllowOnlyAgents:
    """Block any agent that is not in *agent_ids*."""

    name = "allow_only_agents"

    def __init__(self, agent_ids: Iterable[str]) -> None:
        self._agents = frozenset(agent_ids)

    def evaluate(self, intent: Intent) -> Decision | None:
        if intent.agent_id not in self._agents:
            return block(f"Agent not allowed: {intent.agent_id}")
        return None


class BlockAgents:
    """Block every agent in *agent_ids*."""

    name = "block_agents"

    def __init__(self, agent_ids: Iterable[str]) -> None:
        self._agents = frozenset(agent_ids)

    def evaluate(self, intent: Intent) -> Decision | None:
        if intent.agent_id in self._agents:
            return block(f"Agent blocked: {intent.agent_id}")
        return None


class AllowAll:
    """Allow everything. Use as the last rule to make the default permissive."""

    name = "allow_all"

    def evaluate(self, intent: Intent) -> Decision | None:
        return allow()
