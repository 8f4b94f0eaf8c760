"""Evaluate intents against an ordered rule chain.

Resolution order for :meth:`Gate.evaluate`:

1. Rules, in declaration order.  The first rule that returns a decision
   wins; a rule that raises fails closed into a block.
2. ``default_decision`` (require-approval unless configured otherwise).

Every evaluation produces exactly one :class:`LogEntry`, handed to the
optional ``log_sink``.  In dry-run mode the real decision is logged but
``allow`` is returned.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Callable
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from intentgate.core.boundary import fail_closed, fail_closed_async, report_errors
from intentgate.core.decision import (
    Allow,
    Block,
    Decision,
    DecisionType,
    RequireApproval,
    allow,
    block,
    decision_type,
    require_approval,
)
from intentgate.core.intent import ToolType, now_ms
from intentgate.core.rules import FunctionRule, Rule, rule_name
from intentgate.errors import GateConfigError
from intentgate.utils.telemetry import (
    ATTR_AGENT_ID,
    ATTR_ASYNC_RULES,
    ATTR_DECISION,
    ATTR_DRY_RUN,
    ATTR_DURATION_MS,
    ATTR_TARGET,
    ATTR_TOOL,
    get_tracer,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from opentelemetry.trace import Span

    from intentgate.core.intent import Intent
    from intentgate.core.rules import AsyncRule

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_REASON = "No rules matched"


class LogLevel(str, Enum):
    """Severity derived from a decision."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


_LEVEL_FOR_DECISION = {
    DecisionType.ALLOW: LogLevel.INFO,
    DecisionType.REQUIRE_APPROVAL: LogLevel.WARN,
    DecisionType.BLOCK: LogLevel.ERROR,
}

_STDLIB_LEVEL = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class LogEntry(BaseModel):
    """Structured record of one gate evaluation."""

    timestamp: int = Field(..., description="Unix ms when the decision was made.")
    level: LogLevel
    agent_id: str
    tool: ToolType
    target: str
    decision: Decision
    duration_ms: float = Field(..., description="Evaluation time in milliseconds.")
    dry_run: bool = False


LogSink = Callable[[LogEntry], None]


class Gate:
    """Evaluate :class:`~intentgate.core.intent.Intent` objects against rules.

    Usage::

        audit = create_audit_logger(InMemoryAdapter())
        gate = Gate([BlockExec(), rate_limit(10, 60_000), AllowAll()], log_sink=audit.log)
        decision = gate.evaluate(create_intent("agent-1", "http", "https://example.com"))

    A caller always gets a well-formed decision back; rule and log sink
    failures are contained by :mod:`intentgate.core.boundary`.
    """

    def __init__(
        self,
        rules: list[Rule | Callable[[Intent], Decision | None]] | tuple[Any, ...],
        *,
        default_decision: Decision | None = None,
        dry_run: bool = False,
        log_sink: LogSink | None = None,
    ) -> None:
        if not isinstance(rules, (list, tuple)):
            msg = f"rules must be a list, got {type(rules).__name__}"
            raise GateConfigError(msg)
        self._rules: tuple[Rule, ...] = tuple(_as_rule(r) for r in rules)
        if default_decision is not None and not isinstance(
            default_decision, (Allow, Block, RequireApproval)
        ):
            msg = f"default_decision must be a Decision, got {type(default_decision).__name__}"
            raise GateConfigError(msg)
        self._default = default_decision or require_approval(DEFAULT_REASON)
        self._dry_run = dry_run
        self._log_sink = log_sink

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    @property
    def default_decision(self) -> Decision:
        return self._default

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def evaluate(self, intent: Intent) -> Decision:
        """Run the rule chain and return the (possibly dry-run) decision."""
        start = time.perf_counter()
        with _tracer.start_as_current_span("gate.evaluate") as span:
            decision = self._run_rules(intent)
            return self._finish(intent, decision, start, span)

    async def evaluate_async(
        self,
        intent: Intent,
        async_rules: Iterable[AsyncRule | Callable[..., Any]] = (),
    ) -> Decision:
        """Run the sync chain, then *async_rules* strictly in order.

        Async rules only run when the sync chain resolved to ``allow``.  Each
        is awaited before the next; plain sync rules may be mixed in.  The
        first decision wins and a raising rule fails closed.  If every async
        rule passes through, the gate default applies.  One log entry is
        emitted at the end.
        """
        start = time.perf_counter()
        with _tracer.start_as_current_span("gate.evaluate_async") as span:
            decision = self._run_rules(intent)
            try:
                pending = list(async_rules)
            except TypeError as exc:
                pending = []
                decision = block(f"Invalid async rule list: {exc}")
            span.set_attribute(ATTR_ASYNC_RULES, len(pending))

            if not isinstance(decision, Allow) or not pending:
                return self._finish(intent, decision, start, span)

            for rule in pending:
                result = await fail_closed_async(rule_name(rule), partial(_invoke_async, rule, intent))
                if result is not None:
                    return self._finish(intent, result, start, span)

            return self._finish(intent, self._default, start, span)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_rules(self, intent: Intent) -> Decision:
        for rule in self._rules:
            result = fail_closed(rule_name(rule), partial(_invoke, rule, intent))
            if result is not None:
                return result
        return self._default

    def _finish(self, intent: Intent, decision: Decision, start: float, span: Span) -> Decision:
        duration_ms = (time.perf_counter() - start) * 1000
        kind = decision_type(decision)
        entry = LogEntry(
            timestamp=now_ms(),
            level=_LEVEL_FOR_DECISION[kind],
            agent_id=intent.agent_id,
            tool=intent.tool,
            target=intent.target,
            decision=decision,
            duration_ms=duration_ms,
            dry_run=self._dry_run,
        )

        span.set_attribute(ATTR_AGENT_ID, intent.agent_id)
        span.set_attribute(ATTR_TOOL, intent.tool.value)
        span.set_attribute(ATTR_TARGET, intent.target)
        span.set_attribute(ATTR_DECISION, kind.value)
        span.set_attribute(ATTR_DRY_RUN, self._dry_run)
        span.set_attribute(ATTR_DURATION_MS, duration_ms)

        logger.log(
            _STDLIB_LEVEL[entry.level],
            "%s%s %s %s -> %s%s",
            "[dry-run] " if self._dry_run else "",
            intent.agent_id,
            intent.tool.value,
            intent.target,
            kind.value,
            f" ({decision.reason})" if getattr(decision, "reason", None) else "",
        )

        if self._log_sink is not None:
            sink = self._log_sink
            report_errors(partial(sink, entry), what="gate log sink")

        if self._dry_run:
            return allow()
        return decision


def create_gate(
    rules: list[Rule | Callable[[Intent], Decision | None]] | tuple[Any, ...],
    **options: Any,
) -> Gate:
    """Convenience constructor: ``create_gate(rules, dry_run=True, log_sink=...)``."""
    return Gate(rules, **options)


def _as_rule(rule: object) -> Rule:
    if isinstance(rule, Rule):
        return rule
    if callable(rule):
        return FunctionRule(rule)
    msg = f"rule must have an evaluate() method or be callable, got {type(rule).__name__}"
    raise GateConfigError(msg)


def _checked(result: object) -> Decision | None:
    if result is None or isinstance(result, (Allow, Block, RequireApproval)):
        return result
    msg = f"rule returned {type(result).__name__}, expected a Decision or None"
    raise TypeError(msg)


def _invoke(rule: Rule, intent: Intent) -> Decision | None:
    return _checked(rule.evaluate(intent))


async def _invoke_async(rule: object, intent: Intent) -> Decision | None:
    evaluate = getattr(rule, "evaluate", None)
    if evaluate is None:
        if not callable(rule):
            msg = f"async rule must have an evaluate() method or be callable, got {type(rule).__name__}"
            raise TypeError(msg)
        evaluate = rule
    result = evaluate(intent)
    # Sync rules may be mixed in; only awaitables are awaited.
    if inspect.isawaitable(result):
        result = await result
    return _checked(result)
