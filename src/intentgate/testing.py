"""Assertion helpers for testing custom rules and gate configurations.

Usage::

    from intentgate.testing import assert_blocks, assert_gate_allows

    assert_blocks(BlockExec(), create_intent("agent", "exec", "rm -rf /"))
    assert_gate_allows(gate, create_intent("agent", "http", "https://api.openai.com"))

Each helper raises ``AssertionError`` with the intent's tool and target.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from intentgate.core.decision import DecisionType, decision_type

if TYPE_CHECKING:
    from intentgate.core.decision import Decision
    from intentgate.core.gate import Gate
    from intentgate.core.intent import Intent
    from intentgate.core.rules import Rule


def _describe(intent: Intent) -> str:
    return f"(tool={intent.tool.value}, target={intent.target})"


def _outcome(decision: Decision | None) -> str:
    if decision is None:
        return "None (pass-through)"
    reason = getattr(decision, "reason", None)
    return decision.type + (f" - {reason}" if reason else "")


def _expect(
    subject: str, intent: Intent, decision: Decision | None, expected: DecisionType
) -> None:
    if decision is None or decision_type(decision) is not expected:
        msg = f"Expected {subject} to {expected.value} intent {_describe(intent)}, but got: {_outcome(decision)}"
        raise AssertionError(msg)


def assert_blocks(rule: Rule, intent: Intent) -> None:
    _expect("rule", intent, rule.evaluate(intent), DecisionType.BLOCK)


def assert_allows(rule: Rule, intent: Intent) -> None:
    """Pass when the rule allows or passes through (it does not stand in the way)."""
    decision = rule.evaluate(intent)
    if decision is not None and decision_type(decision) is not DecisionType.ALLOW:
        msg = f"Expected rule to allow intent {_describe(intent)}, but got: {_outcome(decision)}"
        raise AssertionError(msg)


def assert_requires_approval(rule: Rule, intent: Intent) -> None:
    _expect("rule", intent, rule.evaluate(intent), DecisionType.REQUIRE_APPROVAL)


def assert_passes_through(rule: Rule, intent: Intent) -> None:
    decision = rule.evaluate(intent)
    if decision is not None:
        msg = f"Expected rule to pass through intent {_describe(intent)}, but got: {_outcome(decision)}"
        raise AssertionError(msg)


def assert_gate_blocks(gate: Gate, intent: Intent) -> None:
    _expect("gate", intent, gate.evaluate(intent), DecisionType.BLOCK)


def assert_gate_allows(gate: Gate, intent: Intent) -> None:
    _expect("gate", intent, gate.evaluate(intent), DecisionType.ALLOW)


def assert_gate_requires_approval(gate: Gate, intent: Intent) -> None:
    _expect("gate", intent, gate.evaluate(intent), DecisionType.REQUIRE_APPROVAL)


def assert_decision(decision: Decision, expected: DecisionType | str) -> None:
    expected_type = DecisionType(expected)
    actual = decision_type(decision)
    if actual is not expected_type:
        msg = f'Expected decision type "{expected_type.value}", but got "{actual.value}"'
        raise AssertionError(msg)
