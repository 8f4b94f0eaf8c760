"""Tests for decision factories and predicates."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

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


class TestFactories:
    def test_allow(self) -> None:
        decision = allow()
        assert isinstance(decision, Allow)
        assert decision.type == "allow"

    def test_block(self) -> None:
        decision = block("nope")
        assert isinstance(decision, Block)
        assert decision.reason == "nope"

    def test_require_approval_with_reason(self) -> None:
        decision = require_approval("check this")
        assert isinstance(decision, RequireApproval)
        assert decision.reason == "check this"

    def test_require_approval_without_reason(self) -> None:
        assert require_approval().reason is None

    def test_block_requires_reason(self) -> None:
        with pytest.raises(ValidationError):
            Block()  # type: ignore[call-arg]

    def test_decisions_are_frozen(self) -> None:
        decision = block("x")
        with pytest.raises(ValidationError):
            decision.reason = "y"  # type: ignore[misc]

    def test_value_equality(self) -> None:
        assert block("x") == block("x")
        assert allow() == allow()
        assert block("x") != block("y")


class TestPredicates:
    def test_exactly_one_predicate_holds(self) -> None:
        for decision in (allow(), block("b"), require_approval("r"), require_approval()):
            flags = [is_allowed(decision), is_blocked(decision), requires_approval(decision)]
            assert flags.count(True) == 1

    def test_decision_type(self) -> None:
        assert decision_type(allow()) is DecisionType.ALLOW
        assert decision_type(block("b")) is DecisionType.BLOCK
        assert decision_type(require_approval()) is DecisionType.REQUIRE_APPROVAL

    def test_decision_type_rejects_foreign_object(self) -> None:
        with pytest.raises(AssertionError):
            decision_type("allow")  # type: ignore[arg-type]


class TestSerialization:
    def test_discriminated_union_parses(self) -> None:
        adapter: TypeAdapter[Decision] = TypeAdapter(Decision)
        parsed = adapter.validate_python({"type": "block", "reason": "bad"})
        assert parsed == block("bad")

    def test_require_approval_tag(self) -> None:
        adapter: TypeAdapter[Decision] = TypeAdapter(Decision)
        parsed = adapter.validate_json('{"type": "require-approval"}')
        assert isinstance(parsed, RequireApproval)

    def test_unknown_tag_rejected(self) -> None:
        adapter: TypeAdapter[Decision] = TypeAdapter(Decision)
        with pytest.raises(ValidationError):
            adapter.validate_python({"type": "maybe"})
