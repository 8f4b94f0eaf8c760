"""The three possible verdicts of the gate.

``Decision`` is a closed union discriminated on ``type``.  Consumers should
classify decisions through :func:`decision_type` (or the predicates built on
it) so that adding a variant fails loudly everywhere it is not handled.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field


class DecisionType(str, Enum):
    """Tag of a :data:`Decision` variant."""

    ALLOW = "allow"
    BLOCK = "block"
    REQUIRE_APPROVAL = "require-approval"


class Allow(BaseModel):
    """The action may proceed."""

    model_config = ConfigDict(frozen=True)

    type: Literal["allow"] = "allow"


class Block(BaseModel):
    """The action must not proceed."""

    model_config = ConfigDict(frozen=True)

    type: Literal["block"] = "block"
    reason: str = Field(..., description="Human-readable reason for blocking.")


class RequireApproval(BaseModel):
    """A human must approve the action before it proceeds."""

    model_config = ConfigDict(frozen=True)

    type: Literal["require-approval"] = "require-approval"
    reason: str | None = Field(default=None, description="Why approval is needed.")


Decision = Annotated[Allow | Block | RequireApproval, Field(discriminator="type")]


def allow() -> Allow:
    return Allow()


def block(reason: str) -> Block:
    return Block(reason=reason)


def require_approval(reason: str | None = None) -> RequireApproval:
    return RequireApproval(reason=reason)


def decision_type(decision: Decision) -> DecisionType:
    """Return the tag of *decision*; unknown objects raise ``AssertionError``."""
    if isinstance(decision, Allow):
        return DecisionType.ALLOW
    if isinstance(decision, Block):
        return DecisionType.BLOCK
    if isinstance(decision, RequireApproval):
        return DecisionType.REQUIRE_APPROVAL
    assert_never(decision)


def is_allowed(decision: Decision) -> bool:
    return decision_type(decision) is DecisionType.ALLOW


def is_blocked(decision: Decision) -> bool:
    return decision_type(decision) is DecisionType.BLOCK


def requires_approval(decision: Decision) -> bool:
    return decision_type(decision) is DecisionType.REQUIRE_APPROVAL
