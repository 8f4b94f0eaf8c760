"""Pydantic models for the policy YAML schema consumed by ``intentgate check``."""

from __future__ import annotations

import re
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from intentgate.audit.file import DEFAULT_MAX_SIZE_BYTES


class BlockExecSpec(BaseModel):
    type: Literal["block_exec"]


class BlockSensitivePathsSpec(BaseModel):
    type: Literal["block_sensitive_paths"]
    patterns: list[str] = Field(..., min_length=1, description="Regexes matched against write targets.")

    @field_validator("patterns")
    @classmethod
    def _compile_patterns(cls, patterns: list[str]) -> list[str]:
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as exc:
                msg = f"invalid regex {pattern!r}: {exc}"
                raise ValueError(msg) from exc
        return patterns


class ExternalHttpSpec(BaseModel):
    type: Literal["require_approval_for_external_http"]
    allowed_domains: list[str] = []


class ExternalBrowserSpec(BaseModel):
    type: Literal["require_approval_for_external_browser"]
    allowed_domains: list[str] = []


class AllowOnlyAgentsSpec(BaseModel):
    type: Literal["allow_only_agents"]
    agent_ids: list[str]


class BlockAgentsSpec(BaseModel):
    type: Literal["block_agents"]
    agent_ids: list[str]


class RateLimitSpec(BaseModel):
    type: Literal["rate_limit"]
    max_calls: int = Field(..., gt=0)
    window_ms: float = Field(..., gt=0)
    per_agent: bool = False
    max_keys: int | None = Field(default=10_000, gt=0)


class AllowAllSpec(BaseModel):
    type: Literal["allow_all"]


RuleSpec = Annotated[
    BlockExecSpec
    | BlockSensitivePathsSpec
    | ExternalHttpSpec
    | ExternalBrowserSpec
    | AllowOnlyAgentsSpec
    | BlockAgentsSpec
    | RateLimitSpec
    | AllowAllSpec,
    Field(discriminator="type"),
]


class AuditSettings(BaseModel):
    """Where gate decisions are persisted."""

    backend: Literal["memory", "file", "sqlite"] = "memory"
    path: str | None = None
    max_entries: int = Field(default=10_000, gt=0)
    max_size_bytes: int = Field(default=DEFAULT_MAX_SIZE_BYTES, gt=0)
    max_files: int = Field(default=5, gt=0)

    @model_validator(mode="after")
    def _require_path(self) -> AuditSettings:
        if self.backend != "memory" and not self.path:
            msg = f"audit backend '{self.backend}' requires 'path'"
            raise ValueError(msg)
        return self


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None


class PolicySpec(BaseModel):
    """Top-level policy specification parsed from YAML."""

    version: str = "1"
    name: str = ""
    rules: list[RuleSpec] = []
    default_decision: Literal["allow", "block", "require-approval"] = "require-approval"
    default_reason: str | None = None
    dry_run: bool = False
    audit: AuditSettings | None = None
    telemetry: TelemetrySettings | None = None
