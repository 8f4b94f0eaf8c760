"""Policy loading and wiring.

A policy file declares an ordered rule list, the default decision, dry-run
mode and optionally where decisions are audited::

    name: production
    default_decision: require-approval
    rules:
      - type: block_exec
      - type: rate_limit
        max_calls: 30
        window_ms: 60000
        per_agent: true
      - type: require_approval_for_external_http
        allowed_domains: [api.openai.com]
    audit:
      backend: file
      path: ${HOME}/.intentgate/audit.jsonl
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, assert_never

import yaml
from pydantic import ValidationError

from intentgate.audit.file import FileAdapter
from intentgate.audit.logger import AuditLogger
from intentgate.audit.memory import InMemoryAdapter
from intentgate.audit.sqlite import SQLiteAdapter
from intentgate.core.decision import allow, block, require_approval
from intentgate.core.gate import DEFAULT_REASON, Gate
from intentgate.core.rate_limit import RateLimiter
from intentgate.core.rules import (
    AllowAll,
    AllowOnlyAgents,
    BlockAgents,
    BlockExec,
    BlockSensitivePaths,
    RequireApprovalForExternalBrowser,
    RequireApprovalForExternalHttp,
)
from intentgate.errors import PolicyValidationError
from intentgate.policy.models import (
    AllowAllSpec,
    AllowOnlyAgentsSpec,
    BlockAgentsSpec,
    BlockExecSpec,
    BlockSensitivePathsSpec,
    ExternalBrowserSpec,
    ExternalHttpSpec,
    PolicySpec,
    RateLimitSpec,
)
from intentgate.utils.telemetry import configure_telemetry

if TYPE_CHECKING:
    from intentgate.core.decision import Decision
    from intentgate.core.gate import LogSink
    from intentgate.core.rules import Rule
    from intentgate.policy.models import AuditSettings, RuleSpec


class PolicyLoader:
    """Load and validate a policy YAML file into a :class:`PolicySpec`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> PolicySpec:
        """Read YAML, interpolate env vars, and validate.

        Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
        using :func:`os.path.expandvars` before YAML parsing.

        Raises:
            PolicyValidationError: On read errors, YAML parse errors or schema
                validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PolicyValidationError(f"Cannot read {self._path}: {exc}") from exc

        return parse_policy(raw)


def parse_policy(raw: str) -> PolicySpec:
    """Parse and validate a policy document from a YAML string."""
    expanded = os.path.expandvars(raw)

    try:
        data: Any = yaml.safe_load(expanded)
    except yaml.YAMLError as exc:
        raise PolicyValidationError(f"YAML parse error: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise PolicyValidationError("Policy YAML must be a mapping")

    try:
        return PolicySpec.model_validate(data)
    except ValidationError as exc:
        raise PolicyValidationError(str(exc)) from exc


def build_rule(spec: RuleSpec) -> Rule:
    """Instantiate the rule described by *spec*."""
    if isinstance(spec, BlockExecSpec):
        return BlockExec()
    if isinstance(spec, BlockSensitivePathsSpec):
        return BlockSensitivePaths(spec.patterns)
    if isinstance(spec, ExternalHttpSpec):
        return RequireApprovalForExternalHttp(spec.allowed_domains)
    if isinstance(spec, ExternalBrowserSpec):
        return RequireApprovalForExternalBrowser(spec.allowed_domains)
    if isinstance(spec, AllowOnlyAgentsSpec):
        return AllowOnlyAgents(spec.agent_ids)
    if isinstance(spec, BlockAgentsSpec):
        return BlockAgents(spec.agent_ids)
    if isinstance(spec, RateLimitSpec):
        return RateLimiter(
            spec.max_calls,
            spec.window_ms,
            per_agent=spec.per_agent,
            max_keys=spec.max_keys,
        )
    if isinstance(spec, AllowAllSpec):
        return AllowAll()
    assert_never(spec)


def build_default_decision(spec: PolicySpec) -> Decision:
    if spec.default_decision == "allow":
        return allow()
    if spec.default_decision == "block":
        return block(spec.default_reason or "Blocked by default policy")
    return require_approval(spec.default_reason or DEFAULT_REASON)


def build_gate(spec: PolicySpec, *, log_sink: LogSink | None = None) -> Gate:
    """Wire a :class:`Gate` from a validated policy.

    Configures telemetry when the policy enables it.
    """
    if spec.telemetry and spec.telemetry.enabled:
        configure_telemetry(
            export_to_console=spec.telemetry.otlp_endpoint is None,
            otlp_endpoint=spec.telemetry.otlp_endpoint,
        )

    return Gate(
        [build_rule(r) for r in spec.rules],
        default_decision=build_default_decision(spec),
        dry_run=spec.dry_run,
        log_sink=log_sink,
    )


def build_audit_logger(settings: AuditSettings) -> AuditLogger:
    """Create an :class:`AuditLogger` over the configured backend."""
    if settings.backend == "memory":
        return AuditLogger(InMemoryAdapter(max_entries=settings.max_entries))

    if not settings.path:
        raise PolicyValidationError(f"audit backend '{settings.backend}' requires 'path'")
    path = Path(settings.path).expanduser()
    if settings.backend == "file":
        adapter: FileAdapter | SQLiteAdapter = FileAdapter(
            path,
            max_size_bytes=settings.max_size_bytes,
            max_files=settings.max_files,
        )
    else:
        adapter = SQLiteAdapter(path)
    return AuditLogger(adapter)


def load_gate(path: str | Path) -> tuple[Gate, AuditLogger | None]:
    """Load a policy file and return its gate plus the audit logger, if any."""
    spec = PolicyLoader(Path(path)).load()
    audit = build_audit_logger(spec.audit) if spec.audit else None
    gate = build_gate(spec, log_sink=audit.log if audit else None)
    return gate, audit
