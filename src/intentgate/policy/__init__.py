"""Declarative gate configuration in YAML policy files."""

from intentgate.policy.loader import (
    PolicyLoader,
    build_audit_logger,
    build_gate,
    build_rule,
    load_gate,
    parse_policy,
)
from intentgate.policy.models import AuditSettings, PolicySpec, RuleSpec, TelemetrySettings

__all__ = [
    "AuditSettings",
    "PolicyLoader",
    "PolicySpec",
    "RuleSpec",
    "TelemetrySettings",
    "build_audit_logger",
    "build_gate",
    "build_rule",
    "load_gate",
    "parse_policy",
]
