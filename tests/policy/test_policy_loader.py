"""Tests for policy loading and gate wiring."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from intentgate.audit.file import FileAdapter
from intentgate.audit.memory import InMemoryAdapter
from intentgate.audit.sqlite import SQLiteAdapter
from intentgate.core.decision import allow, block, require_approval
from intentgate.core.intent import create_intent
from intentgate.core.rate_limit import RateLimiter
from intentgate.core.rules import BlockExec, BlockSensitivePaths, RequireApprovalForExternalHttp
from intentgate.errors import PolicyValidationError
from intentgate.policy.loader import (
    PolicyLoader,
    build_audit_logger,
    build_gate,
    build_rule,
    load_gate,
    parse_policy,
)
from intentgate.policy.models import AuditSettings, PolicySpec, RateLimitSpec

_POLICY = """\
name: production
default_decision: require-approval
rules:
  - type: block_exec
  - type: block_sensitive_paths
    patterns: ['\\.env$']
  - type: rate_limit
    max_calls: 2
    window_ms: 60000
    per_agent: true
  - type: require_approval_for_external_http
    allowed_domains: [api.openai.com]
  - type: allow_all
"""


class TestPolicyLoader:
    def test_load_valid(self, tmp_path: Path) -> None:
        f = tmp_path / "policy.yaml"
        f.write_text(_POLICY)
        spec = PolicyLoader(f).load()
        assert spec.name == "production"
        assert [r.type for r in spec.rules] == [
            "block_exec",
            "block_sensitive_paths",
            "rate_limit",
            "require_approval_for_external_http",
            "allow_all",
        ]

    def test_env_var_interpolation(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUDIT_DIR", str(tmp_path))
        f = tmp_path / "policy.yaml"
        f.write_text("audit:\n  backend: file\n  path: ${AUDIT_DIR}/audit.jsonl\n")
        spec = PolicyLoader(f).load()
        assert spec.audit is not None
        assert spec.audit.path == f"{tmp_path}/audit.jsonl"

    def test_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(PolicyValidationError, match="Cannot read"):
            PolicyLoader(tmp_path / "missing.yaml").load()

    def test_invalid_yaml(self) -> None:
        with pytest.raises(PolicyValidationError, match="YAML parse error"):
            parse_policy("{{{{invalid")

    def test_not_mapping(self) -> None:
        with pytest.raises(PolicyValidationError, match="must be a mapping"):
            parse_policy("- a\n- b\n")

    def test_empty_document_uses_defaults(self) -> None:
        spec = parse_policy("")
        assert spec.rules == []
        assert spec.default_decision == "require-approval"

    def test_unknown_rule_type(self) -> None:
        with pytest.raises(PolicyValidationError):
            parse_policy("rules:\n  - type: teleport\n")

    def test_invalid_rate_limit(self) -> None:
        with pytest.raises(PolicyValidationError):
            parse_policy("rules:\n  - type: rate_limit\n    max_calls: 0\n    window_ms: 1000\n")

    def test_file_audit_requires_path(self) -> None:
        with pytest.raises(PolicyValidationError, match="requires 'path'"):
            parse_policy("audit:\n  backend: sqlite\n")

    def test_invalid_sensitive_path_regex(self) -> None:
        with pytest.raises(PolicyValidationError, match="invalid regex"):
            parse_policy("rules:\n  - type: block_sensitive_paths\n    patterns: ['[unclosed']\n")


class TestBuildGate:
    def test_rules_built_in_order(self) -> None:
        gate = build_gate(parse_policy(_POLICY))
        kinds = [type(r) for r in gate.rules[:4]]
        assert kinds == [BlockExec, BlockSensitivePaths, RateLimiter, RequireApprovalForExternalHttp]

    def test_gate_behaviour(self) -> None:
        gate = build_gate(parse_policy(_POLICY))
        assert gate.evaluate(create_intent("a", "exec", "ls")) == block("Shell execution blocked by default")
        assert gate.evaluate(create_intent("a", "write", "/app/.env")).type == "block"
        assert gate.evaluate(create_intent("a", "http", "https://evil.example")).type == "require-approval"
        assert gate.evaluate(create_intent("b", "http", "https://api.openai.com/v1")) == allow()

    def test_rate_limit_settings(self) -> None:
        rule = build_rule(RateLimitSpec(type="rate_limit", max_calls=3, window_ms=500, per_agent=True))
        assert isinstance(rule, RateLimiter)
        assert (rule.max_calls, rule.window_ms, rule.per_agent) == (3, 500, True)

    @pytest.mark.parametrize(
        ("yaml_text", "expected"),
        [
            ("default_decision: allow\n", allow()),
            ("default_decision: block\n", block("Blocked by default policy")),
            ("default_decision: block\ndefault_reason: closed\n", block("closed")),
            ("{}\n", require_approval("No rules matched")),
        ],
    )
    def test_default_decision(self, yaml_text: str, expected: object) -> None:
        gate = build_gate(parse_policy(yaml_text))
        assert gate.evaluate(create_intent("a", "exec", "ls")) == expected

    def test_dry_run(self) -> None:
        gate = build_gate(parse_policy("dry_run: true\nrules:\n  - type: block_exec\n"))
        assert gate.dry_run is True
        assert gate.evaluate(create_intent("a", "exec", "ls")) == allow()

    def test_telemetry_configured_when_enabled(self) -> None:
        spec = parse_policy("telemetry:\n  enabled: true\n  otlp_endpoint: http://localhost:4317\n")
        with patch("intentgate.policy.loader.configure_telemetry") as configure:
            build_gate(spec)
        configure.assert_called_once_with(export_to_console=False, otlp_endpoint="http://localhost:4317")

    def test_telemetry_skipped_when_disabled(self) -> None:
        with patch("intentgate.policy.loader.configure_telemetry") as configure:
            build_gate(PolicySpec())
        configure.assert_not_called()


class TestAuditWiring:
    def test_memory_backend(self) -> None:
        audit = build_audit_logger(AuditSettings(backend="memory", max_entries=5))
        assert isinstance(audit.adapter, InMemoryAdapter)
        assert audit.adapter.max_entries == 5

    def test_file_backend(self, tmp_path: Path) -> None:
        audit = build_audit_logger(
            AuditSettings(backend="file", path=str(tmp_path / "a.jsonl"), max_size_bytes=10, max_files=2)
        )
        assert isinstance(audit.adapter, FileAdapter)
        assert audit.adapter.max_size_bytes == 10
        assert audit.adapter.max_files == 2

    def test_sqlite_backend(self, tmp_path: Path) -> None:
        audit = build_audit_logger(AuditSettings(backend="sqlite", path=str(tmp_path / "a.db")))
        assert isinstance(audit.adapter, SQLiteAdapter)
        audit.adapter.close()

    def test_path_backend_without_path_rejected(self) -> None:
        settings = AuditSettings.model_construct(backend="file", path=None)
        with pytest.raises(PolicyValidationError, match="requires 'path'"):
            build_audit_logger(settings)

    async def test_load_gate_logs_decisions(self, tmp_path: Path) -> None:
        f = tmp_path / "policy.yaml"
        f.write_text(_POLICY + f"audit:\n  backend: file\n  path: {tmp_path / 'audit.jsonl'}\n")

        gate, audit = load_gate(f)
        assert audit is not None
        gate.evaluate(create_intent("a", "exec", "ls"))
        gate.evaluate(create_intent("a", "http", "https://api.openai.com"))

        assert await audit.count() == 2
        assert await audit.count(decision_type="block") == 1

    def test_load_gate_without_audit(self, tmp_path: Path) -> None:
        f = tmp_path / "policy.yaml"
        f.write_text("rules:\n  - type: allow_all\n")
        gate, audit = load_gate(f)
        assert audit is None
        assert gate.evaluate(create_intent("a", "exec", "ls")) == allow()
