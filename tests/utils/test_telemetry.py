"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from opentelemetry import trace

from intentgate.core.gate import Gate
from intentgate.core.intent import create_intent
from intentgate.core.rules import BlockExec
from intentgate.utils.telemetry import (
    _INSTRUMENTATION_NAME,
    ATTR_AGENT_ID,
    ATTR_DECISION,
    ATTR_DRY_RUN,
    ATTR_TARGET,
    ATTR_TOOL,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        tracer = get_tracer("test.module")
        assert isinstance(tracer, trace.Tracer)

    def test_default_name(self) -> None:
        assert isinstance(get_tracer(), trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans should be no-ops."""
        with get_tracer("test.noop").start_as_current_span("test") as span:
            span.set_attribute("key", "value")


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry()

    def test_otlp_raises_without_exporter(self) -> None:
        try:
            import opentelemetry.sdk.trace  # noqa: F401
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ):
            with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                configure_telemetry(export_to_console=False, otlp_endpoint="http://localhost:4317")


class TestGateSpans:
    def test_evaluate_sets_span_attributes(self) -> None:
        span = MagicMock()
        tracer = MagicMock()
        tracer.start_as_current_span.return_value.__enter__.return_value = span

        with patch("intentgate.core.gate._tracer", tracer):
            Gate([BlockExec()]).evaluate(create_intent("agent-1", "exec", "ls"))

        tracer.start_as_current_span.assert_called_once_with("gate.evaluate")
        attributes = {c.args[0]: c.args[1] for c in span.set_attribute.call_args_list}
        assert attributes[ATTR_AGENT_ID] == "agent-1"
        assert attributes[ATTR_TOOL] == "exec"
        assert attributes[ATTR_TARGET] == "ls"
        assert attributes[ATTR_DECISION] == "block"
        assert attributes[ATTR_DRY_RUN] is False


class TestAttributeConstants:
    def test_constants_are_namespaced(self) -> None:
        for key in (ATTR_AGENT_ID, ATTR_TOOL, ATTR_TARGET, ATTR_DECISION, ATTR_DRY_RUN):
            assert key.startswith("intentgate.")
        assert _INSTRUMENTATION_NAME == "intentgate"
