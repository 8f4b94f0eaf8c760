"""Shared CLI output formatters."""

from __future__ import annotations

from datetime import UTC, datetime

from rich.console import Console
from rich.table import Table

from intentgate.audit.models import StoredLogEntry  # noqa: TC001
from intentgate.core.decision import Decision, DecisionType, decision_type

console = Console()

_STYLES = {
    DecisionType.ALLOW: "green",
    DecisionType.REQUIRE_APPROVAL: "yellow",
    DecisionType.BLOCK: "red",
}


def print_decision(decision: Decision, *, as_json: bool = False) -> None:
    """Print a single decision."""
    if as_json:
        console.print_json(decision.model_dump_json())
        return

    kind = decision_type(decision)
    style = _STYLES[kind]
    console.print(f"[bold {style}]{kind.value}[/bold {style}]")
    reason = getattr(decision, "reason", None)
    if reason:
        console.print(f"  Reason: {reason}")


def print_entries_table(entries: list[StoredLogEntry]) -> None:
    """Pretty-print stored audit entries as a table."""
    table = Table(title="Audit Log")
    table.add_column("Time")
    table.add_column("Agent", style="cyan", no_wrap=True)
    table.add_column("Tool", no_wrap=True)
    table.add_column("Target")
    table.add_column("Decision")
    table.add_column("Reason")

    for entry in entries:
        kind = decision_type(entry.decision)
        style = _STYLES[kind]
        table.add_row(
            format_timestamp(entry.timestamp),
            entry.agent_id,
            entry.tool.value,
            _truncate(entry.target, 50),
            f"[{style}]{kind.value}[/{style}]" + (" (dry-run)" if entry.dry_run else ""),
            _truncate(getattr(entry.decision, "reason", None) or "-", 60),
        )

    console.print(table)


def format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=UTC).strftime("%Y-%m-%d %H:%M:%S")


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
