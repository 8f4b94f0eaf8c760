"""``intentgate audit`` — query a persisted audit log."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from intentgate.cli_commands._output import console, print_entries_table
from intentgate.core.decision import DecisionType
from intentgate.core.intent import ToolType

_SQLITE_SUFFIXES = {".db", ".sqlite", ".sqlite3"}


@click.command()
@click.argument("log", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--backend",
    type=click.Choice(["file", "sqlite"]),
    default=None,
    help="Storage format; inferred from the file suffix when omitted.",
)
@click.option("--agent", default=None, help="Only entries for this agent id.")
@click.option("--tool", type=click.Choice([t.value for t in ToolType]), default=None)
@click.option("--decision", type=click.Choice([d.value for d in DecisionType]), default=None)
@click.option("--from", "from_", type=int, default=None, help="Earliest timestamp (Unix ms).")
@click.option("--to", type=int, default=None, help="Latest timestamp (Unix ms).")
@click.option("--limit", type=click.IntRange(min=0), default=100, show_default=True)
@click.option("--offset", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--count", "count_only", is_flag=True, help="Print the number of matches only.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def audit(
    log: str,
    backend: str | None,
    agent: str | None,
    tool: str | None,
    decision: str | None,
    from_: int | None,
    to: int | None,
    limit: int,
    offset: int,
    count_only: bool,
    as_json: bool,
) -> None:
    """Query the audit LOG written by a file or SQLite backend."""
    from intentgate.audit.file import FileAdapter
    from intentgate.audit.models import AuditFilter
    from intentgate.audit.sqlite import SQLiteAdapter

    path = Path(log)
    if backend is None:
        backend = "sqlite" if path.suffix in _SQLITE_SUFFIXES else "file"

    criteria = AuditFilter(
        agent_id=agent,
        tool=tool,
        decision_type=decision,
        from_=from_,
        to=to,
        limit=limit,
        offset=offset,
    )

    adapter: FileAdapter | SQLiteAdapter | None = None
    try:
        adapter = SQLiteAdapter(path) if backend == "sqlite" else FileAdapter(path)
        if count_only:
            total = asyncio.run(adapter.count(criteria))
        else:
            entries = asyncio.run(adapter.query(criteria))
    except Exception as exc:
        console.print(f"[red]Error reading audit log:[/red] {exc}")
        sys.exit(1)
    finally:
        if isinstance(adapter, SQLiteAdapter):
            adapter.close()

    if count_only:
        if as_json:
            console.print_json(json.dumps({"count": total}))
        else:
            console.print(total)
        return

    if as_json:
        console.print_json(json.dumps([e.model_dump(mode="json") for e in entries]))
    elif not entries:
        console.print("[dim]No matching entries.[/dim]")
    else:
        print_entries_table(entries)
