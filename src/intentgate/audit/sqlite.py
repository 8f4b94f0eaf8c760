"""SQLite audit adapter.

Stores entries in an ``audit_log`` table with indexed columns for the
filter fields.  Queries return newest entries first.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from intentgate.audit.models import AuditFilter, StoredLogEntry
from intentgate.core.decision import Decision, decision_type

_DECISION_ADAPTER: TypeAdapter[Decision] = TypeAdapter(Decision)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS audit_log (
    id            TEXT PRIMARY KEY,
    timestamp     INTEGER NOT NULL,
    level         TEXT    NOT NULL,
    agent_id      TEXT    NOT NULL,
    tool          TEXT    NOT NULL,
    target        TEXT    NOT NULL,
    decision_type TEXT    NOT NULL,
    decision      TEXT    NOT NULL,
    duration_ms   REAL    NOT NULL,
    dry_run       INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log (timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_agent_id ON audit_log (agent_id);
CREATE INDEX IF NOT EXISTS idx_audit_level ON audit_log (level);
CREATE INDEX IF NOT EXISTS idx_audit_tool ON audit_log (tool);
CREATE INDEX IF NOT EXISTS idx_audit_decision_type ON audit_log (decision_type);
"""


class SQLiteAdapter:
    """SQLite-backed :class:`~intentgate.audit.adapter.AuditAdapter`.

    Uses one connection guarded by a lock; writes are committed before
    :meth:`write` returns.  Pass ``":memory:"`` for a throwaway database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        with self._lock:
            self._conn.executescript(_SCHEMA)
            self._conn.commit()

    async def write(self, entry: StoredLogEntry) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT OR IGNORE INTO audit_log
                    (id, timestamp, level, agent_id, tool, target,
                     decision_type, decision, duration_ms, dry_run)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                _entry_to_row(entry),
            )
            self._conn.commit()

    async def query(self, filter: AuditFilter | None = None) -> list[StoredLogEntry]:
        criteria = filter or AuditFilter()
        where, params = _where_clause(criteria)
        sql = f"SELECT * FROM audit_log {where} ORDER BY timestamp DESC, rowid DESC LIMIT ? OFFSET ?"
        with self._lock:
            rows = self._conn.execute(sql, [*params, criteria.limit, criteria.offset]).fetchall()
        return [_row_to_entry(row) for row in rows]

    async def count(self, filter: AuditFilter | None = None) -> int:
        where, params = _where_clause(filter or AuditFilter())
        with self._lock:
            row = self._conn.execute(f"SELECT COUNT(*) AS total FROM audit_log {where}", params).fetchone()
        return int(row["total"])

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def _entry_to_row(entry: StoredLogEntry) -> tuple[Any, ...]:
    return (
        entry.id,
        entry.timestamp,
        entry.level.value,
        entry.agent_id,
        entry.tool.value,
        entry.target,
        decision_type(entry.decision).value,
        entry.decision.model_dump_json(),
        entry.duration_ms,
        1 if entry.dry_run else 0,
    )


def _row_to_entry(row: sqlite3.Row) -> StoredLogEntry:
    return StoredLogEntry(
        id=row["id"],
        timestamp=row["timestamp"],
        level=row["level"],
        agent_id=row["agent_id"],
        tool=row["tool"],
        target=row["target"],
        decision=_DECISION_ADAPTER.validate_json(row["decision"]),
        duration_ms=row["duration_ms"],
        dry_run=bool(row["dry_run"]),
    )


def _where_clause(criteria: AuditFilter) -> tuple[str, list[Any]]:
    conditions: list[str] = []
    params: list[Any] = []

    if criteria.agent_id is not None:
        conditions.append("agent_id = ?")
        params.append(criteria.agent_id)
    if criteria.tool is not None:
        conditions.append("tool = ?")
        params.append(criteria.tool.value)
    if criteria.decision_type is not None:
        conditions.append("decision_type = ?")
        params.append(criteria.decision_type.value)
    if criteria.from_ is not None:
        conditions.append("timestamp >= ?")
        params.append(criteria.from_)
    if criteria.to is not None:
        conditions.append("timestamp <= ?")
        params.append(criteria.to)

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, params
