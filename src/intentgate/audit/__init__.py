"""Persistent storage for gate decisions."""

from intentgate.audit.adapter import AuditAdapter, apply_filter, paginate
from intentgate.audit.file import FileAdapter
from intentgate.audit.logger import AuditLogger, create_audit_logger
from intentgate.audit.memory import InMemoryAdapter
from intentgate.audit.models import AuditFilter, StoredLogEntry
from intentgate.audit.sqlite import SQLiteAdapter

__all__ = [
    "AuditAdapter",
    "AuditFilter",
    "AuditLogger",
    "FileAdapter",
    "InMemoryAdapter",
    "SQLiteAdapter",
    "StoredLogEntry",
    "apply_filter",
    "create_audit_logger",
    "paginate",
]
