"""Audit storage protocol and shared filtering helpers.

:class:`AuditAdapter` defines the async storage protocol every backend
implements.  A write must be visible to any query or count issued after
the write coroutine completes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from intentgate.audit.models import AuditFilter

if TYPE_CHECKING:
    from collections.abc import Iterable

    from intentgate.audit.models import StoredLogEntry


@runtime_checkable
class AuditAdapter(Protocol):
    """Async persistence protocol for :class:`StoredLogEntry` records."""

    async def write(self, entry: StoredLogEntry) -> None:
        """Persist a single entry."""
        ...

    async def query(self, filter: AuditFilter | None = None) -> list[StoredLogEntry]:
        """Return entries matching *filter*, paginated by its limit/offset."""
        ...

    async def count(self, filter: AuditFilter | None = None) -> int:
        """Count entries matching *filter* (pagination ignored)."""
        ...


def apply_filter(
    entries: Iterable[StoredLogEntry], filter: AuditFilter | None
) -> list[StoredLogEntry]:
    """Keep entries matching every criterion of *filter*."""
    criteria = filter or AuditFilter()
    return [e for e in entries if criteria.matches(e)]


def paginate(entries: list[StoredLogEntry], filter: AuditFilter | None) -> list[StoredLogEntry]:
    """Slice *entries* by the filter's offset and limit (default 100)."""
    criteria = filter or AuditFilter()
    return entries[criteria.offset : criteria.offset + criteria.limit]
