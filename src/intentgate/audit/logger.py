"""Persist gate log entries through a pluggable adapter.

:meth:`AuditLogger.log` is a drop-in ``log_sink`` for
:class:`~intentgate.core.gate.Gate`::

    audit = create_audit_logger(FileAdapter("./audit.jsonl"))
    gate = create_gate(rules, log_sink=audit.log)

    blocked = await audit.query(decision_type="block", limit=10)

Storage and tee failures never reach the gate.  Storage errors go to the
``on_error`` callback; tee errors are discarded.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from intentgate.audit.models import AuditFilter, StoredLogEntry
from intentgate.core.boundary import report_errors, report_errors_async, route_error

if TYPE_CHECKING:
    from collections.abc import Callable

    from intentgate.audit.adapter import AuditAdapter
    from intentgate.core.gate import LogEntry

logger = logging.getLogger(__name__)


class AuditLogger:
    """Assign ids to log entries, tee them, and write them to an adapter.

    When :meth:`log` is called while an event loop is running, the adapter
    write is scheduled as a task on that loop; otherwise it runs to
    completion before :meth:`log` returns.  :meth:`query` and :meth:`count`
    wait for scheduled writes first, so reads always see earlier logs.
    """

    def __init__(
        self,
        adapter: AuditAdapter,
        *,
        tee: Callable[[LogEntry], Any] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._adapter = adapter
        self._tee = tee
        self._on_error = on_error
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def adapter(self) -> AuditAdapter:
        return self._adapter

    @property
    def pending(self) -> int:
        """Number of scheduled writes that have not finished yet."""
        return len(self._pending)

    def log(self, entry: LogEntry) -> None:
        """Persist *entry*; never raises."""
        stored = self._prepare(entry)
        report_errors(partial(self._dispatch, stored), self._on_error, what="audit write")

    async def write(self, entry: LogEntry) -> StoredLogEntry:
        """Persist *entry* and wait for the adapter; never raises."""
        stored = self._prepare(entry)
        await report_errors_async(
            partial(self._adapter.write, stored), self._on_error, what="audit write"
        )
        return stored

    async def flush(self) -> None:
        """Wait for every write scheduled by :meth:`log`."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def query(self, filter: AuditFilter | None = None, **criteria: Any) -> list[StoredLogEntry]:
        """Return stored entries matching *filter* or keyword criteria."""
        await self.flush()
        return await self._adapter.query(_coerce_filter(filter, criteria))

    async def count(self, filter: AuditFilter | None = None, **criteria: Any) -> int:
        """Count stored entries matching *filter* or keyword criteria."""
        await self.flush()
        return await self._adapter.count(_coerce_filter(filter, criteria))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _prepare(self, entry: LogEntry) -> StoredLogEntry:
        if self._tee is not None:
            report_errors(partial(self._tee, entry), what="audit tee")
        return StoredLogEntry(id=uuid4().hex, **entry.model_dump())

    def _dispatch(self, stored: StoredLogEntry) -> None:
        write = self._adapter.write(stored)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(write)
            return
        task = loop.create_task(write)
        self._pending.add(task)
        task.add_done_callback(self._write_done)

    def _write_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.debug("Audit write cancelled")
            return
        exc = task.exception()
        if isinstance(exc, Exception):
            route_error(exc, self._on_error, what="audit write")


def create_audit_logger(
    adapter: AuditAdapter,
    *,
    tee: Callable[[LogEntry], Any] | None = None,
    on_error: Callable[[Exception], None] | None = None,
) -> AuditLogger:
    """Factory for :class:`AuditLogger`."""
    return AuditLogger(adapter, tee=tee, on_error=on_error)


def _coerce_filter(filter: AuditFilter | None, criteria: dict[str, Any]) -> AuditFilter | None:
    if not criteria:
        return filter
    if "from" in criteria:
        criteria["from_"] = criteria.pop("from")
    base = filter.model_dump(exclude_unset=True) if filter is not None else {}
    return AuditFilter.model_validate({**base, **criteria})
