"""In-memory audit adapter.

Suitable for tests, dry-run rollouts and short-lived processes that only
need recent history.  Entries are lost on process exit.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import TYPE_CHECKING

from intentgate.audit.adapter import apply_filter, paginate
from intentgate.errors import ConfigurationError

if TYPE_CHECKING:
    from intentgate.audit.models import AuditFilter, StoredLogEntry


class InMemoryAdapter:
    """Deque-backed :class:`~intentgate.audit.adapter.AuditAdapter`.

    Keeps at most *max_entries*; the oldest entries are evicted first.
    Writes are serialised by a lock.
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        if max_entries <= 0:
            msg = f"max_entries must be positive, got {max_entries}"
            raise ConfigurationError(msg)
        self.max_entries = max_entries
        self._entries: deque[StoredLogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    async def write(self, entry: StoredLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    async def query(self, filter: AuditFilter | None = None) -> list[StoredLogEntry]:
        return paginate(apply_filter(self.all(), filter), filter)

    async def count(self, filter: AuditFilter | None = None) -> int:
        return len(apply_filter(self.all(), filter))

    def all(self) -> list[StoredLogEntry]:
        """Every stored entry, oldest first, without filtering or pagination."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
