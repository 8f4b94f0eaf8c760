"""Append-only JSON Lines audit adapter.

One :class:`StoredLogEntry` per line.  Lines that fail to parse (for
example a partial write cut short by a crash) are skipped on read.

Once the file reaches ``max_size_bytes`` it is rotated before the next
write: ``audit.jsonl`` becomes ``audit.jsonl.1``, an existing ``.1``
becomes ``.2`` and so on up to ``max_files``; the oldest is discarded.
Queries read the live file only.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from intentgate.audit.adapter import apply_filter, paginate
from intentgate.audit.models import StoredLogEntry

if TYPE_CHECKING:
    from intentgate.audit.models import AuditFilter

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE_BYTES = 50 * 1024 * 1024


class FileAdapter:
    """JSONL file :class:`~intentgate.audit.adapter.AuditAdapter`.

    Writes are appended synchronously and serialised by a lock, so an entry
    is on disk once :meth:`write` returns.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        max_files: int = 5,
    ) -> None:
        self.path = Path(path)
        self.max_size_bytes = max_size_bytes
        self.max_files = max(1, max_files)
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def write(self, entry: StoredLogEntry) -> None:
        line = entry.model_dump_json() + "\n"
        with self._lock:
            self._rotate_if_needed()
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line)

    async def query(self, filter: AuditFilter | None = None) -> list[StoredLogEntry]:
        return paginate(apply_filter(self._read_all(), filter), filter)

    async def count(self, filter: AuditFilter | None = None) -> int:
        return len(apply_filter(self._read_all(), filter))

    def rotated_path(self, index: int) -> Path:
        return self.path.with_name(f"{self.path.name}.{index}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read_all(self) -> list[StoredLogEntry]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []

        # Decoded per line: a torn multi-byte character spoils only its own line.
        entries: list[StoredLogEntry] = []
        for lineno, line in enumerate(raw.split(b"\n"), start=1):
            stripped = line.strip()
            if not stripped:
                continue
            try:
                entries.append(StoredLogEntry.model_validate_json(stripped.decode("utf-8")))
            except (UnicodeDecodeError, ValidationError):
                logger.debug("Skipping malformed audit line %d in %s", lineno, self.path)
        return entries

    def _rotate_if_needed(self) -> None:
        try:
            size = self.path.stat().st_size
        except FileNotFoundError:
            return
        if size < self.max_size_bytes:
            return

        oldest = self.rotated_path(self.max_files)
        oldest.unlink(missing_ok=True)
        for index in range(self.max_files - 1, 0, -1):
            src = self.rotated_path(index)
            if src.exists():
                src.rename(self.rotated_path(index + 1))
        self.path.rename(self.rotated_path(1))
        logger.info("Rotated audit log %s at %d bytes", self.path, size)
