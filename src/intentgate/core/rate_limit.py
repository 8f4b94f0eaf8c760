"""Sliding-window rate limiting as a gate rule.

:class:`RateLimiter` counts calls per key (the agent id, or one global key)
within a moving window.  It blocks once the window is full and otherwise
passes through, so later rules or the gate default still decide.

State lives on the instance and for the life of the process.  Keys are kept
in least-recently-used order and capped at ``max_keys``; :meth:`sweep`
drops keys whose window has fully expired.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict, deque
from typing import TYPE_CHECKING

from intentgate.core.decision import block
from intentgate.errors import RuleConfigError

if TYPE_CHECKING:
    from collections.abc import Callable

    from intentgate.core.decision import Decision
    from intentgate.core.intent import Intent

logger = logging.getLogger(__name__)

GLOBAL_KEY = "__global__"


def _wall_clock_ms() -> float:
    return time.time() * 1000


class RateLimiter:
    """Block when more than *max_calls* happen within *window_ms*.

    Satisfies the :class:`~intentgate.core.rules.Rule` protocol.

    The check-and-append for a key runs under a lock, so one limiter can be
    shared by gates evaluated on different threads.
    """

    name = "rate_limit"

    def __init__(
        self,
        max_calls: int,
        window_ms: float,
        *,
        per_agent: bool = False,
        max_keys: int | None = 10_000,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if max_calls <= 0:
            raise RuleConfigError(self.name, f"max_calls must be positive, got {max_calls}")
        if window_ms <= 0:
            raise RuleConfigError(self.name, f"window_ms must be positive, got {window_ms}")
        if max_keys is not None and max_keys <= 0:
            raise RuleConfigError(self.name, f"max_keys must be positive, got {max_keys}")

        self.max_calls = max_calls
        self.window_ms = window_ms
        self.per_agent = per_agent
        self.max_keys = max_keys
        self._clock = clock or _wall_clock_ms
        self._windows: OrderedDict[str, deque[float]] = OrderedDict()
        self._lock = threading.Lock()

    def key_for(self, intent: Intent) -> str:
        return intent.agent_id if self.per_agent else GLOBAL_KEY

    def evaluate(self, intent: Intent) -> Decision | None:
        key = self.key_for(intent)
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None:
                window = deque()
                self._windows[key] = window
            else:
                self._windows.move_to_end(key)
            self._prune(window, now)

            if len(window) >= self.max_calls:
                retry_after = math.ceil((self.window_ms - (now - window[0])) / 1000)
                logger.debug("Rate limit hit for key %s, retry after %ss", key, retry_after)
                return block(
                    f"Rate limit exceeded: {self.max_calls} calls per "
                    f"{self.window_ms / 1000:g}s. Retry after {retry_after}s"
                )

            window.append(now)
            self._evict_overflow()
        return None

    def usage(self, key: str = GLOBAL_KEY) -> int:
        """Number of calls counted for *key* in the current window."""
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                return 0
            self._prune(window, self._clock())
            return len(window)

    def sweep(self) -> int:
        """Drop every key whose window has fully expired; return how many."""
        with self._lock:
            now = self._clock()
            expired = []
            for key, window in self._windows.items():
                self._prune(window, now)
                if not window:
                    expired.append(key)
            for key in expired:
                del self._windows[key]
        return len(expired)

    def reset(self, key: str | None = None) -> None:
        """Forget one key, or all state when *key* is ``None``."""
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    @property
    def keys(self) -> list[str]:
        with self._lock:
            return list(self._windows)

    def _prune(self, window: deque[float], now: float) -> None:
        while window and now - window[0] >= self.window_ms:
            window.popleft()

    def _evict_overflow(self) -> None:
        if self.max_keys is None:
            return
        while len(self._windows) > self.max_keys:
            evicted, _ = self._windows.popitem(last=False)
            logger.debug("Rate limiter evicted least recently used key %s", evicted)


def rate_limit(max_calls: int, window_ms: float, per_agent: bool = False) -> RateLimiter:
    """Shorthand for :class:`RateLimiter` with default key cap and clock."""
    return RateLimiter(max_calls, window_ms, per_agent=per_agent)
