"""Failure boundaries for rule calls and side effects.

* :func:`fail_closed` / :func:`fail_closed_async` wrap a rule invocation.
  Any exception becomes a :class:`~intentgate.core.decision.Block` that
  carries the original error text.
* :func:`report_errors` wraps a side effect (log sink, tee, storage
  write).  Any exception is logged and handed to an optional callback.

Only ``Exception`` is caught; ``KeyboardInterrupt``, ``SystemExit`` and
task cancellation still propagate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from intentgate.core.decision import Block, block

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from intentgate.core.decision import Decision

logger = logging.getLogger(__name__)


def failure_reason(name: str, exc: BaseException) -> str:
    """Reason text for a rule that raised *exc*."""
    return f"Rule '{name}' failed: {exc}"


def fail_closed(name: str, call: Callable[[], Decision | None]) -> Decision | None:
    """Run a synchronous rule call; convert any exception into a block."""
    try:
        return call()
    except Exception as exc:
        logger.warning("Rule %s raised, failing closed", name, exc_info=True)
        return _failed(name, exc)


async def fail_closed_async(
    name: str, call: Callable[[], Awaitable[Decision | None]]
) -> Decision | None:
    """Await an asynchronous rule call; convert any exception into a block."""
    try:
        return await call()
    except Exception as exc:
        logger.warning("Async rule %s raised, failing closed", name, exc_info=True)
        return _failed(name, exc)


def report_errors(
    call: Callable[[], Any],
    on_error: Callable[[Exception], None] | None = None,
    *,
    what: str = "side effect",
) -> Any:
    """Run *call*, routing any exception to *on_error* instead of raising.

    Returns the call's result, or ``None`` if it failed.
    """
    try:
        return call()
    except Exception as exc:
        route_error(exc, on_error, what=what)
        return None


async def report_errors_async(
    call: Callable[[], Awaitable[Any]],
    on_error: Callable[[Exception], None] | None = None,
    *,
    what: str = "side effect",
) -> Any:
    """Awaitable counterpart of :func:`report_errors`."""
    try:
        return await call()
    except Exception as exc:
        route_error(exc, on_error, what=what)
        return None


def route_error(
    exc: Exception,
    on_error: Callable[[Exception], None] | None = None,
    *,
    what: str = "side effect",
) -> None:
    """Log *exc* and hand it to *on_error*; failures of the callback are dropped."""
    logger.debug("%s failed: %s", what, exc, exc_info=exc)
    if on_error is None:
        return
    try:
        on_error(exc)
    except Exception:
        logger.warning("Error callback for %s failed", what, exc_info=True)


def _failed(name: str, exc: Exception) -> Block:
    return block(failure_reason(name, exc))
