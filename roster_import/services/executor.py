from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..db.linker import ClientLinker, LinkResult
from ..models.import_row import ImportRow, RowStatus

"""Sequential import executor.

Links every row that is ``valid`` when the run starts, one at a time and in
file order, with a fixed pause between rows to stay under the backend's
rate limits. A failing row never stops the batch.

Progress is published after each attempted row as
``round(100 * completed / attemptable)`` through the ``on_progress`` hook,
before the pause, so callers can render it between rows.

One row at a time: the only suspension points are the awaited link call and
the inter-row sleep. With a per-link timeout, blocking linkers run in a
worker thread and a row whose deadline expires ends as ``error``.
``asyncio.CancelledError`` is not turned into a row error; it propagates to
whoever awaits ``run``.
"""

__all__ = [
    "DEFAULT_DELAY_SECONDS",
    "MSG_LINKED",
    "MSG_UNKNOWN_ERROR",
    "ExecutionResult",
    "ImportExecutor",
    "LinkTimeoutError",
    "ProgressCallback",
    "compute_progress",
]

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.3
MSG_LINKED = "Successfully added"
MSG_UNKNOWN_ERROR = "Unknown error"

ProgressCallback = Callable[[int, ImportRow], None]
LinkCallable = Callable[[str], Any]


@dataclass(frozen=True)
class ExecutionResult:
    attempted: int
    successful: int
    failed: int


class LinkTimeoutError(Exception):
    """The executor's per-link deadline expired."""


def compute_progress(completed: int, attemptable: int) -> int:
    """Percent of attemptable rows done, rounded half up (0 when nothing to do)."""
    if attemptable <= 0:
        return 0
    # half up: 2.5 -> 3
    return min(100, int(100 * completed / attemptable + 0.5))


def _resolve_link(linker: ClientLinker | LinkCallable) -> LinkCallable:
    link = getattr(linker, "link", None)
    if callable(link):
        return link
    if callable(linker):
        return linker
    raise TypeError(f"linker must provide link(email) or be callable, got {type(linker).__name__}")


class ImportExecutor:
    """Runs the link step over a session's rows.

    Args:
        linker: ClientLinker (or bare callable) taking one normalized email
        delay_seconds: Pause after each attempted row, skipped after the last
        timeout_seconds: Per-call deadline; blocking linkers are then run in a
            worker thread. None waits forever and calls the linker inline.
        sleep: Awaitable sleep function (injectable for tests)
    """

    def __init__(
        self,
        linker: ClientLinker | LinkCallable,
        *,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        timeout_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._link = _resolve_link(linker)
        self.delay_seconds = delay_seconds
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep

    async def _invoke(self, email: str, *, threaded: bool) -> LinkResult:
        if threaded and not inspect.iscoroutinefunction(self._link):
            # blocking linkers (psycopg2) run in a worker thread
            result = await asyncio.to_thread(self._link, email)
        else:
            result = self._link(email)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _call_linker(self, email: str) -> LinkResult:
        if self.timeout_seconds is None:
            return await self._invoke(email, threaded=False)
        try:
            async with asyncio.timeout(self.timeout_seconds) as scope:
                return await self._invoke(email, threaded=True)
        except TimeoutError:
            # only our own deadline is reported as a timeout
            if scope.expired():
                raise LinkTimeoutError(f"Timed out after {self.timeout_seconds:g}s") from None
            raise

    async def attempt(self, row: ImportRow) -> ImportRow:
        """Link one row and return it with its final status."""
        try:
            result = await self._call_linker(row.email)
        except LinkTimeoutError as e:
            logger.debug(f"link timed out for line {row.original_line_number}")
            return row.with_status(RowStatus.ERROR, str(e))
        except Exception as e:
            logger.debug(f"link raised for line {row.original_line_number}: {e!r}")
            return row.with_status(RowStatus.ERROR, str(e) or MSG_UNKNOWN_ERROR)

        if getattr(result, "success", False):
            return row.with_status(RowStatus.SUCCESS, getattr(result, "message", None) or MSG_LINKED)
        return row.with_status(RowStatus.ERROR, getattr(result, "error", None) or MSG_UNKNOWN_ERROR)

    async def run(
        self,
        rows: list[ImportRow],
        on_progress: ProgressCallback | None = None,
    ) -> ExecutionResult:
        """Attempt every valid row, replacing each list element with its result.

        Rows that are not ``valid`` at start are left untouched and are not
        counted in the progress denominator.
        """
        targets = [i for i, row in enumerate(rows) if row.status is RowStatus.VALID]
        attemptable = len(targets)
        successful = 0
        failed = 0

        logger.debug(f"executor: {attemptable} row(s) to link")
        for completed, index in enumerate(targets, start=1):
            outcome = await self.attempt(rows[index])
            rows[index] = outcome
            if outcome.status is RowStatus.SUCCESS:
                successful += 1
            else:
                failed += 1
                logger.info(f"line {outcome.original_line_number} {outcome.email}: {outcome.message}")

            if on_progress is not None:
                on_progress(compute_progress(completed, attemptable), outcome)

            if completed < attemptable and self.delay_seconds > 0:
                await self._sleep(self.delay_seconds)

        return ExecutionResult(attempted=attemptable, successful=successful, failed=failed)
