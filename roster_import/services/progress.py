from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.import_row import ImportRow, RowStatus

"""Progress display for the import run (tqdm, TTY only).

- One tqdm bar per run, disabled when stdout is not a TTY (CI, pipes)
- Bar position follows the executor's percent, not a row counter, so the
  display matches ``ImportSession.progress_percent``
- Postfix shows rows done out of ``total_rows`` plus success / error counts
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and a progress bar should be drawn."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar fed by ``ImportSession.start(on_progress=...)``.

    Usage:
        with ProgressTracker(counts.valid) as tracker:
            await session.start(linker, on_progress=tracker.record)
    """

    def __init__(self, total_rows: int, *, description: str = "Importing clients") -> None:
        self.total_rows = total_rows
        self.description = description
        self.percent = 0
        self.successful = 0
        self.failed = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=description,
                unit="%",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def record(self, percent: int, row: ImportRow) -> None:
        """Record one finished row and move the bar to ``percent``."""
        if row.status is RowStatus.SUCCESS:
            self.successful += 1
        elif row.status is RowStatus.ERROR:
            self.failed += 1

        step = max(0, percent - self.percent)
        self.percent = max(self.percent, percent)

        if self.enabled and self.pbar is not None:
            if step:
                self.pbar.update(step)
            done = self.successful + self.failed
            self.pbar.set_postfix(rows=f"{done}/{self.total_rows}", ok=self.successful, failed=self.failed)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
