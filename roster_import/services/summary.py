from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from ..models.import_row import ImportRow, RowStatus
from ..models.import_summary import ImportSummary, PreviewCounts

"""Summary aggregation and SUMMARY line rendering.

``summarize`` reduces the final row list to counts once an import
completes. ``render_summary_line`` formats it for the CLI:

    SUMMARY total={n} successful={s} failed={f} duplicates={d} invalid={i}
"""

__all__ = [
    "summarize",
    "preview_counts",
    "render_summary_line",
]


def summarize(rows: Iterable[ImportRow]) -> ImportSummary:
    """Count final row statuses.

    Examples:
        >>> from roster_import.models.import_row import ImportRow, RowStatus
        >>> summarize([ImportRow("a@b.com", 2, RowStatus.SUCCESS, "ok")])
        ImportSummary(total=1, successful=1, failed=0, duplicates=0, invalid=0)
    """
    rows = list(rows)
    counts = Counter(row.status for row in rows)
    return ImportSummary(
        total=len(rows),
        successful=counts[RowStatus.SUCCESS],
        failed=counts[RowStatus.ERROR],
        duplicates=counts[RowStatus.DUPLICATE],
        invalid=counts[RowStatus.INVALID],
    )


def preview_counts(rows: Iterable[ImportRow]) -> PreviewCounts:
    counts = Counter(row.status for row in rows)
    return PreviewCounts(
        valid=counts[RowStatus.VALID],
        duplicate=counts[RowStatus.DUPLICATE],
        invalid=counts[RowStatus.INVALID],
    )


def render_summary_line(summary: ImportSummary) -> str:
    return (
        f"SUMMARY total={summary.total} "
        f"successful={summary.successful} "
        f"failed={summary.failed} "
        f"duplicates={summary.duplicates} "
        f"invalid={summary.invalid}"
    )
