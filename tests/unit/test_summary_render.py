from __future__ import annotations

import re

from roster_import.models.import_row import ImportRow, RowStatus
from roster_import.models.import_summary import ImportSummary, PreviewCounts
from roster_import.services.summary import preview_counts, render_summary_line, summarize

"""Unit tests for summary aggregation and SUMMARY line rendering."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY total=\d+ successful=\d+ failed=\d+ duplicates=\d+ invalid=\d+$"
)


def _row(status: RowStatus, n: int = 1) -> ImportRow:
    return ImportRow(f"user{n}@x.com", n, status, "")


def test_summarize_counts_each_status():
    rows = [
        _row(RowStatus.SUCCESS, 1),
        _row(RowStatus.SUCCESS, 2),
        _row(RowStatus.ERROR, 3),
        _row(RowStatus.DUPLICATE, 4),
        _row(RowStatus.INVALID, 5),
        _row(RowStatus.INVALID, 6),
    ]
    assert summarize(rows) == ImportSummary(total=6, successful=2, failed=1, duplicates=1, invalid=2)


def test_summarize_empty():
    assert summarize([]) == ImportSummary(0, 0, 0, 0, 0)


def test_summarize_accepts_iterator():
    assert summarize(iter([_row(RowStatus.SUCCESS)])).total == 1


def test_summary_properties():
    s = ImportSummary(total=5, successful=2, failed=1, duplicates=1, invalid=1)
    assert s.attempted == 3
    assert s.has_failures
    assert not ImportSummary(total=2, successful=1, failed=0, duplicates=1, invalid=0).has_failures


def test_preview_counts():
    rows = [_row(RowStatus.VALID, 1), _row(RowStatus.VALID, 2), _row(RowStatus.DUPLICATE, 3), _row(RowStatus.INVALID, 4)]
    assert preview_counts(rows) == PreviewCounts(valid=2, duplicate=1, invalid=1)


def test_render_summary_line_format():
    line = render_summary_line(ImportSummary(total=4, successful=1, failed=1, duplicates=1, invalid=1))
    assert line == "SUMMARY total=4 successful=1 failed=1 duplicates=1 invalid=1"
    assert SUMMARY_PATTERN.match(line)
