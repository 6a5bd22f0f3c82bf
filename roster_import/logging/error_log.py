from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from roster_import.models.error_record import ErrorRecord
from roster_import.models.import_row import ImportRow, RowStatus

"""Error log buffering (JSON Lines).

- Fixed schema per line (see ErrorRecord; no extra keys)
- One ``errors-YYYYMMDD-HHMMSS.log`` (UTC) per run, created on first flush
- Records are buffered and written in one append on flush()
- Serial use only
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "records_for_rows",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

_LOGGED_STATUSES = (RowStatus.INVALID, RowStatus.ERROR)


def records_for_rows(file: str, rows: Iterable[ImportRow]) -> list[ErrorRecord]:
    """ErrorRecords for rows that ended invalid or in error."""
    return [
        ErrorRecord.create(file, r.original_line_number, r.email, r.status.value, r.message)
        for r in rows
        if r.status in _LOGGED_STATUSES
    ]


class ErrorLogBuffer:
    """In-memory buffer for error records. flush() appends JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[ErrorRecord]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
