from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the import error log.

Rows that end an import as ``invalid`` or ``error`` are written as one JSON
object per line. ``row=-1`` marks a file-level failure where no single line
can be blamed (unreadable file, no emails found).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded file name
        row: Line number in the file (1-based). -1 for file-level errors
        email: Candidate email, empty for file-level errors
        status: Final row status value (``invalid`` / ``error``) or ``file``
        message: Human-readable reason
    """
    timestamp: str
    file: str
    row: int
    email: str
    status: str
    message: str

    @staticmethod
    def create(file: str, row: int, email: str, status: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            email=email,
            status=status,
            message=message,
        )

    def to_json_line(self) -> str:
        # fixed key set: dataclass fields only
        return json.dumps(asdict(self), ensure_ascii=False)
