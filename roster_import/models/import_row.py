from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

"""ImportRow domain model and RowStatus enum for the bulk client import.

An ImportRow is one candidate email taken from the uploaded file. Its status
moves through:

    pending → (valid | invalid | duplicate)      (validation)
    valid → (success | error)                    (execution)

Rows are frozen: the email is the identity key and never changes. A status
change produces a new row (``with_status``) which replaces the old one in
the session's row list.
"""

__all__ = [
    "RowStatus",
    "ImportRow",
]


class RowStatus(Enum):
    """Per-row status vocabulary.

    - PENDING: Parsed, not yet classified
    - VALID: Passed format and duplicate checks, ready to link
    - INVALID: Failed the email format check
    - DUPLICATE: Repeated in the file or already on the roster
    - SUCCESS: Linked by the collaborator
    - ERROR: Collaborator rejected the row or raised
    """
    PENDING = "pending"
    VALID = "valid"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ImportRow:
    """One candidate email and its current classification."""
    email: str  # lower-cased, trimmed; identity key for deduplication
    original_line_number: int  # 1-based line in the source file (diagnostics only)
    status: RowStatus = RowStatus.PENDING
    message: str = ""

    def with_status(self, status: RowStatus, message: str) -> ImportRow:
        return replace(self, status=status, message=message)
