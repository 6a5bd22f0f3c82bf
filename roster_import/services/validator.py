from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from ..db.roster import RosterSnapshot
from ..models.import_row import ImportRow, RowStatus
from ..parsing.reader import Candidate

"""Candidate validation and deduplication.

Each candidate gets exactly one status, first matching rule wins:

1. format check          -> invalid   "Invalid email format"
2. seen earlier in file  -> duplicate "Duplicate entry in file"
3. already on roster     -> duplicate "Already connected to your practice"
4. otherwise             -> valid     "Ready to import"

A malformed line never reaches the duplicate checks, so a repeated bad
address is reported as invalid. Only well-formed emails enter the in-file
seen set, and they enter it before the roster check: a roster duplicate
still makes later repeats in-file duplicates.

Pure function of (candidates, roster); no I/O.
"""

__all__ = [
    "EMAIL_PATTERN",
    "MSG_INVALID_FORMAT",
    "MSG_DUPLICATE_IN_FILE",
    "MSG_ALREADY_CONNECTED",
    "MSG_READY",
    "is_valid_email",
    "validate_candidates",
]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MSG_INVALID_FORMAT = "Invalid email format"
MSG_DUPLICATE_IN_FILE = "Duplicate entry in file"
MSG_ALREADY_CONNECTED = "Already connected to your practice"
MSG_READY = "Ready to import"


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email) is not None


def _classify(email: str, seen: set[str], roster: RosterSnapshot) -> tuple[RowStatus, str]:
    if not is_valid_email(email):
        return RowStatus.INVALID, MSG_INVALID_FORMAT
    if email in seen:
        return RowStatus.DUPLICATE, MSG_DUPLICATE_IN_FILE
    seen.add(email)
    if email in roster:
        return RowStatus.DUPLICATE, MSG_ALREADY_CONNECTED
    return RowStatus.VALID, MSG_READY


def validate_candidates(
    candidates: Sequence[Candidate],
    roster: RosterSnapshot | Iterable[str] | None = None,
) -> list[ImportRow]:
    """Classify candidates into ImportRows, preserving file order.

    Args:
        candidates: Parsed candidates in file order
        roster: Emails already linked to the practice (any case)

    Returns:
        One ImportRow per candidate
    """
    snapshot = roster if isinstance(roster, RosterSnapshot) else RosterSnapshot.from_emails(roster or ())
    seen: set[str] = set()
    rows: list[ImportRow] = []
    for candidate in candidates:
        email = candidate.email.strip().lower()
        status, message = _classify(email, seen, snapshot)
        rows.append(
            ImportRow(
                email=email,
                original_line_number=candidate.line_number,
                status=status,
                message=message,
            )
        )
    return rows
