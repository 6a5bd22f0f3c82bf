from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

"""Existing-roster snapshot.

The roster is the set of client emails already connected to the practice.
It is captured once before preview and never refreshed during an import,
so a client linked by someone else mid-run is not seen as a duplicate.
"""

__all__ = [
    "RosterSnapshot",
    "RosterLoadError",
    "fetch_roster_emails",
    "load_roster_file",
]

_ROSTER_SQL = (
    "SELECT p.email FROM client_professional_relationships r "
    "JOIN user_profiles p ON p.id = r.client_id "
    "WHERE r.professional_id = %s AND r.status = 'active'"
)


class RosterLoadError(Exception):
    pass


@dataclass(frozen=True)
class RosterSnapshot:
    """Case-insensitive, point-in-time set of roster emails."""
    emails: frozenset[str]

    @classmethod
    def from_emails(cls, emails: Iterable[str | None]) -> RosterSnapshot:
        return cls(frozenset(e.strip().lower() for e in emails if e and e.strip()))

    def __contains__(self, email: object) -> bool:
        if not isinstance(email, str):
            return False
        return email.strip().lower() in self.emails

    def __len__(self) -> int:
        return len(self.emails)


def fetch_roster_emails(cursor: Any, professional_id: str) -> RosterSnapshot:
    """Read the active roster of a professional (psycopg2 cursor)."""
    try:
        cursor.execute(_ROSTER_SQL, (professional_id,))
        rows = cursor.fetchall()
    except Exception as e:
        raise RosterLoadError(f"failed to load roster: {e}") from e
    return RosterSnapshot.from_emails(r[0] for r in rows)


def load_roster_file(path: Path) -> RosterSnapshot:
    """Read a roster from a plain file: one email per line, '#' comments allowed."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise RosterLoadError(f"failed to read roster file {path}: {e}") from e
    emails = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        emails.append(stripped.split(",")[0].replace('"', ""))
    return RosterSnapshot.from_emails(emails)
