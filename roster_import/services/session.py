from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path

from ..db.linker import ClientLinker
from ..db.roster import RosterSnapshot
from ..models.import_row import ImportRow, RowStatus
from ..models.import_summary import ImportSummary, PreviewCounts
from ..parsing.reader import parse_file_text, read_source_file
from .executor import DEFAULT_DELAY_SECONDS, ImportExecutor, LinkCallable, ProgressCallback
from .summary import preview_counts, summarize
from .validator import validate_candidates

"""Import session state machine.

Stages and transitions:

    upload --load_text/load_file--> preview        (>= 1 candidate parsed)
    preview --remove_row--> preview                (no re-validation)
    preview --start--> importing --> complete      (>= 1 valid row)
    any --reset--> upload

``complete`` is terminal until reset; importing again means starting over
from a fresh file. Parse failures keep the session at ``upload`` and raise
a ParseError subclass; rejected transitions raise a SessionError subclass
and leave the session untouched.
"""

__all__ = [
    "Stage",
    "SessionError",
    "InvalidTransitionError",
    "NoValidRowsError",
    "ImportSession",
]

logger = logging.getLogger(__name__)


class Stage(Enum):
    UPLOAD = "upload"
    PREVIEW = "preview"
    IMPORTING = "importing"
    COMPLETE = "complete"


class SessionError(Exception):
    """Base exception for rejected session actions."""


class InvalidTransitionError(SessionError):
    pass


class NoValidRowsError(SessionError):
    """Raised by start() when there is nothing to import."""


class ImportSession:
    """One bulk import, from uploaded file to final summary.

    Only the executor mutates ``rows`` while importing; callers read
    ``rows``, ``progress_percent`` and ``stage`` between rows.
    """

    def __init__(
        self,
        *,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        timeout_seconds: float | None = None,
        on_complete: Callable[[ImportSummary], None] | None = None,
    ) -> None:
        self.delay_seconds = delay_seconds
        self.timeout_seconds = timeout_seconds
        self.on_complete = on_complete
        self.stage = Stage.UPLOAD
        self.rows: list[ImportRow] = []
        self.progress_percent = 0
        self.summary: ImportSummary | None = None
        self.source_name: str | None = None
        self.roster: RosterSnapshot | None = None

    def _require(self, *stages: Stage, action: str) -> None:
        if self.stage not in stages:
            allowed = "/".join(s.value for s in stages)
            raise InvalidTransitionError(f"cannot {action} while {self.stage.value} (requires {allowed})")

    # upload -> preview

    def load_text(
        self,
        text: str,
        roster: RosterSnapshot | Iterable[str] | None = None,
        *,
        source_name: str = "upload.csv",
    ) -> list[ImportRow]:
        """Parse and validate file content, moving to preview.

        Raises:
            InvalidTransitionError: session is not at upload
            NoEmailsFoundError: no candidates in the text (stage unchanged)
        """
        self._require(Stage.UPLOAD, action="load a file")
        candidates = parse_file_text(text)
        snapshot = roster if isinstance(roster, RosterSnapshot) else RosterSnapshot.from_emails(roster or ())

        self.rows = validate_candidates(candidates, snapshot)
        self.roster = snapshot
        self.source_name = source_name
        self.stage = Stage.PREVIEW
        counts = self.preview_counts()
        logger.info(
            f"{source_name}: {len(self.rows)} email(s) found "
            f"valid={counts.valid} duplicate={counts.duplicate} invalid={counts.invalid}"
        )
        return self.rows

    def load_file(
        self,
        path: Path,
        roster: RosterSnapshot | Iterable[str] | None = None,
    ) -> list[ImportRow]:
        """Read an uploaded file then behave like load_text.

        Raises:
            UnsupportedFileTypeError / FileReadError / NoEmailsFoundError
        """
        self._require(Stage.UPLOAD, action="load a file")
        text = read_source_file(path)
        return self.load_text(text, roster, source_name=path.name)

    # preview

    def remove_row(self, index: int) -> ImportRow:
        """Drop one row by position; remaining rows keep their status."""
        self._require(Stage.PREVIEW, action="remove a row")
        if not 0 <= index < len(self.rows):
            raise IndexError(f"row index out of range: {index}")
        removed = self.rows.pop(index)
        logger.debug(f"removed line {removed.original_line_number} ({removed.email})")
        return removed

    def preview_counts(self) -> PreviewCounts:
        return preview_counts(self.rows)

    # preview -> importing -> complete

    async def start(
        self,
        linker: ClientLinker | LinkCallable,
        on_progress: ProgressCallback | None = None,
    ) -> ImportSummary:
        """Link every valid row, then freeze the summary.

        Raises:
            InvalidTransitionError: session is not at preview
            NoValidRowsError: no row is valid (no collaborator call is made)
        """
        self._require(Stage.PREVIEW, action="start the import")
        if not any(row.status is RowStatus.VALID for row in self.rows):
            raise NoValidRowsError("There are no valid emails to import.")

        executor = ImportExecutor(
            linker,
            delay_seconds=self.delay_seconds,
            timeout_seconds=self.timeout_seconds,
        )

        def _record(percent: int, row: ImportRow) -> None:
            # max(): progress never moves backwards
            self.progress_percent = max(self.progress_percent, percent)
            if on_progress is not None:
                on_progress(self.progress_percent, row)

        self.stage = Stage.IMPORTING
        self.progress_percent = 0
        result = await executor.run(self.rows, on_progress=_record)

        self.summary = summarize(self.rows)
        self.progress_percent = 100
        self.stage = Stage.COMPLETE
        logger.info(
            f"import finished: attempted={result.attempted} "
            f"successful={result.successful} failed={result.failed}"
        )
        if self.on_complete is not None:
            self.on_complete(self.summary)
        return self.summary

    # complete helpers

    def failed_rows(self) -> list[ImportRow]:
        return [r for r in self.rows if r.status in (RowStatus.ERROR, RowStatus.INVALID)]

    def recent_results(self, limit: int = 5) -> list[ImportRow]:
        """Last attempted rows (success or error), oldest first."""
        attempted = [r for r in self.rows if r.status in (RowStatus.SUCCESS, RowStatus.ERROR)]
        return attempted[-limit:] if limit > 0 else []

    # any -> upload

    def reset(self) -> None:
        self.stage = Stage.UPLOAD
        self.rows = []
        self.progress_percent = 0
        self.summary = None
        self.source_name = None
        self.roster = None
