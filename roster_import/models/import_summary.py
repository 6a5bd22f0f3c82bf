from __future__ import annotations

from dataclasses import dataclass

"""Result models for the bulk client import.

ImportSummary is frozen once a session completes; PreviewCounts is the
lighter breakdown shown before the import starts.
"""

__all__ = [
    "ImportSummary",
    "PreviewCounts",
]


@dataclass(frozen=True)
class ImportSummary:
    """Aggregated outcome of one completed import.

    total == successful + failed + duplicates + invalid
    """
    total: int  # all rows left in the session
    successful: int  # linked by the collaborator
    failed: int  # collaborator error
    duplicates: int  # in-file or roster duplicates
    invalid: int  # bad email format

    @property
    def attempted(self) -> int:
        return self.successful + self.failed

    @property
    def has_failures(self) -> bool:
        return self.failed > 0 or self.invalid > 0


@dataclass(frozen=True)
class PreviewCounts:
    """Row counts shown while the session is in preview."""
    valid: int
    duplicate: int
    invalid: int
