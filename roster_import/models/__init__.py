"""Domain models for the bulk client roster import.

Rows, summaries and error records shared by the parser, validator,
executor and session services.
"""

from .error_record import ErrorRecord
from .import_row import ImportRow, RowStatus
from .import_summary import ImportSummary, PreviewCounts

__all__ = [
    # Row model
    "ImportRow",
    "RowStatus",
    # Results
    "ImportSummary",
    "PreviewCounts",
    "ErrorRecord",
]
