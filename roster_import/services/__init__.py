"""Import pipeline services: validation, execution, summary and session."""

from .executor import ExecutionResult, ImportExecutor
from .session import ImportSession, InvalidTransitionError, NoValidRowsError, SessionError, Stage
from .summary import render_summary_line, summarize
from .validator import validate_candidates

__all__ = [
    "ExecutionResult",
    "ImportExecutor",
    "ImportSession",
    "InvalidTransitionError",
    "NoValidRowsError",
    "SessionError",
    "Stage",
    "render_summary_line",
    "summarize",
    "validate_candidates",
]
