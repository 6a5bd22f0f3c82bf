from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

"""Roster file reader.

Turns the uploaded file into an ordered list of email candidates:

- Lines are split on ``\\n`` or ``\\r\\n``.
- A first line containing "email" (any case) is a header and is skipped.
- Only the first comma-separated field of each line is used, so both a bare
  email list and a multi-column export work.
- Double quotes are removed, the value is trimmed and lower-cased.
- Blank lines are dropped.

CSV / plain text files are read as text. ``.xlsx`` exports are read with
pandas; the first column of the first sheet becomes the line list.
"""

__all__ = [
    "Candidate",
    "ParseError",
    "NoEmailsFoundError",
    "UnsupportedFileTypeError",
    "FileReadError",
    "parse_candidates",
    "parse_file_text",
    "read_source_file",
    "generate_template_csv",
    "TEMPLATE_FILENAME",
]

TEXT_SUFFIXES = {".csv", ".txt"}
SPREADSHEET_SUFFIXES = {".xlsx"}

TEMPLATE_FILENAME = "client_import_template.csv"
TEMPLATE_EMAILS = ("client1@example.com", "client2@example.com", "client3@example.com")

_LINE_SPLIT = re.compile(r"\r?\n")


class ParseError(Exception):
    """Raised when an uploaded file cannot produce any candidates."""


class NoEmailsFoundError(ParseError):
    """Raised when the file is empty or contains only a header."""


class UnsupportedFileTypeError(ParseError):
    """Raised for files that are neither CSV/text nor .xlsx."""


class FileReadError(ParseError):
    """Raised when the file exists but cannot be read or decoded."""


@dataclass(frozen=True)
class Candidate:
    email: str  # normalized
    line_number: int  # 1-based line in the source file, header included


def _normalize_field(line: str) -> str:
    first = line.split(",")[0]
    return first.strip().replace('"', "").strip().lower()


def parse_candidates(text: str) -> list[Candidate]:
    """Parse raw file text into normalized candidates, preserving file order.

    Returns an empty list when nothing usable is found; callers that need a
    hard failure use ``parse_file_text``.
    """
    lines = _LINE_SPLIT.split(text)
    start = 1 if lines and "email" in lines[0].lower() else 0

    candidates: list[Candidate] = []
    for index in range(start, len(lines)):
        line = lines[index].strip()
        if not line:
            continue
        email = _normalize_field(line)
        if email:
            candidates.append(Candidate(email=email, line_number=index + 1))
    return candidates


def parse_file_text(text: str) -> list[Candidate]:
    """Parse text and fail with NoEmailsFoundError when no candidate survives."""
    candidates = parse_candidates(text)
    if not candidates:
        raise NoEmailsFoundError("The file appears to be empty or incorrectly formatted.")
    return candidates


def _read_spreadsheet(path: Path) -> str:
    with pd.ExcelFile(path) as xls:
        if not xls.sheet_names:
            return ""
        # ヘッダなしで生読み: 1列目のみ使用
        df = xls.parse(xls.sheet_names[0], header=None, dtype=str)
    if df.shape[1] == 0:
        return ""
    lines = ["" if pd.isna(val) else str(val) for val in df.iloc[:, 0].tolist()]
    return "\n".join(lines)


def read_source_file(path: Path) -> str:
    """Read an uploaded roster file and return its text content.

    Raises:
        UnsupportedFileTypeError: suffix is not .csv/.txt/.xlsx
        FileReadError: file missing, unreadable or not decodable
    """
    suffix = path.suffix.lower()
    if suffix not in TEXT_SUFFIXES and suffix not in SPREADSHEET_SUFFIXES:
        raise UnsupportedFileTypeError(f"Please upload a CSV file (got '{path.name}').")
    if not path.is_file():
        raise FileReadError(f"file not found: {path}")

    try:
        if suffix in SPREADSHEET_SUFFIXES:
            return _read_spreadsheet(path)
        # utf-8-sig: spreadsheet exports often carry a BOM before the header
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise FileReadError(f"Could not read '{path.name}': {e}") from e


def generate_template_csv() -> str:
    """Return the downloadable import template (header + placeholder rows)."""
    return "\n".join(["email", *TEMPLATE_EMAILS])
