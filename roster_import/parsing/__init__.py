from .reader import (
    TEMPLATE_FILENAME,
    Candidate,
    FileReadError,
    NoEmailsFoundError,
    ParseError,
    UnsupportedFileTypeError,
    generate_template_csv,
    parse_candidates,
    parse_file_text,
    read_source_file,
)

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
