"""Exception hierarchy for the historical import pipeline.

Only :class:`SourceUnavailableError` aborts a job. Every other error is
raised for a single line or record and is caught by the caller, which turns it
into a report entry and moves on.
"""

from __future__ import annotations


class HallImportError(Exception):
    """Base exception for all import pipeline errors."""


class SourceUnavailableError(HallImportError):
    """The source file is missing or cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Source file unavailable: {path} ({reason})")


class UnknownFormatError(HallImportError):
    """No parser is registered for the requested format name."""


class LineParseError(HallImportError):
    """A source line has malformed columns or an unparsable date."""

    def __init__(self, line_no: int, message: str) -> None:
        self.line_no = line_no
        super().__init__(f"Line {line_no}: {message}")


class TypeMappingError(HallImportError):
    """A free-text service description maps to no canonical type."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Unknown service type: {text!r}")


class ValidationError(HallImportError):
    """A field value violates a canonical record invariant."""


class StorageWriteError(HallImportError):
    """The storage collaborator failed to persist a record."""


__all__ = [
    "HallImportError",
    "LineParseError",
    "SourceUnavailableError",
    "StorageWriteError",
    "TypeMappingError",
    "UnknownFormatError",
    "ValidationError",
]
