"""Data models for the historical services import.

Two record shapes exist:

- :class:`RawRecord`: one surviving source line, fields kept as text exactly
  as the source spelled them (only the date is already parsed, since date
  syntax differs per format and a bad date is a line-level parse error).
- :class:`CanonicalRecord`: the single normalized representation every format
  converges to, and the only shape that reaches storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class ServiceType(StrEnum):
    """Closed set of service types accepted by the live ledger."""

    SIGLATURA = "siglatura"
    HAPPY_HOUR = "happy_hour"
    RIPARAZIONE = "riparazione"


# Historical data predates the live payment workflow; every import is paid.
HISTORICAL_STATUS = "paid"


@dataclass(frozen=True, slots=True)
class RawRecord:
    """A single parsed source line before type/amount normalization."""

    line_no: int
    date: date
    sigla: str
    pieces: str
    type: str
    amount: str
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Output of a format parser: surviving records plus line-level errors."""

    records: tuple[RawRecord, ...] = ()
    errors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CanonicalRecord:
    """A normalized service record.

    ``amount`` is always per piece. ``archived_year`` follows ``date.year``
    and ``archived_at`` is the timestamp of the import run, not of the
    original transaction. ``source_line`` is bookkeeping for error messages
    and does not take part in equality.
    """

    date: date
    sigla: str
    pieces: int
    type: ServiceType
    amount: float
    archived_at: datetime
    notes: str | None = None
    status: str = HISTORICAL_STATUS
    source_line: int | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.sigla:
            raise ValueError("sigla must be non-empty")
        if self.pieces < 1:
            raise ValueError(f"pieces must be >= 1, got {self.pieces}")
        if self.amount < 0:
            raise ValueError(f"amount must be >= 0, got {self.amount}")
        # Coerce plain strings so records loaded from storage compare equal.
        object.__setattr__(self, "type", ServiceType(self.type))

    @property
    def archived_year(self) -> int:
        return self.date.year

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-friendly shape used in import responses."""

        return {
            "date": self.date.isoformat(),
            "sigla": self.sigla,
            "pieces": self.pieces,
            "type": str(self.type),
            "amount": self.amount,
            "status": self.status,
            "notes": self.notes,
            "archivedYear": self.archived_year,
            "archivedAt": self.archived_at.isoformat(),
        }


__all__ = [
    "HISTORICAL_STATUS",
    "CanonicalRecord",
    "ParseResult",
    "RawRecord",
    "ServiceType",
]
