"""Import outcome aggregation and response payloads."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .models import CanonicalRecord


class ErrorCollector:
    """Keep the first ``capacity`` error messages and count the rest.

    ``capacity=None`` keeps everything. ``total`` always reflects every
    message added, so a truncated list still reports the real error count.
    """

    def __init__(self, capacity: int | None = None) -> None:
        if capacity is not None and capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._items: list[str] = []
        self.overflow = 0

    def add(self, message: str) -> None:
        if self.capacity is None or len(self._items) < self.capacity:
            self._items.append(message)
        else:
            self.overflow += 1

    def extend(self, messages: Iterable[str]) -> None:
        for m in messages:
            self.add(m)

    @property
    def items(self) -> list[str]:
        return list(self._items)

    @property
    def total(self) -> int:
        return len(self._items) + self.overflow

    @property
    def truncated(self) -> bool:
        return self.overflow > 0

    def __len__(self) -> int:
        return self.total


def count_by_year(records: Iterable[CanonicalRecord]) -> dict[int, int]:
    return dict(sorted(Counter(r.archived_year for r in records).items()))


def count_by_type(records: Iterable[CanonicalRecord]) -> dict[str, int]:
    return dict(sorted(Counter(str(r.type) for r in records).items()))


@dataclass(slots=True)
class ImportReport:
    """Outcome of one import job.

    ``records`` are the normalized records in file order. ``imported`` and
    ``skipped`` stay at zero for dry runs.
    """

    dry_run: bool
    records: Sequence[CanonicalRecord] = ()
    errors: ErrorCollector = field(default_factory=ErrorCollector)
    imported: int = 0
    skipped: int = 0
    sample_size: int = 5

    @property
    def total_services(self) -> int:
        return len(self.records)

    def to_response(self) -> dict[str, Any]:
        if self.dry_run:
            return {
                "dryRun": True,
                "totalServices": self.total_services,
                "errors": self.errors.items,
                "totalErrors": self.errors.total,
                "servicesByYear": count_by_year(self.records),
                "servicesByType": count_by_type(self.records),
                "sampleServices": [r.to_dict() for r in self.records[: self.sample_size]],
            }
        return {
            "success": True,
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": self.errors.items,
            "totalErrors": self.errors.total,
            "totalServices": self.total_services,
            "servicesByYear": count_by_year(self.records),
            "servicesByType": count_by_type(self.records),
        }


__all__ = [
    "ErrorCollector",
    "ImportReport",
    "count_by_type",
    "count_by_year",
]
