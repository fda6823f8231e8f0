"""Duplicate detection against records already in storage.

A candidate is a duplicate when an existing record has the same ``date``,
``sigla``, ``type`` and ``pieces`` and an amount within ``tolerance``
(default 0.01, enough to absorb rounding from currency conversion). Archived
records take part in the lookup.

Public surface:
- ``is_duplicate``: pure comparison against already-fetched records.
- ``DuplicateResolver``: fetches candidates from a
  :class:`~hall_services.persistence.ServiceStore` and applies the comparison.
- ``DuplicatePolicy``: what the executor does with a duplicate.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from enum import StrEnum

from .models import CanonicalRecord
from .persistence import ServiceStore

DEFAULT_TOLERANCE = 0.01


class DuplicatePolicy(StrEnum):
    # Keep the stored record and discard the candidate.
    SKIP = "skip"
    # Import every candidate; no duplicate lookup is made.
    ALLOW = "allow"


def is_duplicate(
    candidate: CanonicalRecord,
    existing: Iterable[CanonicalRecord],
    *,
    tolerance: float = DEFAULT_TOLERANCE,
) -> bool:
    return any(
        e.date == candidate.date
        and e.sigla == candidate.sigla
        and e.type == candidate.type
        and e.pieces == candidate.pieces
        and abs(e.amount - candidate.amount) < tolerance
        for e in existing
    )


class DuplicateResolver:
    """Decide whether a candidate already exists in ``store``."""

    def __init__(self, store: ServiceStore, *, tolerance: float = DEFAULT_TOLERANCE) -> None:
        if not math.isfinite(tolerance) or tolerance < 0:
            raise ValueError(f"tolerance must be finite and >= 0, got {tolerance}")
        self._store = store
        self.tolerance = tolerance

    def existing_for(self, candidate: CanonicalRecord) -> list[CanonicalRecord]:
        return self._store.get_services(
            start_date=candidate.date,
            end_date=candidate.date,
            sigla=candidate.sigla,
            type=str(candidate.type),
            pieces=candidate.pieces,
            include_archived=True,
        )

    def is_duplicate(self, candidate: CanonicalRecord) -> bool:
        return is_duplicate(candidate, self.existing_for(candidate), tolerance=self.tolerance)


__all__ = [
    "DEFAULT_TOLERANCE",
    "DuplicatePolicy",
    "DuplicateResolver",
    "is_duplicate",
]
