"""Read-only health check of the stored service ledger.

Every stored service, live or archived, is compared with the current price
list. A row whose per-piece amount is more than ``AMOUNT_TOLERANCE`` away from
the list price for its type counts as an amount issue; any issue flips the
status from ``healthy`` to ``needs_recovery``. Nothing is written.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from .logging_setup import get_logger
from .models import CanonicalRecord, ServiceType
from .persistence import ServiceStore
from .reporting import count_by_type

logger = get_logger(__name__)

# Per-piece list prices in euros.
CANONICAL_PRICES: Mapping[ServiceType, float] = MappingProxyType(
    {
        ServiceType.SIGLATURA: 0.50,
        ServiceType.HAPPY_HOUR: 1.00,
        ServiceType.RIPARAZIONE: 4.00,
    }
)
AMOUNT_TOLERANCE = 0.01


class LedgerStatus(StrEnum):
    HEALTHY = "healthy"
    NEEDS_RECOVERY = "needs_recovery"


@dataclass(frozen=True, slots=True)
class ReconciliationStatus:
    total_services: int
    services_by_type: dict[str, int] = field(default_factory=dict)
    amount_issues: int = 0

    @property
    def status(self) -> LedgerStatus:
        return LedgerStatus.NEEDS_RECOVERY if self.amount_issues else LedgerStatus.HEALTHY

    def to_response(self) -> dict[str, Any]:
        return {
            "totalServices": self.total_services,
            "servicesByType": dict(self.services_by_type),
            "amountIssuesDetected": self.amount_issues,
            "status": str(self.status),
        }


def has_amount_issue(
    record: CanonicalRecord,
    prices: Mapping[ServiceType, float] = CANONICAL_PRICES,
) -> bool:
    price = prices.get(record.type)
    return price is not None and abs(record.amount - price) > AMOUNT_TOLERANCE


def reconciliation_status(
    store: ServiceStore,
    *,
    prices: Mapping[ServiceType, float] = CANONICAL_PRICES,
) -> ReconciliationStatus:
    records = store.get_services(
        start_date=date.min,
        end_date=date.max,
        include_archived=True,
    )
    issues = sum(1 for r in records if has_amount_issue(r, prices))
    result = ReconciliationStatus(
        total_services=len(records),
        services_by_type=count_by_type(records),
        amount_issues=issues,
    )
    logger.info(
        "Ledger status %s: %d services, %d amount issues",
        result.status,
        result.total_services,
        issues,
    )
    return result


__all__ = [
    "AMOUNT_TOLERANCE",
    "CANONICAL_PRICES",
    "LedgerStatus",
    "ReconciliationStatus",
    "has_amount_issue",
    "reconciliation_status",
]
