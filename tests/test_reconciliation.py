from datetime import UTC, date, datetime
from types import MappingProxyType

import pytest

from hall_services.models import CanonicalRecord, ServiceType
from hall_services.reconciliation import (
    CANONICAL_PRICES,
    LedgerStatus,
    has_amount_issue,
    reconciliation_status,
)
from tests.helpers.store_stub import RecordingStore

STAMP = datetime(2025, 9, 15, tzinfo=UTC)


def _rec(type: ServiceType, amount: float, sigla: str = "97") -> CanonicalRecord:
    return CanonicalRecord(
        date=date(2024, 5, 2), sigla=sigla, pieces=1, type=type, amount=amount, archived_at=STAMP
    )


@pytest.mark.parametrize(
    "type, amount, expected",
    [
        (ServiceType.SIGLATURA, 0.50, False),
        (ServiceType.SIGLATURA, 0.505, False),
        (ServiceType.SIGLATURA, 0.40, True),
        (ServiceType.HAPPY_HOUR, 1.00, False),
        (ServiceType.RIPARAZIONE, 5.00, True),
    ],
)
def test_amount_issue_is_distance_from_list_price(type, amount, expected):
    assert has_amount_issue(_rec(type, amount)) is expected


def test_healthy_ledger():
    store = RecordingStore([_rec(ServiceType.SIGLATURA, 0.5), _rec(ServiceType.RIPARAZIONE, 4.0)])

    result = reconciliation_status(store)

    assert result.status is LedgerStatus.HEALTHY
    assert result.to_response() == {
        "totalServices": 2,
        "servicesByType": {"riparazione": 1, "siglatura": 1},
        "amountIssuesDetected": 0,
        "status": "healthy",
    }
    # Archived rows are part of the check.
    assert store.get_calls[0]["include_archived"] is True
    assert store.create_calls == []


def test_off_price_rows_need_recovery():
    store = RecordingStore(
        [
            _rec(ServiceType.SIGLATURA, 0.40, "1"),
            _rec(ServiceType.SIGLATURA, 0.50, "2"),
            _rec(ServiceType.HAPPY_HOUR, 1.50, "3"),
        ]
    )

    result = reconciliation_status(store)

    assert result.amount_issues == 2
    assert result.to_response()["status"] == "needs_recovery"


def test_custom_price_list():
    prices = MappingProxyType({**CANONICAL_PRICES, ServiceType.SIGLATURA: 0.40})
    store = RecordingStore([_rec(ServiceType.SIGLATURA, 0.40)])

    assert reconciliation_status(store, prices=prices).status is LedgerStatus.HEALTHY


def test_empty_ledger_is_healthy():
    result = reconciliation_status(RecordingStore())

    assert result.total_services == 0
    assert result.to_response()["status"] == "healthy"
