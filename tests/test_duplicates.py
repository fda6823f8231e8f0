from dataclasses import replace
from datetime import UTC, date, datetime

import pytest

from hall_services.duplicates import DuplicateResolver, is_duplicate
from hall_services.models import CanonicalRecord, ServiceType
from tests.helpers.store_stub import RecordingStore

STAMP = datetime(2025, 9, 15, tzinfo=UTC)

BASE = CanonicalRecord(
    date=date(2020, 2, 11),
    sigla="93",
    pieces=2,
    type=ServiceType.SIGLATURA,
    amount=0.40,
    archived_at=STAMP,
)


@pytest.mark.parametrize(
    "other, expected",
    [
        (BASE, True),
        (replace(BASE, amount=0.405), True),
        (replace(BASE, amount=0.3901), True),
        (replace(BASE, amount=0.41), False),
        (replace(BASE, amount=0.50), False),
        (replace(BASE, date=date(2020, 2, 12)), False),
        (replace(BASE, sigla="94"), False),
        (replace(BASE, pieces=1), False),
        (replace(BASE, type=ServiceType.RIPARAZIONE), False),
        # Notes and import time do not take part in the comparison
        (replace(BASE, notes="kit", archived_at=datetime(2021, 1, 1, tzinfo=UTC)), True),
    ],
)
def test_is_duplicate_matches_key_fields_and_amount_tolerance(other, expected):
    assert is_duplicate(BASE, [other]) is expected


def test_sigla_comparison_is_case_sensitive():
    assert is_duplicate(BASE, [replace(BASE, sigla="93a")]) is False
    assert is_duplicate(replace(BASE, sigla="AB"), [replace(BASE, sigla="ab")]) is False


def test_custom_tolerance():
    near = replace(BASE, amount=0.45)

    assert is_duplicate(BASE, [near]) is False
    assert is_duplicate(BASE, [near], tolerance=0.1) is True


def test_resolver_queries_store_with_exact_filters_including_archived():
    store = RecordingStore([BASE])
    resolver = DuplicateResolver(store)

    assert resolver.is_duplicate(replace(BASE, amount=0.401)) is True
    assert store.get_calls == [
        {
            "start_date": date(2020, 2, 11),
            "end_date": date(2020, 2, 11),
            "sigla": "93",
            "type": "siglatura",
            "pieces": 2,
            "include_archived": True,
        }
    ]


def test_resolver_rejects_negative_tolerance():
    with pytest.raises(ValueError):
        DuplicateResolver(RecordingStore(), tolerance=-0.01)


@pytest.mark.parametrize("tolerance", [float("nan"), float("inf")])
def test_resolver_rejects_non_finite_tolerance(tolerance):
    with pytest.raises(ValueError):
        DuplicateResolver(RecordingStore(), tolerance=tolerance)
