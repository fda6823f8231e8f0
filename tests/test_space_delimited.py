from datetime import date
from pathlib import Path

from hall_services.ingest.adapters import space_delimited
from hall_services.ingest.utils import read_source


def test_rejoins_date_and_time_tokens():
    result = space_delimited.parse("2 2025-04-29 00:00:00.000 177 1 siglatura 0.5 paid\n")

    assert result.errors == ()
    (rec,) = result.records
    assert rec.date == date(2025, 4, 29)
    assert (rec.sigla, rec.pieces, rec.type, rec.amount, rec.notes) == (
        "177",
        "1",
        "siglatura",
        "0.5",
        None,
    )


def test_fixture_file(data_dir: Path):
    result = space_delimited.parse(read_source(data_dir / "services_export_2025.txt"))

    assert [r.sigla for r in result.records] == ["177", "140", "121", "160"]
    assert result.errors == (
        "Line 6: invalid ID 'x'",
        "Line 7: invalid datetime '2025-02-30 00:00:00.000'",
        "Line 8: insufficient columns (6)",
    )


def test_trailing_tokens_become_notes(data_dir: Path):
    result = space_delimited.parse(read_source(data_dir / "services_export_2025.txt"))
    by_sigla = {r.sigla: r for r in result.records}

    assert by_sigla["121"].notes == "orlo pantaloni"
    assert by_sigla["160"].notes == "kit"
    # The time of day is dropped; only the calendar date survives.
    assert by_sigla["160"].date == date(2024, 12, 20)


def test_test_records_are_dropped_silently():
    content = (
        "6 2025-03-14 00:00:00.000 TS00 1 siglatura 0.5 paid\n"
        "7 2025-03-15 00:00:00.000 test-99 1 siglatura 0.5 paid\n"
    )
    result = space_delimited.parse(content)

    assert result.records == ()
    assert result.errors == ()
