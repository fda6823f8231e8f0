from datetime import date
from pathlib import Path

from hall_services.ingest.adapters import tab_delimited
from hall_services.ingest.utils import read_source
from hall_services.models import RawRecord


def test_parses_single_line_fields_verbatim():
    result = tab_delimited.parse("06/02/2020\t97\t\t1\tSiglatura\t€ 0,40\n")

    assert result.errors == ()
    assert result.records == (
        RawRecord(
            line_no=1,
            date=date(2020, 2, 6),
            sigla="97",
            pieces="1",
            type="Siglatura",
            amount="€ 0,40",
        ),
    )


def test_fixture_file_counts_valid_and_malformed_lines(data_dir: Path):
    result = tab_delimited.parse(read_source(data_dir / "services_2020_2021.tsv"))

    assert len(result.records) == 8
    assert result.errors == (
        "Line 9: invalid date '31/02/2021'",
        "Line 10: insufficient columns (4)",
    )
    # Test record on line 12 is neither a record nor an error
    assert all(r.sigla != "TS00" for r in result.records)


def test_missing_amount_column_reads_as_zero():
    result = tab_delimited.parse("06/02/2020\t97\t\t1\tSiglatura\n")

    assert result.errors == ()
    assert result.records[0].amount == "0"


def test_compact_date_and_one_digit_day_are_accepted():
    content = "27062022\t109\t\t1\tsiglatura\t€ 0,40\n7/10/2024\t110\t\t1\tsiglatura\t€ 0,40\n"
    result = tab_delimited.parse(content)

    assert [r.date for r in result.records] == [date(2022, 6, 27), date(2024, 10, 7)]


def test_missing_sigla_is_a_line_error():
    result = tab_delimited.parse("06/02/2020\t\t\t1\tSiglatura\t€ 0,40\n")

    assert result.records == ()
    assert result.errors == ("Line 1: missing sigla",)


def test_blank_lines_keep_physical_numbering():
    content = "\n\n06/02/2020\t97\t\t1\tSiglatura\t€ 0,40\nnot a row\n"
    result = tab_delimited.parse(content)

    assert result.records[0].line_no == 3
    assert result.errors == ("Line 4: insufficient columns (1)",)


def test_parsing_is_deterministic(data_dir: Path):
    text = read_source(data_dir / "services_2020_2021.tsv")

    assert tab_delimited.parse(text) == tab_delimited.parse(text)
