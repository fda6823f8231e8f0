from datetime import date
from pathlib import Path

import pytest
from db.client import DatabaseNotConfigured, get_engine, session_scope

from hall_services.errors import StorageWriteError
from hall_services.executor import ImportOptions, run_import
from hall_services.models import CanonicalRecord, ServiceType
from hall_services.persistence import SqlServiceStore
from tests.helpers.db import bootstrap_sqlite_db, count_services, seed_service


def test_get_services_hides_archived_rows_unless_asked(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "services.sqlite")
    seed_service(url, on=date(2020, 2, 6), sigla="97", type="siglatura", amount=0.40)
    seed_service(
        url, on=date(2020, 2, 6), sigla="98", type="siglatura", amount=0.40, archived=False
    )

    with session_scope(database_url=url) as session:
        store = SqlServiceStore(session)
        live = store.get_services(start_date=date(2020, 1, 1), end_date=date(2020, 12, 31))
        everything = store.get_services(
            start_date=date(2020, 1, 1), end_date=date(2020, 12, 31), include_archived=True
        )

    assert [r.sigla for r in live] == ["98"]
    assert [r.sigla for r in everything] == ["97", "98"]


def test_get_services_applies_exact_filters(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "services.sqlite")
    seed_service(url, on=date(2021, 4, 22), sigla="198", type="riparazione", amount=5.0)
    seed_service(url, on=date(2021, 4, 22), sigla="198", type="siglatura", amount=0.4)
    seed_service(url, on=date(2021, 4, 23), sigla="198", type="riparazione", amount=5.0)

    with session_scope(database_url=url) as session:
        found = SqlServiceStore(session).get_services(
            start_date=date(2021, 4, 22),
            end_date=date(2021, 4, 22),
            sigla="198",
            type="riparazione",
            pieces=1,
            include_archived=True,
        )

    assert len(found) == 1
    assert found[0].type is ServiceType.RIPARAZIONE
    assert found[0].amount == pytest.approx(5.0)


def test_commit_twice_imports_once(tmp_path: Path, data_dir: Path):
    url = bootstrap_sqlite_db(tmp_path / "services.sqlite")
    opts = ImportOptions(dry_run=False)

    with session_scope(database_url=url) as session:
        first = run_import(
            data_dir / "services_2020_2021.tsv", "tab", options=opts, store=SqlServiceStore(session)
        )
    with session_scope(database_url=url) as session:
        second = run_import(
            data_dir / "services_2020_2021.tsv", "tab", options=opts, store=SqlServiceStore(session)
        )

    assert (first.imported, first.skipped) == (8, 0)
    assert (second.imported, second.skipped) == (0, 8)
    assert count_services(url) == 8


def test_imported_rows_carry_archive_fields(tmp_path: Path, data_dir: Path):
    url = bootstrap_sqlite_db(tmp_path / "services.sqlite")

    with session_scope(database_url=url) as session:
        run_import(
            data_dir / "services_export_2025.txt",
            "space",
            options=ImportOptions(dry_run=False),
            store=SqlServiceStore(session),
        )
    with session_scope(database_url=url) as session:
        store = SqlServiceStore(session)
        live = store.get_services(start_date=date(2024, 1, 1), end_date=date(2025, 12, 31))
        rows = store.get_services(
            start_date=date(2024, 1, 1), end_date=date(2025, 12, 31), include_archived=True
        )

    # Historical imports never show up as live services.
    assert live == []
    by_sigla = {r.sigla: r for r in rows}
    assert set(by_sigla) == {"177", "140", "121", "160"}
    assert by_sigla["160"].archived_year == 2024
    assert by_sigla["160"].notes == "kit"
    assert all(r.status == "paid" for r in rows)


def test_existing_row_within_tolerance_is_skipped(tmp_path: Path, data_dir: Path):
    url = bootstrap_sqlite_db(tmp_path / "services.sqlite")
    seed_service(url, on=date(2020, 2, 6), sigla="97", type="siglatura", amount=0.405)

    with session_scope(database_url=url) as session:
        report = run_import(
            data_dir / "services_2020_2021.tsv",
            "tab",
            options=ImportOptions(dry_run=False),
            store=SqlServiceStore(session),
        )

    assert (report.imported, report.skipped) == (7, 1)
    assert count_services(url) == 8


def test_failed_insert_raises_storage_error(tmp_path: Path, import_time):
    url = f"sqlite+pysqlite:///{tmp_path / 'empty.sqlite'}"
    get_engine(database_url=url)  # no tables created
    record = CanonicalRecord(
        date=date(2020, 2, 6),
        sigla="97",
        pieces=1,
        type=ServiceType.SIGLATURA,
        amount=0.4,
        archived_at=import_time,
    )

    with session_scope(database_url=url) as session:
        with pytest.raises(StorageWriteError):
            SqlServiceStore(session).create_service(record)


def test_engine_is_bound_to_one_database(tmp_path: Path):
    bootstrap_sqlite_db(tmp_path / "a.sqlite")

    with pytest.raises(DatabaseNotConfigured):
        get_engine(database_url=f"sqlite+pysqlite:///{tmp_path / 'b.sqlite'}")
