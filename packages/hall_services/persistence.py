# ruff: noqa: I001
"""Storage collaborator for the import pipeline.

The executor only depends on the :class:`ServiceStore` protocol: a filtered
read used for duplicate detection and a single-record create. The concrete
:class:`SqlServiceStore` writes to the ``services`` table owned by
``libs/db`` through a SQLAlchemy session supplied by the caller.

Each ``create_service`` call commits on its own so that one failing insert
never rolls back records imported earlier in the same run.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.services import Service
from .errors import StorageWriteError
from .logging_setup import get_logger
from .models import CanonicalRecord

logger = get_logger(__name__)


class ServiceStore(Protocol):
    def get_services(
        self,
        *,
        start_date: date,
        end_date: date,
        sigla: str | None = None,
        type: str | None = None,
        pieces: int | None = None,
        include_archived: bool = False,
    ) -> list[CanonicalRecord]: ...

    def create_service(self, record: CanonicalRecord) -> CanonicalRecord: ...


def _to_row(record: CanonicalRecord) -> Service:
    return Service(
        date=record.date,
        sigla=record.sigla,
        pieces=record.pieces,
        type=str(record.type),
        amount=record.amount,
        status=record.status,
        payment_method=None,
        notes=record.notes,
        archived_year=record.archived_year,
        archived_at=record.archived_at,
    )


def _from_row(row: Service) -> CanonicalRecord:
    return CanonicalRecord(
        date=row.date,
        sigla=row.sigla,
        pieces=row.pieces,
        type=row.type,
        amount=row.amount,
        # Live (non-archived) rows have no archive stamp; fall back to creation.
        archived_at=row.archived_at or row.created_at,
        notes=row.notes,
        status=row.status,
    )


class SqlServiceStore:
    """:class:`ServiceStore` backed by the shared ``services`` table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_services(
        self,
        *,
        start_date: date,
        end_date: date,
        sigla: str | None = None,
        type: str | None = None,
        pieces: int | None = None,
        include_archived: bool = False,
    ) -> list[CanonicalRecord]:
        stmt = select(Service).where(Service.date >= start_date, Service.date <= end_date)
        if sigla is not None:
            stmt = stmt.where(Service.sigla == sigla)
        if type is not None:
            stmt = stmt.where(Service.type == str(type))
        if pieces is not None:
            stmt = stmt.where(Service.pieces == pieces)
        if not include_archived:
            stmt = stmt.where(Service.archived_year.is_(None))
        rows = self._session.execute(stmt.order_by(Service.id)).scalars().all()
        return [_from_row(r) for r in rows]

    def create_service(self, record: CanonicalRecord) -> CanonicalRecord:
        row = _to_row(record)
        self._session.add(row)
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.warning("Insert failed for %s on %s: %s", record.sigla, record.date, exc)
            raise StorageWriteError(str(exc)) from exc
        return _from_row(row)


__all__ = ["ServiceStore", "SqlServiceStore"]
