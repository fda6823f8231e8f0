from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: services
# ---------------------------


class Service(Base):
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Day granularity only; historical sources never carry a meaningful time.
    date: Mapped[date] = mapped_column(Date, nullable=False)
    sigla: Mapped[str] = mapped_column(String, nullable=False)
    pieces: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    type: Mapped[str] = mapped_column(String, nullable=False)
    # Per-piece amount in euros.
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Set only for rows that belong to a closed (archived) year. Imports of
    # historical data always populate both columns.
    archived_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        CheckConstraint(
            "type in ('siglatura','happy_hour','riparazione')",
            name="ck_services_type",
        ),
        CheckConstraint("pieces >= 1", name="ck_services_pieces"),
        CheckConstraint("amount >= 0", name="ck_services_amount"),
        # Duplicate lookups filter on exactly these columns.
        Index("ix_services_dedupe", "date", "sigla", "type", "pieces"),
    )


__all__ = [
    "Base",
    "Service",
]
