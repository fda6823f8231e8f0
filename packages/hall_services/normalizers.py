"""Raw record → canonical record normalization.

The historical registers describe services in free text ("Siglatura",
"bottone", "riparazione zip", "siglatura + kit", the "siglaura" typo...).
:class:`RecordNormalizer` collapses those into the closed
:class:`~hall_services.models.ServiceType` set and keeps whatever detail the
enum cannot hold in ``notes``.

Matching is case-insensitive and applied in this order:

1. exact canonical name or alias → that type, no notes;
2. a repair keyword anywhere in the text → ``riparazione``, text kept as notes;
3. a siglatura spelling anywhere in the text → ``siglatura``, text kept as
   notes only for compound descriptions;
4. a compound description → the dominant type among its recognized parts,
   text kept as notes;
5. anything else raises :class:`~hall_services.errors.TypeMappingError`.

Amounts are euro strings such as ``"€ 0,40"``. When the source gives the
total for all pieces the per-piece amount is ``total / pieces``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType

from .errors import TypeMappingError, ValidationError
from .logging_setup import get_logger
from .models import CanonicalRecord, RawRecord, ServiceType

logger = get_logger(__name__)

_AMOUNT_STRIP_RE = re.compile(r"[€\s]")
# Float noise from total/pieces (1.20 / 3) is dropped past this precision.
_AMOUNT_DIGITS = 6


@dataclass(frozen=True, slots=True)
class TypeMapping:
    """Lookup tables for service type normalization (all keys lower-case)."""

    exact: Mapping[str, ServiceType]
    repair_keywords: tuple[str, ...]
    siglatura_spellings: tuple[str, ...]
    compound_separator: str = "+"
    # Highest first; decides the type of compound descriptions.
    dominance: tuple[ServiceType, ...] = (
        ServiceType.RIPARAZIONE,
        ServiceType.HAPPY_HOUR,
        ServiceType.SIGLATURA,
    )


DEFAULT_TYPE_MAPPING = TypeMapping(
    exact=MappingProxyType(
        {
            "siglatura": ServiceType.SIGLATURA,
            "happy_hour": ServiceType.HAPPY_HOUR,
            "happy hour": ServiceType.HAPPY_HOUR,
            "happy-hour": ServiceType.HAPPY_HOUR,
            "happyhour": ServiceType.HAPPY_HOUR,
            "riparazione": ServiceType.RIPARAZIONE,
            "riparazioni": ServiceType.RIPARAZIONE,
        }
    ),
    # orlo = hem, bottone = button, zip = zipper
    repair_keywords=("riparazion", "orlo", "bottone", "zip"),
    # "siglaura" is a recurring typo in the 2020-2022 registers
    siglatura_spellings=("siglatur", "siglaura"),
)


def parse_amount(text: str | None) -> float:
    """Parse a euro amount such as ``"€ 1,20"`` into a non-negative float."""

    s = _AMOUNT_STRIP_RE.sub("", text or "").replace(",", ".")
    if not s:
        raise ValidationError("amount is empty")
    try:
        value = float(s)
    except ValueError:
        raise ValidationError(f"invalid amount: {text!r}") from None
    if not math.isfinite(value):
        raise ValidationError(f"invalid amount: {text!r}")
    if value < 0:
        raise ValidationError(f"negative amount: {text!r}")
    return value


def parse_pieces(text: str | None) -> int:
    s = (text or "").strip()
    try:
        pieces = int(s)
    except ValueError:
        raise ValidationError(f"invalid pieces: {text!r}") from None
    if pieces < 1:
        raise ValidationError(f"invalid pieces: {text!r}")
    return pieces


def _merge_notes(derived: str | None, source: str | None) -> str | None:
    if derived and source:
        return f"{derived}; {source}"
    return derived or source or None


class RecordNormalizer:
    """Turn :class:`RawRecord` objects into :class:`CanonicalRecord` objects.

    The type mapping tables are injected at construction and never mutated.
    """

    def __init__(self, type_mapping: TypeMapping = DEFAULT_TYPE_MAPPING) -> None:
        self._mapping = type_mapping

    @property
    def type_mapping(self) -> TypeMapping:
        return self._mapping

    def _match_simple(self, key: str) -> ServiceType | None:
        m = self._mapping
        if key in m.exact:
            return m.exact[key]
        if any(k in key for k in m.repair_keywords):
            return ServiceType.RIPARAZIONE
        if any(s in key for s in m.siglatura_spellings):
            return ServiceType.SIGLATURA
        return None

    def map_type(self, text: str | None) -> tuple[ServiceType, str | None]:
        """Return ``(type, notes)`` for a free-text service description."""

        original = " ".join((text or "").split())
        key = original.lower()
        if not key:
            raise TypeMappingError(original)

        m = self._mapping
        if key in m.exact:
            return m.exact[key], None
        if any(k in key for k in m.repair_keywords):
            return ServiceType.RIPARAZIONE, original
        if any(s in key for s in m.siglatura_spellings):
            return ServiceType.SIGLATURA, (original if m.compound_separator in key else None)

        if m.compound_separator in key:
            found = {
                t
                for part in key.split(m.compound_separator)
                if (t := self._match_simple(part.strip())) is not None
            }
            for candidate in m.dominance:
                if candidate in found:
                    return candidate, original

        raise TypeMappingError(original)

    def normalize(
        self,
        raw: RawRecord,
        *,
        amount_is_total: bool,
        archived_at: datetime,
    ) -> CanonicalRecord:
        """Normalize one record; raises ``TypeMappingError``/``ValidationError``."""

        pieces = parse_pieces(raw.pieces)
        service_type, derived_notes = self.map_type(raw.type)
        amount = parse_amount(raw.amount)
        if amount_is_total:
            amount = round(amount / pieces, _AMOUNT_DIGITS)
        sigla = raw.sigla.strip()
        if not sigla:
            raise ValidationError("sigla is required")

        return CanonicalRecord(
            date=raw.date,
            sigla=sigla,
            pieces=pieces,
            type=service_type,
            amount=amount,
            archived_at=archived_at,
            notes=_merge_notes(derived_notes, raw.notes),
            source_line=raw.line_no,
        )

    def normalize_all(
        self,
        raws: Iterable[RawRecord],
        *,
        amount_is_total: bool,
        archived_at: datetime,
    ) -> tuple[list[CanonicalRecord], list[str]]:
        """Normalize records in order, collecting per-record failures."""

        records: list[CanonicalRecord] = []
        errors: list[str] = []
        for raw in raws:
            try:
                records.append(
                    self.normalize(raw, amount_is_total=amount_is_total, archived_at=archived_at)
                )
            except (TypeMappingError, ValidationError) as exc:
                logger.debug("Line %d rejected: %s", raw.line_no, exc)
                errors.append(f"Line {raw.line_no}: {exc}")
        return records, errors


__all__ = [
    "DEFAULT_TYPE_MAPPING",
    "RecordNormalizer",
    "TypeMapping",
    "parse_amount",
    "parse_pieces",
]
