"""Adapter for rows recovered from the printed PDF registers.

Two inputs are accepted:

- A JSON array of row objects::

      [{"date": "22/04/2021", "sigla": "198", "pieces": 1,
        "type": "bottone", "amount": "€ 0,40", "notes": "..."}]

- Plain text extracted from the PDF, one service per line::

      06/02/2020 97 1 Siglatura € 0,40

  The service type may span several words; the amount starts at the first
  token carrying ``€`` or a decimal number. Column headers and the form's
  instruction lines repeated on every page are skipped.

In both cases the amount is the total for all pieces.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from functools import partial
from typing import Any

from ...errors import LineParseError
from ...models import ParseResult, RawRecord
from .common import (
    DEFAULT_EXCLUSION,
    SentinelFilter,
    is_excluded,
    parse_day_month_year,
    parse_lines,
)

# Fragments of page headers printed on every sheet of the register.
HEADER_MARKERS: tuple[str, ...] = (
    "Informazioni",
    "cronologiche",
    "SIGLA",
    "N. pezzi",
    "Tipologia lavoro",
    "Tot. dovuto",
    "es: 0,40; 1,20",
)

_PDF_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")
_DECIMAL_RE = re.compile(r"\d+[,.]\d+")
_DIGIT_RE = re.compile(r"\d")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_row(
    position: int, row: Any, *, exclude: SentinelFilter = DEFAULT_EXCLUSION
) -> RawRecord | None:
    """Validate one row object; ``position`` is its 1-based index."""

    if not isinstance(row, Mapping):
        raise LineParseError(position, "row is not an object")

    sigla = _text(row.get("sigla"))
    if is_excluded(sigla, position, exclude):
        return None
    if not sigla:
        raise LineParseError(position, "missing sigla")

    raw_date = row.get("date")
    parsed: date | None
    if isinstance(raw_date, datetime):
        parsed = raw_date.date()
    elif isinstance(raw_date, date):
        parsed = raw_date
    else:
        parsed = parse_day_month_year(_text(raw_date))
    if parsed is None:
        raise LineParseError(position, f"invalid date {raw_date!r}")

    return RawRecord(
        line_no=position,
        date=parsed,
        sigla=sigla,
        pieces=_text(row.get("pieces")),
        type=_text(row.get("type")),
        amount=_text(row.get("amount")),
        notes=_text(row.get("notes")) or None,
    )


def parse_rows(
    rows: Iterable[Any], *, exclude: SentinelFilter = DEFAULT_EXCLUSION
) -> ParseResult:
    """Parse already-structured rows (e.g. decoded JSON) into raw records."""

    records: list[RawRecord] = []
    errors: list[str] = []
    for position, row in enumerate(rows, start=1):
        try:
            record = parse_row(position, row, exclude=exclude)
        except LineParseError as exc:
            errors.append(str(exc))
            continue
        if record is not None:
            records.append(record)
    return ParseResult(records=tuple(records), errors=tuple(errors))


def _is_header(line: str) -> bool:
    return any(marker in line for marker in HEADER_MARKERS)


def parse_pdf_line(
    line_no: int, line: str, *, exclude: SentinelFilter = DEFAULT_EXCLUSION
) -> RawRecord | None:
    clean = line.replace("→", " ").strip()
    if _is_header(clean):
        return None

    parts = clean.split()
    if len(parts) < 5:
        raise LineParseError(line_no, f"insufficient columns ({len(parts)})")

    date_text, sigla, pieces, *tail = parts
    if is_excluded(sigla, line_no, exclude):
        return None
    if not _PDF_DATE_RE.match(date_text):
        raise LineParseError(line_no, f"invalid date {date_text!r}")
    parsed = parse_day_month_year(date_text)
    if parsed is None:
        raise LineParseError(line_no, f"invalid date {date_text!r}")

    amount_idx = next(
        (i for i, tok in enumerate(tail) if "€" in tok or _DECIMAL_RE.search(tok)),
        None,
    )
    if amount_idx is None:
        raise LineParseError(line_no, "no total amount found")
    type_text = " ".join(tail[:amount_idx])
    if not type_text:
        raise LineParseError(line_no, "missing service type")

    # "€ 0,40" spans two tokens; anything after the number is a note.
    end = amount_idx
    while end < len(tail) and not _DIGIT_RE.search(tail[end]):
        end += 1
    amount_text = " ".join(tail[amount_idx : end + 1])
    notes = " ".join(tail[end + 1 :]) or None

    return RawRecord(
        line_no=line_no,
        date=parsed,
        sigla=sigla,
        pieces=pieces,
        type=type_text,
        amount=amount_text,
        notes=notes,
    )


def parse(content: str, *, exclude: SentinelFilter = DEFAULT_EXCLUSION) -> ParseResult:
    """Parse a JSON array of rows, or PDF-extracted text lines."""

    if content.lstrip().startswith("["):
        try:
            rows = json.loads(content)
        except json.JSONDecodeError as exc:
            return ParseResult(errors=(f"Line {exc.lineno}: invalid JSON ({exc.msg})",))
        if not isinstance(rows, list):
            return ParseResult(errors=("Line 1: expected a JSON array of rows",))
        return parse_rows(rows, exclude=exclude)
    return parse_lines(content, partial(parse_pdf_line, exclude=exclude))


__all__ = [
    "HEADER_MARKERS",
    "parse",
    "parse_pdf_line",
    "parse_row",
    "parse_rows",
]
