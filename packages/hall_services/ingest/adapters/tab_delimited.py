"""Adapter for the tab-separated ledger pasted from the old spreadsheet.

Row layout (one service per line)::

    DD/MM/YYYY <TAB> sigla <TAB> <blank> <TAB> pieces <TAB> type <TAB> amount

Example: ``06/02/2020\\t97\\t\\t1\\tSiglatura\\t€ 0,40``

- At least 5 columns are required; a missing amount column reads as ``0``.
- The date may also appear compacted as ``DDMMYYYY``.
- The amount is the total charged for all pieces, with a ``€`` symbol and a
  comma decimal separator.
"""

from __future__ import annotations

from functools import partial

from ...errors import LineParseError
from ...models import ParseResult, RawRecord
from .common import (
    DEFAULT_EXCLUSION,
    SentinelFilter,
    is_excluded,
    parse_day_month_year,
    parse_lines,
)

MIN_COLUMNS = 5


def parse_line(
    line_no: int, line: str, *, exclude: SentinelFilter = DEFAULT_EXCLUSION
) -> RawRecord | None:
    columns = [c.strip() for c in line.rstrip("\r\n").split("\t")]
    if len(columns) < MIN_COLUMNS:
        raise LineParseError(line_no, f"insufficient columns ({len(columns)})")

    date_text, sigla, _blank, pieces, type_text, *rest = columns
    amount_text = rest[0] if rest and rest[0] else "0"

    if is_excluded(sigla, line_no, exclude):
        return None
    if not sigla:
        raise LineParseError(line_no, "missing sigla")

    parsed = parse_day_month_year(date_text)
    if parsed is None:
        raise LineParseError(line_no, f"invalid date {date_text!r}")

    return RawRecord(
        line_no=line_no,
        date=parsed,
        sigla=sigla,
        pieces=pieces,
        type=type_text,
        amount=amount_text,
    )


def parse(content: str, *, exclude: SentinelFilter = DEFAULT_EXCLUSION) -> ParseResult:
    """Parse tab-delimited ``content`` into raw records and line errors."""

    return parse_lines(content, partial(parse_line, exclude=exclude))


__all__ = ["MIN_COLUMNS", "parse", "parse_line"]
