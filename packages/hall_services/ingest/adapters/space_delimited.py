"""Adapter for the whitespace-separated dump of the previous ``services`` table.

Row layout::

    <id> YYYY-MM-DD HH:MM:SS.mmm <sigla> <pieces> <type> <amount> <status> [notes...]

Example: ``2 2025-04-29 00:00:00.000 177 1 siglatura 0.5 paid``

The timestamp spans two whitespace tokens and is rejoined before parsing.
Everything after ``status`` is free-text notes. Amounts in this dump are
already per piece. The exported ``status`` is ignored: every historical
import is stored as paid.
"""

from __future__ import annotations

from datetime import datetime
from functools import partial

from ...errors import LineParseError
from ...models import ParseResult, RawRecord
from .common import DEFAULT_EXCLUSION, SentinelFilter, is_excluded, parse_lines

MIN_TOKENS = 8


def parse_line(
    line_no: int, line: str, *, exclude: SentinelFilter = DEFAULT_EXCLUSION
) -> RawRecord | None:
    parts = line.split()
    if len(parts) < MIN_TOKENS:
        raise LineParseError(line_no, f"insufficient columns ({len(parts)})")

    id_text, date_text, time_text, sigla, pieces, type_text, amount_text, _status, *notes = parts

    if is_excluded(sigla, line_no, exclude):
        return None

    try:
        int(id_text)
    except ValueError:
        raise LineParseError(line_no, f"invalid ID {id_text!r}") from None

    stamp = f"{date_text} {time_text}"
    try:
        parsed = datetime.fromisoformat(stamp)
    except ValueError:
        raise LineParseError(line_no, f"invalid datetime {stamp!r}") from None

    return RawRecord(
        line_no=line_no,
        date=parsed.date(),
        sigla=sigla,
        pieces=pieces,
        type=type_text,
        amount=amount_text,
        notes=" ".join(notes) or None,
    )


def parse(content: str, *, exclude: SentinelFilter = DEFAULT_EXCLUSION) -> ParseResult:
    """Parse a space-delimited dump into raw records and line errors."""

    return parse_lines(content, partial(parse_line, exclude=exclude))


__all__ = ["MIN_TOKENS", "parse", "parse_line"]
