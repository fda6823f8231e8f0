"""Line handling shared by the format adapters.

Each adapter supplies a ``parse_line(line_no, line)`` callable that returns a
:class:`~hall_services.models.RawRecord`, returns ``None`` for a line that is
intentionally dropped (test records), or raises
:class:`~hall_services.errors.LineParseError`. :func:`parse_lines` drives the
loop so that all formats share the same fail-soft contract.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import date, datetime

from ...errors import LineParseError
from ...logging_setup import get_logger
from ...models import ParseResult, RawRecord

logger = get_logger(__name__)

type LineParser = Callable[[int, str], RawRecord | None]

_COMPACT_DATE_RE = re.compile(r"^\d{8}$")


@dataclass(frozen=True, slots=True)
class SentinelFilter:
    """Recognizes siglas that belong to test records rather than students."""

    sentinels: frozenset[str] = frozenset({"TS00"})
    markers: tuple[str, ...] = ("TEST",)

    def matches(self, sigla: str) -> bool:
        s = sigla.strip().upper()
        if s in {v.upper() for v in self.sentinels}:
            return True
        return any(m.upper() in s for m in self.markers)


DEFAULT_EXCLUSION = SentinelFilter()


def iter_lines(content: str) -> Iterator[tuple[int, str]]:
    """Yield ``(line_no, line)`` for non-blank lines, numbered from 1."""

    for idx, line in enumerate(content.splitlines(), start=1):
        if line.strip():
            yield idx, line


def parse_lines(content: str, parse_line: LineParser) -> ParseResult:
    records: list[RawRecord] = []
    errors: list[str] = []
    for line_no, line in iter_lines(content):
        try:
            record = parse_line(line_no, line)
        except LineParseError as exc:
            errors.append(str(exc))
            continue
        if record is not None:
            records.append(record)
    return ParseResult(records=tuple(records), errors=tuple(errors))


def parse_day_month_year(text: str) -> date | None:
    """Parse ``DD/MM/YYYY`` (one-digit day/month allowed) or ``DDMMYYYY``.

    Returns ``None`` for anything that is not a real calendar date, so
    ``31/02/2021`` and ``00/13/2020`` are rejected.
    """

    s = re.sub(r"\s+", "", text or "")
    if not s:
        return None
    fmt = "%d%m%Y" if _COMPACT_DATE_RE.match(s) else "%d/%m/%Y"
    try:
        return datetime.strptime(s, fmt).date()
    except ValueError:
        return None


def is_excluded(sigla: str, line_no: int, exclude: SentinelFilter) -> bool:
    if exclude.matches(sigla):
        logger.debug("Skipping test record on line %d: %s", line_no, sigla)
        return True
    return False


__all__ = [
    "DEFAULT_EXCLUSION",
    "LineParser",
    "SentinelFilter",
    "is_excluded",
    "iter_lines",
    "parse_day_month_year",
    "parse_lines",
]
