"""Registry of supported legacy source formats.

Each :class:`FormatProfile` pairs a parser with the explicit
``amount_is_total`` flag: the historical sources disagree on whether the
amount column is a per-piece price or the total charged for all pieces, so
the flag is declared per format instead of inferred.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..errors import UnknownFormatError
from ..models import ParseResult
from .adapters import space_delimited, structured_rows, tab_delimited


@dataclass(frozen=True, slots=True)
class FormatProfile:
    name: str
    parse: Callable[[str], ParseResult]
    amount_is_total: bool
    description: str = ""


FORMATS: Mapping[str, FormatProfile] = MappingProxyType(
    {
        "tab": FormatProfile(
            name="tab",
            parse=tab_delimited.parse,
            amount_is_total=True,
            description="Tab-separated spreadsheet paste (DD/MM/YYYY, € totals)",
        ),
        "space": FormatProfile(
            name="space",
            parse=space_delimited.parse,
            amount_is_total=False,
            description="Whitespace-separated services table dump (per-piece amounts)",
        ),
        "structured": FormatProfile(
            name="structured",
            parse=structured_rows.parse,
            amount_is_total=True,
            description="Rows recovered from the PDF registers (JSON or text lines)",
        ),
    }
)

# Names used by the old import endpoints.
_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "tsv": "tab",
        "new-tsv": "tab",
        "database-export": "space",
        "db-export": "space",
        "pdf": "structured",
        "rows": "structured",
    }
)


def get_format(name: str) -> FormatProfile:
    key = (name or "").strip().lower().replace("_", "-")
    key = _ALIASES.get(key, key)
    try:
        return FORMATS[key]
    except KeyError:
        raise UnknownFormatError(
            f"unknown import format: {name!r}. Allowed: {sorted(FORMATS)}"
        ) from None


__all__ = ["FORMATS", "FormatProfile", "get_format"]
