"""Ingest utilities shared by the executor, the request handler and the CLI.

Reading the source file is the only fatal step of an import: any failure to
open or decode it raises :class:`~hall_services.errors.SourceUnavailableError`
before a single line is parsed.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from ..errors import SourceUnavailableError
from ..models import ParseResult
from .formats import FormatProfile, get_format


def read_source(path: str | PathLike[str]) -> str:
    """Return the decoded text of ``path`` (UTF-8, BOM tolerated)."""

    p = Path(path)
    try:
        return p.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        raise SourceUnavailableError(str(p), "file not found") from None
    except IsADirectoryError:
        raise SourceUnavailableError(str(p), "is a directory") from None
    except PermissionError:
        raise SourceUnavailableError(str(p), "permission denied") from None
    except UnicodeDecodeError as exc:
        raise SourceUnavailableError(str(p), f"not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise SourceUnavailableError(str(p), exc.strerror or str(exc)) from exc


def load_raw_records(path: str | PathLike[str], fmt: str | FormatProfile) -> ParseResult:
    """Read ``path`` and parse it with the parser registered for ``fmt``."""

    profile = fmt if isinstance(fmt, FormatProfile) else get_format(fmt)
    return profile.parse(read_source(path))


__all__ = ["load_raw_records", "read_source"]
