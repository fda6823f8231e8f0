"""Environment-driven settings for import jobs.

All values have working defaults; entry points load a local ``.env`` first
(see ``cli.py``) so these variables can live there.

``HALL_IMPORT_DATA_DIR``           directory holding the default source files
``HALL_IMPORT_TAB_FILE``           default file for the ``tab`` format
``HALL_IMPORT_SPACE_FILE``         default file for the ``space`` format
``HALL_IMPORT_STRUCTURED_FILE``    default file for the ``structured`` format
``HALL_IMPORT_DUPLICATE_TOLERANCE`` amount tolerance for duplicates (0.01)
``HALL_IMPORT_ERROR_LIMIT``        errors surfaced by a commit run (10)
``HALL_IMPORT_DRY_RUN_ERROR_LIMIT`` errors surfaced by a dry run (200)
``HALL_IMPORT_SAMPLE_SIZE``        sample records in a dry-run response (5)
``HALL_IMPORT_PROGRESS_EVERY``     log progress every N imported records (50)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from .duplicates import DEFAULT_TOLERANCE
from .logging_setup import get_logger

logger = get_logger(__name__)

_DEFAULT_FILES: Mapping[str, str] = MappingProxyType(
    {
        "tab": "services_tab.tsv",
        "space": "services_export.txt",
        "structured": "services_pdf.txt",
    }
)


@dataclass(frozen=True, slots=True)
class ImportSettings:
    data_dir: Path = Path("attached_assets")
    default_files: Mapping[str, str] = field(default_factory=lambda: _DEFAULT_FILES)
    duplicate_tolerance: float = DEFAULT_TOLERANCE
    error_limit: int = 10
    dry_run_error_limit: int = 200
    sample_size: int = 5
    progress_every: int = 50

    def default_path(self, fmt: str) -> Path:
        return self.data_dir / self.default_files[fmt]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default
    if value < 0:
        logger.warning("Ignoring %s=%r: must be >= 0", name, raw)
        return default
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value < 0:
        logger.warning("Ignoring %s=%r: must be >= 0", name, raw)
        return default
    return value


def load_settings() -> ImportSettings:
    """Build :class:`ImportSettings` from the current environment."""

    files = {
        fmt: os.getenv(f"HALL_IMPORT_{fmt.upper()}_FILE") or name
        for fmt, name in _DEFAULT_FILES.items()
    }
    return ImportSettings(
        data_dir=Path(os.getenv("HALL_IMPORT_DATA_DIR") or "attached_assets"),
        default_files=MappingProxyType(files),
        duplicate_tolerance=_env_float("HALL_IMPORT_DUPLICATE_TOLERANCE", DEFAULT_TOLERANCE),
        error_limit=_env_int("HALL_IMPORT_ERROR_LIMIT", 10),
        dry_run_error_limit=_env_int("HALL_IMPORT_DRY_RUN_ERROR_LIMIT", 200),
        sample_size=_env_int("HALL_IMPORT_SAMPLE_SIZE", 5),
        progress_every=_env_int("HALL_IMPORT_PROGRESS_EVERY", 50),
    )


__all__ = ["ImportSettings", "load_settings"]
