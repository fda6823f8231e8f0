"""Import job orchestration: parse → normalize → resolve → report | persist.

A job moves through::

    pending → parsing → normalizing → dry_run_complete → completed
                                    ↘ committing       → completed
    parsing → failed   (source file missing or unreadable)

Only the source read can fail the job. Malformed lines, unmapped types,
invalid values and failed inserts are recorded in the report and the run
continues, so every surviving input line ends up imported, skipped or in the
error list.

Commit runs in the same process are serialized by a module-level lock: the
duplicate lookup and the insert are separate storage calls, and two
overlapping runs could otherwise both miss each other's rows.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from os import PathLike
from typing import Any

from .duplicates import DEFAULT_TOLERANCE, DuplicatePolicy, DuplicateResolver
from .errors import SourceUnavailableError
from .ingest.formats import FormatProfile, get_format
from .ingest.utils import load_raw_records
from .logging_setup import get_logger
from .models import CanonicalRecord
from .normalizers import RecordNormalizer
from .persistence import ServiceStore
from .reporting import ErrorCollector, ImportReport
from .settings import ImportSettings

logger = get_logger(__name__)

_COMMIT_LOCK = threading.Lock()


class JobState(StrEnum):
    PENDING = "pending"
    PARSING = "parsing"
    NORMALIZING = "normalizing"
    DRY_RUN_COMPLETE = "dry_run_complete"
    COMMITTING = "committing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ImportOptions:
    """Per-job knobs.

    ``amount_is_total`` overrides the format's own flag when not ``None``.
    ``error_limit``/``dry_run_error_limit`` bound the errors kept in the
    report (``None`` keeps all); the total count is always reported.
    """

    dry_run: bool = True
    duplicate_tolerance: float = DEFAULT_TOLERANCE
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.SKIP
    amount_is_total: bool | None = None
    error_limit: int | None = 10
    dry_run_error_limit: int | None = 200
    sample_size: int = 5
    progress_every: int = 50

    def __post_init__(self) -> None:
        if not isinstance(self.dry_run, bool):
            raise TypeError(f"dry_run must be a bool, got {self.dry_run!r}")
        if not math.isfinite(self.duplicate_tolerance) or self.duplicate_tolerance < 0:
            raise ValueError(
                f"duplicate_tolerance must be finite and >= 0, got {self.duplicate_tolerance}"
            )

    @classmethod
    def from_settings(cls, settings: ImportSettings, **overrides: Any) -> ImportOptions:
        base = cls(
            duplicate_tolerance=settings.duplicate_tolerance,
            error_limit=settings.error_limit,
            dry_run_error_limit=settings.dry_run_error_limit,
            sample_size=settings.sample_size,
            progress_every=settings.progress_every,
        )
        return replace(base, **overrides)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ImportJob:
    """One import of one source file.

    A job runs once; build a new one to import again.
    """

    def __init__(
        self,
        path: str | PathLike[str],
        fmt: str | FormatProfile,
        *,
        options: ImportOptions | None = None,
        store: ServiceStore | None = None,
        normalizer: RecordNormalizer | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.path = path
        self.profile = fmt if isinstance(fmt, FormatProfile) else get_format(fmt)
        self.options = options or ImportOptions()
        if not self.options.dry_run and store is None:
            raise ValueError("a store is required when dry_run is False")
        self._store = store
        self._normalizer = normalizer or RecordNormalizer()
        self._clock = clock
        self.state = JobState.PENDING

    @property
    def amount_is_total(self) -> bool:
        if self.options.amount_is_total is not None:
            return self.options.amount_is_total
        return self.profile.amount_is_total

    def run(self) -> ImportReport:
        if self.state is not JobState.PENDING:
            raise RuntimeError(f"import job already ran (state={self.state})")
        opts = self.options

        self.state = JobState.PARSING
        try:
            parsed = load_raw_records(self.path, self.profile)
        except SourceUnavailableError as exc:
            self.state = JobState.FAILED
            logger.error("Import aborted: %s", exc)
            raise
        logger.info(
            "Parsed %d records (%d line errors) from %s [%s]",
            len(parsed.records),
            len(parsed.errors),
            self.path,
            self.profile.name,
        )

        errors = ErrorCollector(opts.dry_run_error_limit if opts.dry_run else opts.error_limit)
        errors.extend(parsed.errors)

        self.state = JobState.NORMALIZING
        records, mapping_errors = self._normalizer.normalize_all(
            parsed.records,
            amount_is_total=self.amount_is_total,
            archived_at=self._clock(),
        )
        errors.extend(mapping_errors)

        report = ImportReport(
            dry_run=opts.dry_run,
            records=tuple(records),
            errors=errors,
            sample_size=opts.sample_size,
        )

        if opts.dry_run:
            self.state = JobState.DRY_RUN_COMPLETE
            logger.info(
                "Dry run: %d services would be imported, %d errors",
                report.total_services,
                errors.total,
            )
            self.state = JobState.COMPLETED
            return report

        store = self._store
        if store is None:
            self.state = JobState.FAILED
            raise RuntimeError("commit requested without a store")
        self.state = JobState.COMMITTING
        with _COMMIT_LOCK:
            self._commit(store, report.records, report)
        self.state = JobState.COMPLETED
        logger.info(
            "Import finished: %d imported, %d skipped, %d errors",
            report.imported,
            report.skipped,
            errors.total,
        )
        return report

    def _commit(
        self,
        store: ServiceStore,
        records: Sequence[CanonicalRecord],
        report: ImportReport,
    ) -> None:
        opts = self.options
        resolver = DuplicateResolver(store, tolerance=opts.duplicate_tolerance)

        for pos, record in enumerate(records, start=1):
            try:
                if opts.duplicate_policy == DuplicatePolicy.SKIP and resolver.is_duplicate(record):
                    report.skipped += 1
                    logger.debug(
                        "Skipped duplicate: %s %s %s", record.sigla, record.type, record.date
                    )
                    continue
                store.create_service(record)
            except Exception as exc:  # one failing record must not abort the batch
                msg = f"Service {pos} ({record.sigla}, line {record.source_line}): {exc}"
                report.errors.add(msg)
                logger.warning("Import error: %s", msg)
                continue

            report.imported += 1
            if opts.progress_every and report.imported % opts.progress_every == 0:
                logger.info("Progress: %d services imported", report.imported)


def run_import(
    path: str | PathLike[str],
    fmt: str | FormatProfile,
    *,
    options: ImportOptions | None = None,
    store: ServiceStore | None = None,
    normalizer: RecordNormalizer | None = None,
) -> ImportReport:
    """Build and run a single :class:`ImportJob`."""

    job = ImportJob(path, fmt, options=options, store=store, normalizer=normalizer)
    return job.run()


__all__ = [
    "ImportJob",
    "ImportOptions",
    "JobState",
    "run_import",
]
