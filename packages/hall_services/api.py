"""Request-level entry point for historical imports.

:func:`handle_import_request` implements the import request contract without
tying it to a web framework: it takes the format name and the decoded JSON
body and returns ``(status_code, payload)``. Route wiring lives in the host
application.

Body fields:

- ``dryRun`` (bool, default ``true``; ``null`` counts as absent)
- ``filePath`` (str, optional; defaults to the format's configured file)
- ``duplicateTolerance`` (finite number >= 0, optional)
- ``duplicatePolicy`` (``"skip"`` | ``"allow"``, optional)
- ``amountIsTotal`` (bool, optional; overrides the format default)

Statuses: 200 on success, 400 for a malformed request, 404 when the source
file is unavailable, 503 when a commit has no database to write to.

:func:`handle_status_request` serves the read-only reconciliation status of
the stored services.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from .duplicates import DuplicatePolicy
from .errors import SourceUnavailableError, UnknownFormatError
from .executor import ImportOptions, run_import
from .ingest.formats import get_format
from .ingest.utils import read_source
from .logging_setup import get_logger
from .persistence import ServiceStore, SqlServiceStore
from .reconciliation import reconciliation_status
from .settings import ImportSettings, load_settings

logger = get_logger(__name__)


class BadRequest(ValueError):
    pass


def _bool_field(body: Mapping[str, Any], key: str, default: bool | None) -> bool | None:
    # An explicit null means "not given", same as an absent key.
    value = body.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise BadRequest(f"{key} must be a boolean")


def _options_from_body(body: Mapping[str, Any], settings: ImportSettings) -> ImportOptions:
    overrides: dict[str, Any] = {"dry_run": _bool_field(body, "dryRun", True)}

    amount_is_total = _bool_field(body, "amountIsTotal", None)
    if amount_is_total is not None:
        overrides["amount_is_total"] = amount_is_total

    if body.get("duplicateTolerance") is not None:
        tol = body["duplicateTolerance"]
        if (
            isinstance(tol, bool)
            or not isinstance(tol, int | float)
            or not math.isfinite(tol)
            or tol < 0
        ):
            raise BadRequest("duplicateTolerance must be a finite, non-negative number")
        overrides["duplicate_tolerance"] = float(tol)

    if body.get("duplicatePolicy") is not None:
        try:
            overrides["duplicate_policy"] = DuplicatePolicy(str(body["duplicatePolicy"]))
        except ValueError:
            raise BadRequest(
                f"duplicatePolicy must be one of {[p.value for p in DuplicatePolicy]}"
            ) from None

    return ImportOptions.from_settings(settings, **overrides)


def handle_import_request(
    fmt: str,
    body: Mapping[str, Any] | None = None,
    *,
    store: ServiceStore | None = None,
    database_url: str | None = None,
    settings: ImportSettings | None = None,
) -> tuple[int, dict[str, Any]]:
    """Run an import for ``fmt`` and return ``(status_code, payload)``.

    When ``store`` is ``None`` and the request commits, a session on the shared
    database (``database_url`` or ``DATABASE_URL``) backs a
    :class:`SqlServiceStore`. Dry runs never touch the database.
    """

    body = body or {}
    if not isinstance(body, Mapping):
        return 400, {"error": "request body must be a JSON object"}
    settings = settings or load_settings()

    try:
        profile = get_format(fmt)
        options = _options_from_body(body, settings)
        file_path = body.get("filePath")
        if file_path is not None and not isinstance(file_path, str):
            raise BadRequest("filePath must be a string")
    except (UnknownFormatError, BadRequest) as exc:
        return 400, {"error": str(exc)}

    path = Path(file_path) if file_path else settings.default_path(profile.name)
    logger.info("Import requested: format=%s path=%s dryRun=%s", profile.name, path, options.dry_run)

    try:
        if options.dry_run or store is not None:
            report = run_import(path, profile, options=options, store=store)
            return 200, report.to_response()

        # A missing file is a 404 even when no database is configured.
        read_source(path)
        # Local import keeps dry runs free of database setup.
        from db.client import DatabaseNotConfigured, session_scope

        try:
            with session_scope(database_url=database_url) as session:
                report = run_import(
                    path, profile, options=options, store=SqlServiceStore(session)
                )
        except DatabaseNotConfigured as exc:
            logger.error("Import aborted: %s", exc)
            return 503, {"error": str(exc)}
    except SourceUnavailableError as exc:
        return 404, {"error": str(exc)}

    return 200, report.to_response()


def handle_status_request(
    *,
    store: ServiceStore | None = None,
    database_url: str | None = None,
) -> tuple[int, dict[str, Any]]:
    """Report stored amounts against the price list; read-only."""

    if store is not None:
        return 200, reconciliation_status(store).to_response()

    from db.client import DatabaseNotConfigured, session_scope

    try:
        with session_scope(database_url=database_url) as session:
            status = reconciliation_status(SqlServiceStore(session))
    except DatabaseNotConfigured as exc:
        return 503, {"error": str(exc)}
    except SQLAlchemyError as exc:
        logger.error("Reconciliation status failed: %s", exc)
        return 500, {"error": "failed to read services", "details": str(exc)}
    return 200, status.to_response()


__all__ = ["BadRequest", "handle_import_request", "handle_status_request"]
