# ruff: noqa: I001
"""CLI for the ``hall_services`` historical import.

Environment variables (``DATABASE_URL``, ``HALL_IMPORT_*``) are loaded from a
local ``.env`` using ``python-dotenv`` before delegating to the request
handlers in :mod:`hall_services.api`. Commands print the JSON response to
stdout; errors go to stderr with a non-zero exit status.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv

from .api import handle_import_request, handle_status_request
from .ingest.formats import FORMATS
from .logging_setup import configure_logging

app = typer.Typer(add_completion=False, help="Historical services import tools.")


@app.callback()
def _main(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (default: HALL_SERVICES_LOG_LEVEL or INFO)."),
    ] = None,
) -> None:
    load_dotenv()
    configure_logging(log_level)


def _finite_tolerance(value: float | None) -> float | None:
    if value is not None and (not math.isfinite(value) or value < 0):
        raise typer.BadParameter("must be a finite number >= 0")
    return value


def _emit(status: int, payload: dict[str, Any]) -> None:
    if status != 200:
        typer.echo(f"Error: {payload.get('error')}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command("import")
def import_services(
    fmt: Annotated[str, typer.Argument(help=f"Source format: {', '.join(FORMATS)}.")],
    path: Annotated[
        Path | None,
        typer.Argument(help="Source file; defaults to the configured file for the format."),
    ] = None,
    commit: Annotated[
        bool,
        typer.Option("--commit/--dry-run", help="Write to the database instead of reporting."),
    ] = False,
    database_url: Annotated[
        str | None, typer.Option("--database-url", help="Overrides DATABASE_URL.")
    ] = None,
    tolerance: Annotated[
        float | None,
        typer.Option(
            "--tolerance", callback=_finite_tolerance, help="Duplicate amount tolerance."
        ),
    ] = None,
    policy: Annotated[
        str | None, typer.Option("--policy", help="Duplicate policy: skip or allow.")
    ] = None,
    amount_is_total: Annotated[
        bool | None,
        typer.Option(
            "--amount-is-total/--amount-per-piece",
            help="Override whether the source amount is the total for all pieces.",
        ),
    ] = None,
) -> None:
    """Parse a legacy export and report (dry run) or import it."""

    body: dict[str, Any] = {"dryRun": not commit}
    if path is not None:
        body["filePath"] = str(path)
    if tolerance is not None:
        body["duplicateTolerance"] = tolerance
    if policy is not None:
        body["duplicatePolicy"] = policy
    if amount_is_total is not None:
        body["amountIsTotal"] = amount_is_total

    _emit(*handle_import_request(fmt, body, database_url=database_url))


@app.command("status")
def ledger_status(
    database_url: Annotated[
        str | None, typer.Option("--database-url", help="Overrides DATABASE_URL.")
    ] = None,
) -> None:
    """Compare stored amounts with the price list (read-only)."""

    _emit(*handle_status_request(database_url=database_url))


if __name__ == "__main__":  # pragma: no cover
    app()
