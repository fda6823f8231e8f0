"""Pytest configuration for test isolation.

Import settings and the database URL are read from the environment, and the
shared engine in ``db.client`` is process-wide. Each test gets a clean
environment and a fresh engine so a database bootstrapped by one test never
leaks into another.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from db.client import dispose_engine

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for key in list(os.environ):
        if key.startswith("HALL_IMPORT_") or key == "DATABASE_URL":
            monkeypatch.delenv(key, raising=False)
    dispose_engine()
    yield
    dispose_engine()


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture
def import_time() -> datetime:
    return datetime(2025, 9, 15, 12, 0, tzinfo=UTC)
