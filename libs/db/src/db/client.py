"""Engine and session access for the services ledger.

One engine per process, bound to ``DATABASE_URL`` or an explicit URL on first
use. The import pipeline opens one session per run with
:func:`session_scope`; tests and long-lived hosts switch databases with
:func:`dispose_engine`.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


class DatabaseNotConfigured(RuntimeError):
    """No database URL is available, or the engine is bound to another one."""


def _resolve_url(override: str | None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise DatabaseNotConfigured("DATABASE_URL is not set and no database URL was given")
    return url


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the ledger engine, binding it on first call.

    Asking for a different URL while an engine is bound raises
    :class:`DatabaseNotConfigured`.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _resolve_url(database_url)
    if _ENGINE is not None:
        if url != _DB_URL:
            raise DatabaseNotConfigured(
                "engine is bound to another database; call dispose_engine() to switch"
            )
        return _ENGINE

    _ENGINE = create_engine(url, pool_pre_ping=True)
    _SESSION_MAKER = sessionmaker(bind=_ENGINE, expire_on_commit=False, class_=Session)
    _DB_URL = url
    return _ENGINE


def dispose_engine() -> None:
    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = _SESSION_MAKER = _DB_URL = None


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    if _SESSION_MAKER is None:
        raise DatabaseNotConfigured("session factory missing after engine init")
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session; commit on success, roll back on error, always close."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "DatabaseNotConfigured",
    "dispose_engine",
    "get_engine",
    "get_session",
    "session_scope",
]
