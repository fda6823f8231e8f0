"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the service ledger used by ``hall_services``.
"""

from .services import Base, Service

__all__ = [
    "Base",
    "Service",
]
