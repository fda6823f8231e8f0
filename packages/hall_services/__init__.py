"""Public interface for the ``hall_services`` historical import package.

Only symbol re-exports live here; see the individual modules for behavior.
"""

from .api import handle_import_request, handle_status_request
from .duplicates import DuplicatePolicy, DuplicateResolver, is_duplicate
from .errors import (
    HallImportError,
    LineParseError,
    SourceUnavailableError,
    StorageWriteError,
    TypeMappingError,
    UnknownFormatError,
    ValidationError,
)
from .executor import ImportJob, ImportOptions, JobState, run_import
from .ingest.formats import FORMATS, FormatProfile, get_format
from .models import CanonicalRecord, ParseResult, RawRecord, ServiceType
from .normalizers import DEFAULT_TYPE_MAPPING, RecordNormalizer, TypeMapping
from .persistence import ServiceStore, SqlServiceStore
from .reconciliation import (
    CANONICAL_PRICES,
    LedgerStatus,
    ReconciliationStatus,
    reconciliation_status,
)
from .reporting import ErrorCollector, ImportReport

__all__ = [
    # Entry points
    "handle_import_request",
    "handle_status_request",
    "run_import",
    "ImportJob",
    "ImportOptions",
    "JobState",
    # Formats
    "FORMATS",
    "FormatProfile",
    "get_format",
    # Models
    "CanonicalRecord",
    "ParseResult",
    "RawRecord",
    "ServiceType",
    # Normalization / duplicates / storage
    "DEFAULT_TYPE_MAPPING",
    "RecordNormalizer",
    "TypeMapping",
    "DuplicatePolicy",
    "DuplicateResolver",
    "is_duplicate",
    "ServiceStore",
    "SqlServiceStore",
    # Reconciliation
    "CANONICAL_PRICES",
    "LedgerStatus",
    "ReconciliationStatus",
    "reconciliation_status",
    # Reporting
    "ErrorCollector",
    "ImportReport",
    # Errors
    "HallImportError",
    "LineParseError",
    "SourceUnavailableError",
    "StorageWriteError",
    "TypeMappingError",
    "UnknownFormatError",
    "ValidationError",
]
