"""Row-processing pipeline for crew roster imports."""

from .batch import (
    BatchContext,
    BatchProcessor,
    BatchReport,
    CrewService,
    Rejected,
    RowOutcome,
    SkippedDuplicate,
    Submitted,
    line_number_for,
)
from .company import CompanyCache, CompanyResolver
from .dedupe import Deduplicator, ExistingRecord, ExistingRecordIndex, compose_key
from .kinds import RECORD_KIND_PROFILES, RECORD_KINDS, RecordKind, get_record_kind
from .normalize import NormalizedPhone, normalize_phone, sql_timestamp
from .permissions import PERMISSION_TABLES, PermissionGrant, map_permissions, parse_truthy
from .summary import BatchSummary, summarize
from .validation import ValidationIssue, validate

__all__ = [
    "BatchContext",
    "BatchProcessor",
    "BatchReport",
    "BatchSummary",
    "CompanyCache",
    "CompanyResolver",
    "CrewService",
    "Deduplicator",
    "ExistingRecord",
    "ExistingRecordIndex",
    "NormalizedPhone",
    "PERMISSION_TABLES",
    "PermissionGrant",
    "RECORD_KINDS",
    "RECORD_KIND_PROFILES",
    "RecordKind",
    "Rejected",
    "RowOutcome",
    "SkippedDuplicate",
    "Submitted",
    "ValidationIssue",
    "compose_key",
    "get_record_kind",
    "line_number_for",
    "map_permissions",
    "normalize_phone",
    "parse_truthy",
    "sql_timestamp",
    "summarize",
    "validate",
]
