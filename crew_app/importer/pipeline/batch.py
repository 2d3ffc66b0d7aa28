"""
Batch processing for crew roster uploads.

A batch resolves the owning account once, optionally prefetches existing
records, then walks the rows strictly in order. Every row ends in exactly one
outcome (submitted, rejected, or skipped as a duplicate); only pre-flight
failures abort the whole batch.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Iterable, Literal, Mapping, Protocol, Sequence

from crew_app.importer import metrics
from crew_app.importer.contracts import missing_headers, normalize_header
from crew_app.importer.errors import (
    DownstreamError,
    DuplicateError,
    DuplicateRecordError,
    ErrorCategory,
    PreflightError,
    RowError,
    SoftResolutionError,
)

from .company import CompanyResolver
from .dedupe import Deduplicator, ExistingRecord, ExistingRecordIndex
from .kinds import RecordKind, get_record_kind
from .normalize import sql_timestamp
from .summary import BatchSummary, summarize
from .validation import validate

logger = logging.getLogger(__name__)

OutcomeKind = Literal["submitted", "rejected", "skipped_duplicate"]

_DUPLICATE_ENTRY = re.compile(r"duplicate entry", re.IGNORECASE)
_REDACTED = "********"


class CrewService(Protocol):
    """Remote record service consumed by the batch processor."""

    def resolve_base_account_id(self) -> object: ...

    def find_or_create_company_by_name(self, name: str, base_account_id: object) -> object: ...

    def list_existing_records(self, kind: str) -> Sequence[Mapping[str, object | None]]: ...

    def submit(self, kind: str, payload: Mapping[str, object]) -> object: ...


@dataclass
class BatchContext:
    """Mutable state owned by a single batch run."""

    kind: str
    base_account_id: object
    companies: CompanyResolver
    deduplicator: Deduplicator = field(default_factory=Deduplicator)
    existing: ExistingRecordIndex = field(default_factory=ExistingRecordIndex)
    clock: Callable[[], datetime] = datetime.now

    def now_sql(self) -> str:
        return sql_timestamp(self.clock())


def line_number_for(index: int) -> int:
    """Upload line for a zero-based data row (the header occupies line 1)."""

    return index + 2


def _is_secret_key(key: object) -> bool:
    return "password" in normalize_header(key)


def _redact(values: Mapping[str, object] | None) -> dict[str, object] | None:
    if values is None:
        return None
    return {key: (_REDACTED if _is_secret_key(key) and value else value) for key, value in values.items()}


@dataclass(frozen=True)
class RowOutcome:
    index: int
    row: Mapping[str, object | None]

    outcome: OutcomeKind = field(init=False, default="rejected")

    @property
    def ok(self) -> bool:
        return self.outcome == "submitted"

    @property
    def line_number(self) -> int:
        return line_number_for(self.index)

    @property
    def error_category(self) -> ErrorCategory | None:
        return None

    def as_dict(self) -> dict[str, object]:
        return {"ok": self.ok, "outcomeKind": self.outcome, "index": self.index, "line": self.line_number}


@dataclass(frozen=True)
class Submitted(RowOutcome):
    payload: Mapping[str, object] = field(default_factory=dict)
    response: object = None
    notes: tuple[str, ...] = ()

    outcome: OutcomeKind = field(init=False, default="submitted")

    def as_dict(self) -> dict[str, object]:
        data = super().as_dict()
        data["response"] = self.response
        if self.notes:
            data["notes"] = list(self.notes)
        return data


@dataclass(frozen=True)
class Rejected(RowOutcome):
    error: RowError | None = None
    payload: Mapping[str, object] | None = None
    notes: tuple[str, ...] = ()

    outcome: OutcomeKind = field(init=False, default="rejected")

    @property
    def reason(self) -> str:
        return self.error.message if self.error is not None else ""

    @property
    def error_category(self) -> ErrorCategory | None:
        return self.error.category if self.error is not None else None

    def as_dict(self) -> dict[str, object]:
        data = super().as_dict()
        data["row"] = _redact(self.row)
        if self.payload is not None:
            data["payload"] = _redact(self.payload)
        data["error"] = self.reason
        data["errorCategory"] = self.error_category
        if self.notes:
            data["notes"] = list(self.notes)
        return data


@dataclass(frozen=True)
class SkippedDuplicate(RowOutcome):
    reason: str = ""

    outcome: OutcomeKind = field(init=False, default="skipped_duplicate")

    def as_dict(self) -> dict[str, object]:
        data = super().as_dict()
        data["row"] = _redact(self.row)
        data["skippedReason"] = self.reason
        return data


@dataclass(frozen=True)
class BatchReport:
    """Summary plus one outcome per input row, in input order."""

    kind: str
    summary: BatchSummary
    outcomes: tuple[RowOutcome, ...]

    @property
    def results(self) -> tuple[RowOutcome, ...]:
        return self.outcomes

    def as_dict(self) -> dict[str, object]:
        return {
            "summary": self.summary.as_dict(),
            "results": [outcome.as_dict() for outcome in self.outcomes],
        }


def _status_of(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def _message_of(exc: BaseException, default: str) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or default


def _response_id(response: object) -> object | None:
    if not isinstance(response, Mapping):
        return None
    data = response.get("data")
    if isinstance(data, Mapping) and data.get("id") is not None:
        return data.get("id")
    return response.get("id")


class BatchProcessor:
    """
    Run one upload batch against the crew service.

    Instances are single-use per ``run`` call: each run builds a fresh
    :class:`BatchContext`, so caches and seen-key sets never leak between
    batches.
    """

    def __init__(
        self,
        service: CrewService,
        kind: str,
        *,
        cache_failed_company_lookups: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.service = service
        self.profile: RecordKind = get_record_kind(kind)
        self.cache_failed_company_lookups = cache_failed_company_lookups
        self.clock = clock or datetime.now

    @property
    def kind(self) -> str:
        return self.profile.name

    def run(self, rows: Iterable[Mapping[str, object | None]] | None) -> BatchReport:
        frozen_rows = [MappingProxyType(dict(row or {})) for row in (rows or ())]
        started = time.perf_counter()
        try:
            context = self.preflight(frozen_rows)
        except PreflightError as exc:
            metrics.record_preflight_failure(self.kind)
            logger.warning(
                "Crew batch aborted during pre-flight",
                extra={"kind": self.kind, "status_code": exc.status_code, "error": exc.message},
            )
            raise

        outcomes: list[RowOutcome] = []
        for index, row in enumerate(frozen_rows):
            outcome = self.process_row(context, index, row)
            metrics.record_row_outcome(self.kind, outcome.outcome)
            outcomes.append(outcome)

        summary = summarize(outcomes, context.base_account_id)
        metrics.record_company_failure(context.companies.failures)
        metrics.record_batch(kind=self.kind, duration_seconds=time.perf_counter() - started)
        logger.info(
            "Crew batch completed: total=%s ok=%s failed=%s validation_errors=%s skipped_duplicates=%s",
            summary.total,
            summary.ok,
            summary.failed,
            summary.validation_errors,
            summary.skipped_duplicates,
            extra={"kind": self.kind, "base_account_id": context.base_account_id},
        )
        return BatchReport(kind=self.kind, summary=summary, outcomes=tuple(outcomes))

    def preflight(self, rows: Sequence[Mapping[str, object | None]]) -> BatchContext:
        """Validate the upload shape and resolve batch-wide state."""

        if not rows:
            raise PreflightError("rows[] required", status_code=400)

        profile = self.profile
        if profile.requires_headers:
            missing = missing_headers(rows[0].keys(), profile.fields, profile.header_match)
            if missing:
                raise PreflightError(f'CSV must include a column named "{missing[0]}".', status_code=400)

        try:
            base_account_id = self.service.resolve_base_account_id()
        except Exception as exc:
            raise PreflightError(
                _message_of(exc, "Unable to resolve company_id from /api/users"),
                status_code=_status_of(exc) or 500,
            ) from exc

        existing = ExistingRecordIndex()
        if profile.checks_existing:
            try:
                existing = ExistingRecordIndex.from_listing(self.service.list_existing_records(self.kind))
            except Exception as exc:
                raise PreflightError(
                    _message_of(exc, f"Unable to load existing {self.kind} records"),
                    status_code=_status_of(exc) or 500,
                ) from exc

        logger.info(
            "Crew batch pre-flight complete",
            extra={
                "kind": self.kind,
                "rows": len(rows),
                "base_account_id": base_account_id,
                "existing_records": len(existing),
            },
        )
        return BatchContext(
            kind=self.kind,
            base_account_id=base_account_id,
            companies=CompanyResolver(
                self.service,
                base_account_id,
                cache_failures=self.cache_failed_company_lookups,
            ),
            existing=existing,
            clock=self.clock,
        )

    def process_row(self, context: BatchContext, index: int, row: Mapping[str, object | None]) -> RowOutcome:
        """Drive a single row to its terminal outcome."""

        profile = self.profile
        line = line_number_for(index)
        fields = profile.resolve(row)

        validation_error = validate(fields, profile.name, line_number=line)
        if validation_error is not None:
            logger.info(
                "Crew row failed validation",
                extra={"kind": self.kind, "line": line, "missing": validation_error.missing_fields},
            )
            return Rejected(index=index, row=row, error=validation_error)

        key = profile.identity_key(fields)
        if context.deduplicator.check_and_register(key):
            return SkippedDuplicate(index=index, row=row, reason=profile.duplicate_reason)

        if profile.checks_existing:
            existing = context.existing.lookup(key)
            if existing is not None:
                return Rejected(
                    index=index,
                    row=row,
                    error=DuplicateError(
                        f'Duplicate email: "{fields.email}" already exists in the system'
                        f"{existing.describe()}. Skipped row {line}.",
                        line_number=line,
                    ),
                )

        notes: list[str] = []
        company_id = None
        if profile.resolves_company:
            try:
                company_id = context.companies.resolve(fields.company)
            except SoftResolutionError as exc:
                notes.append(f"Row {line}: {exc.message}")

        payload = profile.build_payload(fields, context, company_id)

        try:
            response = self.service.submit(self.kind, payload)
        except Exception as exc:
            error = self._downstream_error(exc, fields, line)
            logger.warning(
                "Crew row submit failed",
                extra={"kind": self.kind, "line": line, "status_code": error.status_code},
            )
            return Rejected(index=index, row=row, error=error, payload=payload, notes=tuple(notes))

        if profile.checks_existing and key is not None:
            context.existing.remember(key, ExistingRecord(id=_response_id(response), name=fields.name))
        return Submitted(index=index, row=row, payload=payload, response=response, notes=tuple(notes))

    def _downstream_error(self, exc: Exception, fields: object, line: int) -> DownstreamError:
        status = _status_of(exc)
        message = _message_of(exc, "Request failed")
        if self.profile.detects_duplicate_entry and _DUPLICATE_ENTRY.search(message):
            email = getattr(fields, "email", "")
            return DuplicateRecordError(
                f'Duplicate email: "{email}" already exists in the system. Skipped row {line}.',
                status_code=status,
                line_number=line,
            )
        return DownstreamError(
            f"Row {line}: [{status if status is not None else 'Unknown'}] {message}",
            status_code=status,
            line_number=line,
        )
