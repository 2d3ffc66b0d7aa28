"""Prometheus metrics helpers for the crew importer."""

from __future__ import annotations

from typing import Literal

from prometheus_client import Counter, Histogram

_rows_counter = Counter(
    "importer_crew_rows_total",
    "Crew upload rows processed by record kind and outcome.",
    ["kind", "outcome"],
)
_batch_duration = Histogram(
    "importer_crew_batch_duration_seconds",
    "Duration of crew batch processing in seconds.",
    ["kind"],
    buckets=(0.5, 1, 2, 5, 10, 30, 60, 120, 300),
)
_company_failures = Counter(
    "importer_crew_company_resolution_failures_total",
    "Customer-company lookups that failed and continued with a null company.",
)
_preflight_failures = Counter(
    "importer_crew_preflight_failures_total",
    "Crew batches aborted before any row was processed.",
    ["kind"],
)


def record_row_outcome(kind: str, outcome: Literal["submitted", "rejected", "skipped_duplicate"]) -> None:
    _rows_counter.labels(kind=kind, outcome=outcome).inc()


def record_batch(*, kind: str, duration_seconds: float) -> None:
    """Capture the wall-clock duration of a completed batch."""

    _batch_duration.labels(kind=kind).observe(duration_seconds)


def record_company_failure(count: int = 1) -> None:
    if count:
        _company_failures.inc(count)


def record_preflight_failure(kind: str) -> None:
    _preflight_failures.labels(kind=kind).inc()
