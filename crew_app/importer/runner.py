"""
Glue between the Flask app and the batch processor.

Views, CLI commands and Celery tasks all run batches through
:func:`run_batch`, which builds the crew service from app config (or from a
factory registered on the importer extension state) and applies the importer
settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Mapping

from flask import Flask

from .adapters import CrewClient, CrewCSVAdapter
from .adapters.crew import CrewAdapterConfigError
from .errors import PreflightError
from .pipeline import BatchProcessor, BatchReport, CrewService

ServiceFactory = Callable[[Flask], CrewService]


def default_service_factory(app: Flask) -> CrewService:
    return CrewClient.from_config(app.config)


def get_crew_service(app: Flask) -> CrewService:
    """Return the crew service for ``app`` using the registered factory."""

    state = app.extensions.get("importer") or {}
    factory: ServiceFactory = state.get("service_factory") or default_service_factory
    try:
        return factory(app)
    except CrewAdapterConfigError as exc:
        app.logger.error("Crew service is not configured: %s", exc)
        raise PreflightError(str(exc), status_code=500) from exc


def run_batch(app: Flask, kind: str, rows: Iterable[Mapping[str, object | None]]) -> BatchReport:
    processor = BatchProcessor(
        get_crew_service(app),
        kind,
        cache_failed_company_lookups=bool(app.config.get("IMPORTER_CACHE_FAILED_COMPANY_LOOKUPS", False)),
    )
    return processor.run(rows)


def read_csv_rows(path: Path) -> list[Mapping[str, object | None]]:
    """Parse a stored CSV upload into rows; bad encoding or CSV syntax raises ``CSVAdapterError``."""

    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        return CrewCSVAdapter(handle).read_rows()


def run_csv_batch(app: Flask, kind: str, path: Path) -> BatchReport:
    return run_batch(app, kind, read_csv_rows(path))
