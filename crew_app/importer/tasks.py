"""
Celery tasks executed by the crew import worker.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from celery import shared_task
from flask import current_app

from crew_app.importer.errors import PreflightError
from crew_app.importer.runner import run_csv_batch
from crew_app.importer.utils import cleanup_upload


@shared_task(name="importer.healthcheck", bind=True)
def importer_healthcheck(self) -> dict[str, Any]:
    """Heartbeat answered by ``flask importer worker ping``."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "worker_hostname": self.request.hostname,
    }


@shared_task(name="importer.crew.run_csv", bind=True)
def run_crew_csv(self, *, kind: str, file_path: str, keep_file: bool = False) -> dict[str, Any]:
    """
    Import the CSV at ``file_path`` as ``kind`` records and return the batch
    report. The file is deleted afterwards unless ``keep_file`` is set.
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Queued crew CSV is missing: {file_path}")

    try:
        report = run_csv_batch(current_app._get_current_object(), kind, path)
    except PreflightError as exc:
        current_app.logger.error(
            "Queued crew import rejected before any rows were sent",
            extra={"importer_kind": kind, "importer_status_code": exc.status_code, "importer_error": exc.message},
        )
        raise
    finally:
        if not keep_file:
            cleanup_upload(path)

    summary = report.summary
    current_app.logger.info(
        "Queued crew import finished",
        extra={
            "importer_kind": kind,
            "importer_task_id": self.request.id,
            "importer_rows_total": summary.total,
            "importer_rows_ok": summary.ok,
            "importer_rows_failed": summary.failed,
            "importer_rows_skipped_duplicates": summary.skipped_duplicates,
        },
    )
    return report.as_dict()
