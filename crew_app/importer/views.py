"""
Importer blueprint endpoints: crew roster uploads and health.
"""

from __future__ import annotations

import io
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from crew_app.utils.importer import get_importer_record_kinds

from .adapters import CSVAdapterError, CrewCSVAdapter
from .celery_app import get_celery_app
from .errors import PreflightError
from .registry import find_by_endpoint, get_record_kind_registry
from .runner import run_batch
from .utils import is_csv_upload, persist_upload

crew_import_blueprint = Blueprint("crew_import", __name__, url_prefix="/crew")


def _json_error(message: str, status: HTTPStatus | int):
    return jsonify({"error": message}), status


def _uploaded_csv():
    file_storage = request.files.get("file")
    if is_csv_upload(file_storage):
        return file_storage
    for candidate in request.files.values():
        if is_csv_upload(candidate):
            return candidate
    return None


def _rows_from_request():
    """Return ``(rows, error_response)`` for JSON or multipart uploads."""

    upload = _uploaded_csv()
    if upload is not None:
        try:
            text = upload.stream.read().decode("utf-8-sig")
        except UnicodeDecodeError:
            return None, _json_error("CSV upload must be UTF-8 encoded text.", HTTPStatus.BAD_REQUEST)
        try:
            return CrewCSVAdapter(io.StringIO(text)).read_rows(), None
        except CSVAdapterError as exc:
            return None, _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    body = request.get_json(silent=True) or {}
    rows = body.get("rows") if isinstance(body, dict) else None
    if rows is None:
        return [], None
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        return None, _json_error("rows must be a list of objects keyed by column header.", HTTPStatus.BAD_REQUEST)
    return rows, None


def _queue_upload(kind: str):
    upload = _uploaded_csv()
    if upload is None:
        return _json_error("Queued imports require a CSV upload in the 'file' field.", HTTPStatus.BAD_REQUEST)
    celery_app = get_celery_app(current_app)
    if celery_app is None:
        return _json_error("Importer worker is unavailable.", HTTPStatus.SERVICE_UNAVAILABLE)

    stored_path = persist_upload(upload, current_app, suffix="csv")
    async_result = celery_app.send_task(
        "importer.crew.run_csv",
        kwargs={"kind": kind, "file_path": str(stored_path), "keep_file": False},
    )
    current_app.logger.info(
        "Crew import queued via upload",
        extra={"importer_kind": kind, "importer_task_id": async_result.id},
    )
    return jsonify({"status": "queued", "task_id": async_result.id, "kind": kind}), HTTPStatus.ACCEPTED


@crew_import_blueprint.errorhandler(RequestEntityTooLarge)
def upload_too_large(error):
    limit = current_app.config.get("IMPORTER_MAX_UPLOAD_MB", 25)
    return _json_error(f"Upload exceeds the {limit} MB limit.", HTTPStatus.REQUEST_ENTITY_TOO_LARGE)


@crew_import_blueprint.post("/<endpoint>")
def crew_upload(endpoint: str):
    """
    Import customers, employees or staff from JSON ``{"rows": [...]}`` or a CSV upload.
    """
    descriptor = find_by_endpoint(endpoint)
    if descriptor is None or descriptor.name not in get_importer_record_kinds(current_app):
        return _json_error(f"Unknown or disabled record kind '{endpoint}'.", HTTPStatus.NOT_FOUND)

    if request.form.get("queue", "").lower() in {"1", "true", "yes"}:
        return _queue_upload(descriptor.name)

    rows, error_response = _rows_from_request()
    if error_response is not None:
        return error_response

    try:
        report = run_batch(current_app, descriptor.name, rows)
    except PreflightError as exc:
        return _json_error(exc.message, exc.status_code)
    return jsonify(report.as_dict()), HTTPStatus.OK


@crew_import_blueprint.get("/health")
def crew_import_health():
    """
    Lightweight health endpoint listing enabled record kinds and adapter readiness.
    """
    importer_state = current_app.extensions.get("importer", {})
    registry = get_record_kind_registry()
    kinds = [
        {
            "name": kind,
            "title": registry[kind].title,
            "endpoint": f"/crew/{registry[kind].endpoint}",
            "summary": registry[kind].summary,
        }
        for kind in get_importer_record_kinds(current_app)
        if kind in registry
    ]
    return (
        jsonify(
            {
                "status": "ok",
                "enabled": importer_state.get("enabled", False),
                "kinds": kinds,
                "adapter": importer_state.get("adapter_readiness", {}),
            }
        ),
        HTTPStatus.OK,
    )
