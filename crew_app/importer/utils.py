"""
Storage helpers for crew CSV uploads queued for the worker.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable
from uuid import uuid4

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

DEFAULT_UPLOAD_SUBDIR = "crew_uploads"
CSV_EXTENSIONS: tuple[str, ...] = ("csv",)


def _upload_dir_for(configured_path: str | None, instance_path: str) -> Path:
    # relative paths live under the instance folder
    return Path(instance_path) / (configured_path or DEFAULT_UPLOAD_SUBDIR)


def resolve_upload_directory(app) -> Path:
    """Directory holding stored uploads; created on first use."""
    upload_dir = _upload_dir_for(app.config.get("IMPORTER_UPLOAD_DIR"), app.instance_path)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def allowed_file(filename: str | None, allowed_extensions: Iterable[str] = CSV_EXTENSIONS) -> bool:
    if not filename:
        return False
    extension = Path(filename).suffix.lstrip(".").lower()
    return bool(extension) and extension in {ext.lower() for ext in allowed_extensions}


def is_csv_upload(file_storage: FileStorage | None) -> bool:
    """True for uploads named ``*.csv`` or sent with a CSV content type."""

    if file_storage is None:
        return False
    if allowed_file(file_storage.filename):
        return True
    return "csv" in (file_storage.mimetype or "")


def persist_upload(file_storage: FileStorage, app, *, suffix: str | None = None) -> Path:
    """
    Save ``file_storage`` under the upload directory with a random name and
    return its path. The original extension is kept; ``suffix`` (or ``.csv``)
    is used when the upload has none.
    """
    extension = Path(secure_filename(file_storage.filename or "")).suffix
    if not extension:
        extension = "." + (suffix or "csv").lstrip(".")

    stored = resolve_upload_directory(app) / f"{uuid4().hex}{extension}"
    file_storage.save(stored)
    current_app.logger.debug("Crew upload stored at %s", stored)
    return stored


def cleanup_upload(path: Path) -> None:
    """Delete a stored upload. Filesystem errors are logged, not raised."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        current_app.logger.warning("Could not delete crew upload %s: %s", path, exc)


def max_upload_bytes(app) -> int:
    return int(float(app.config.get("IMPORTER_MAX_UPLOAD_MB", 25)) * 1024 * 1024)
