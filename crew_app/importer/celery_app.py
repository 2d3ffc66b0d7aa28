"""
Celery wiring for queued crew imports.

One Celery instance is built per Flask app and cached on the importer
extension state. Broker and result backend default to in-memory transports;
point ``CELERY_BROKER_URL`` / ``CELERY_RESULT_BACKEND`` at Redis for real
workers.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from celery import Celery
from flask import Flask
from kombu import Queue

DEFAULT_QUEUE_NAME = "imports"
DEFAULT_BROKER_URL = "memory://"
DEFAULT_RESULT_BACKEND = "cache+memory://"
TASK_MODULES = ("crew_app.importer.tasks",)


def _worker_settings(app: Flask) -> dict[str, Any]:
    """Queue routing and execution limits applied to every crew Celery app."""
    queue = Queue(DEFAULT_QUEUE_NAME)
    return {
        "task_default_queue": queue.name,
        "task_default_exchange": queue.name,
        "task_default_routing_key": queue.name,
        "task_queues": [queue],
        # one long CSV batch per worker slot
        "worker_prefetch_multiplier": 1,
        "task_acks_late": True,
        "task_track_started": True,
        "task_time_limit": app.config.get("IMPORTER_TASK_TIME_LIMIT", 15 * 60),
        "task_soft_time_limit": app.config.get("IMPORTER_TASK_SOFT_TIME_LIMIT", 12 * 60),
        "broker_connection_retry_on_startup": True,
        "worker_hijack_root_logger": False,
    }


def _config_overrides(app: Flask) -> Mapping[str, Any]:
    """``CELERY_CONFIG`` as a mapping; JSON strings are decoded, bad JSON is ignored."""
    raw = app.config.get("CELERY_CONFIG")
    if not raw:
        return {}
    if isinstance(raw, Mapping):
        return raw
    try:
        decoded = json.loads(str(raw))
    except json.JSONDecodeError:
        app.logger.warning("Ignoring CELERY_CONFIG: value is not valid JSON.", exc_info=True)
        return {}
    if not isinstance(decoded, Mapping):
        app.logger.warning("Ignoring CELERY_CONFIG: expected a JSON object.")
        return {}
    return decoded


def _bind_app_context(celery_app: Celery, app: Flask) -> None:
    base = celery_app.Task

    class AppContextTask(base):  # type: ignore[misc, valid-type]
        """Execute task bodies with ``app`` pushed as the current Flask app."""

        def __call__(self, *args, **kwargs):
            with app.app_context():
                return super().__call__(*args, **kwargs)

    celery_app.Task = AppContextTask  # type: ignore[assignment]


def create_celery_app(app: Flask) -> Celery:
    """Build a Celery instance for ``app`` with the crew task modules registered."""
    broker_url = app.config.get("CELERY_BROKER_URL") or DEFAULT_BROKER_URL
    result_backend = app.config.get("CELERY_RESULT_BACKEND") or DEFAULT_RESULT_BACKEND

    celery_app = Celery(app.import_name, broker=broker_url, backend=result_backend, include=TASK_MODULES)
    celery_app.conf.update(_worker_settings(app))

    overrides = _config_overrides(app)
    if overrides:
        celery_app.conf.update(overrides)

    app.logger.info(
        "Crew import worker configured",
        extra={
            "importer_celery_broker_url": broker_url,
            "importer_celery_result_backend": result_backend,
            "importer_celery_overrides": sorted(overrides),
            "importer_worker_enabled": app.config.get("IMPORTER_WORKER_ENABLED"),
        },
    )
    logging.getLogger("celery.worker.strategy").setLevel(logging.WARNING)

    _bind_app_context(celery_app, app)
    celery_app.loader.import_default_modules()
    return celery_app


def ensure_celery_app(app: Flask, state: dict[str, Any]) -> Celery:
    """Return the Celery instance cached in ``state``, creating it on first use."""
    if state.get("celery_app") is None:
        state["celery_app"] = create_celery_app(app)
    return state["celery_app"]


def get_celery_app(app: Flask) -> Celery | None:
    """
    Celery instance for ``app``, or ``None`` when the importer was never
    initialised. Created lazily for enabled importers.
    """
    state = app.extensions.get("importer")
    if not state:
        return None
    if state.get("celery_app") is None and state.get("enabled"):
        return ensure_celery_app(app, state)
    return state.get("celery_app")
