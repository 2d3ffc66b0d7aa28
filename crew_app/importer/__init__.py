"""
Crew roster importer.

``init_importer`` wires the upload blueprint, the ``flask importer`` commands
and the Celery worker onto an app, or only a stub command group when
``IMPORTER_ENABLED`` is off.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from flask import Flask

from crew_app.utils.importer import get_importer_record_kinds, is_importer_enabled

from .adapters.crew import check_crew_adapter_readiness
from .celery_app import ensure_celery_app, get_celery_app
from .cli import get_disabled_importer_group, importer_cli
from .registry import get_record_kind_registry, resolve_record_kinds
from .runner import ServiceFactory
from .utils import max_upload_bytes
from .views import crew_import_blueprint

IMPORTER_EXTENSION_KEY = "importer"
CREW_ENV_KEYS = ("CREW_API_BASE_URL", "CREW_API_TOKEN", "CREW_API_TIMEOUT_SECONDS")

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "get_celery_app",
    "get_adapter_readiness",
    "refresh_adapter_readiness",
    "set_service_factory",
]


def _extension_state(app: Flask) -> dict:
    return app.extensions.setdefault(
        IMPORTER_EXTENSION_KEY,
        {
            "enabled": False,
            "record_kinds": (),
            "worker_enabled": False,
            "celery_app": None,
            "service_factory": None,
            "adapter_readiness": {},
        },
    )


def _compute_adapter_readiness(app: Flask) -> Dict[str, Any]:
    env = {key: str(app.config.get(key) or "") for key in CREW_ENV_KEYS}
    return check_crew_adapter_readiness(env).as_dict()


def _register_commands(app: Flask, enabled: bool) -> None:
    """Swap in the real ``importer`` group or the disabled stub."""
    app.cli.commands.pop(importer_cli.name, None)
    app.cli.add_command(importer_cli if enabled else get_disabled_importer_group())


def init_importer(app: Flask) -> None:
    """
    Attach the crew importer to ``app`` according to its config flags.

    Shared state (enabled kinds, Celery app, adapter readiness, service
    factory) lives in ``app.extensions["importer"]``.
    """
    enabled = is_importer_enabled(app)
    configured_kinds: Tuple[str, ...] = get_importer_record_kinds(app)

    state = _extension_state(app)
    state.update(
        {
            "enabled": enabled,
            "worker_enabled": bool(app.config.get("IMPORTER_WORKER_ENABLED", False)),
        }
    )

    if not enabled:
        state["record_kinds"] = ()
        _register_commands(app, enabled=False)
        app.logger.info("Crew importer off (IMPORTER_ENABLED=false); only the stub CLI group is registered.")
        return

    registry = get_record_kind_registry()
    state["record_kinds"] = tuple(resolve_record_kinds(configured_kinds, registry))
    if app.config.get("MAX_CONTENT_LENGTH") is None:
        app.config["MAX_CONTENT_LENGTH"] = max_upload_bytes(app)
    ensure_celery_app(app, state)

    readiness = _compute_adapter_readiness(app)
    state["adapter_readiness"] = readiness
    if readiness.get("status") != "ready":
        messages = list(readiness.get("messages") or ())
        app.logger.warning(
            "Crew adapter not ready (status=%s). %s",
            readiness.get("status"),
            "; ".join(messages) or "no details",
            extra={
                "importer_adapter_status": readiness.get("status"),
                "importer_adapter_missing_env": readiness.get("missing_env_vars"),
            },
        )

    if crew_import_blueprint.name not in app.blueprints and not getattr(app, "_got_first_request", False):
        app.register_blueprint(crew_import_blueprint)
    elif crew_import_blueprint.name not in app.blueprints:
        app.logger.warning(
            "Crew import routes not mounted: the app is already serving requests."
        )
    _register_commands(app, enabled=True)

    kind_names = ", ".join(descriptor.name for descriptor in state["record_kinds"]) or "none"
    app.logger.info("Crew importer ready for record kinds: %s", kind_names)


def set_service_factory(app: Flask, factory: ServiceFactory | None) -> None:
    """Override how the crew service is built for ``app`` (``None`` restores the HTTP client)."""
    _extension_state(app)["service_factory"] = factory


def get_adapter_readiness(app: Flask) -> Mapping[str, Any]:
    """Readiness snapshot taken when the importer was initialised."""
    state = _extension_state(app)
    return dict(state.get("adapter_readiness", {}))


def refresh_adapter_readiness(app: Flask) -> Mapping[str, Any]:
    """Re-run the crew adapter readiness check and cache the new result."""
    state = _extension_state(app)
    state["adapter_readiness"] = _compute_adapter_readiness(app)
    return dict(state["adapter_readiness"])
