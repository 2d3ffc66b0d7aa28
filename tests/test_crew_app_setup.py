import logging

import pytest
from flask import Flask
from prometheus_client import REGISTRY

from config import TestingConfig
from config.base import _coerce_bool, _parse_kind_list
from config.validation import validate_environment
from crew_app.importer import (
    IMPORTER_EXTENSION_KEY,
    get_adapter_readiness,
    init_importer,
    refresh_adapter_readiness,
)
from crew_app.importer.errors import PreflightError
from crew_app.importer.pipeline import BatchProcessor
from crew_app.utils.logging_config import _drop_managed_handlers, setup_logging


def test_app_module_uses_testing_config():
    from app import app as flask_app

    assert flask_app.config["TESTING"] is True
    assert flask_app.config["IMPORTER_ENABLED"] is False
    assert flask_app.extensions[IMPORTER_EXTENSION_KEY]["enabled"] is False

    response = flask_app.test_client().get("/does-not-exist")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Not found"}


def test_testing_config_defaults():
    assert TestingConfig.IMPORTER_ENABLED is False
    assert TestingConfig.IMPORTER_RECORD_KINDS == ("customer", "employee", "staff")
    assert TestingConfig.CREW_API_BASE_URL == "http://crew.test"


@pytest.mark.parametrize(
    "value, expected",
    [(None, False), ("true", True), (" YES ", True), ("0", False), ("maybe", False), (True, True)],
)
def test_coerce_bool(value, expected):
    assert _coerce_bool(value) is expected


def test_parse_kind_list_normalizes_and_dedupes():
    assert _parse_kind_list(" Staff,customer,,staff ") == ("staff", "customer")
    assert _parse_kind_list("") == ()


def test_environment_validation_only_applies_in_production():
    assert validate_environment("development", env={}) == (True, [])


def test_environment_validation_production_requirements():
    is_valid, errors = validate_environment(
        "production",
        env={"IMPORTER_ENABLED": "true", "IMPORTER_WORKER_ENABLED": "true", "SECRET_KEY": "your-secret-key"},
    )

    assert is_valid is False
    assert any(error.startswith("SECRET_KEY") for error in errors)
    assert "CREW_API_BASE_URL is required when IMPORTER_ENABLED=true" in errors
    assert "CREW_API_TOKEN is required when IMPORTER_ENABLED=true" in errors
    assert "CELERY_BROKER_URL is required when IMPORTER_WORKER_ENABLED=true" in errors


def test_environment_validation_production_ok():
    env = {
        "SECRET_KEY": "a" * 64,
        "IMPORTER_ENABLED": "true",
        "CREW_API_BASE_URL": "https://crew.example.com",
        "CREW_API_TOKEN": "token",
    }

    assert validate_environment("production", env=env) == (True, [])


def test_unknown_record_kind_fails_fast():
    app = Flask(__name__)
    app.config.update(SECRET_KEY="test-secret", IMPORTER_ENABLED=True, IMPORTER_RECORD_KINDS=("customer", "vendor"))

    with pytest.raises(ValueError):
        init_importer(app)


def test_adapter_readiness_recorded_and_refreshed(make_importer_app, crew_service):
    app = make_importer_app(crew_service, CREW_API_TOKEN=None)

    assert get_adapter_readiness(app)["status"] == "missing-env"
    assert get_adapter_readiness(app)["missing_env_vars"] == ["CREW_API_TOKEN"]

    app.config["CREW_API_TOKEN"] = "late-token"
    assert refresh_adapter_readiness(app)["status"] == "ready"


def test_max_upload_size_derived_from_config(make_importer_app, crew_service):
    app = make_importer_app(crew_service, IMPORTER_MAX_UPLOAD_MB=2)

    assert app.config["MAX_CONTENT_LENGTH"] == 2 * 1024 * 1024


def test_setup_logging_replaces_managed_handlers(tmp_path):
    app = Flask(__name__)
    log_file = tmp_path / "logs" / "importer.log"
    app.config.update(
        LOG_LEVEL="warning",
        ENABLE_CONSOLE_LOGGING=True,
        ENABLE_FILE_LOGGING=True,
        LOG_FILE=str(log_file),
    )

    setup_logging(app)
    setup_logging(app)

    managed = [handler for handler in app.logger.handlers if getattr(handler, "_crew_importer_handler", False)]
    assert len(managed) == 2
    assert app.logger.level == logging.WARNING
    assert logging.getLogger("crew_app").level == logging.WARNING
    assert log_file.parent.is_dir()

    app.config.update(ENABLE_FILE_LOGGING=False)
    setup_logging(app)
    managed = [handler for handler in logging.getLogger("crew_app").handlers if getattr(handler, "_crew_importer_handler", False)]
    assert len(managed) == 1

    for logger in (app.logger, logging.getLogger("crew_app")):
        _drop_managed_handlers(logger)


def _sample(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_batch_metrics_are_recorded(crew_service):
    submitted_before = _sample("importer_crew_rows_total", {"kind": "customer", "outcome": "submitted"})
    skipped_before = _sample("importer_crew_rows_total", {"kind": "customer", "outcome": "skipped_duplicate"})
    batches_before = _sample("importer_crew_batch_duration_seconds_count", {"kind": "customer"})

    BatchProcessor(crew_service, "customer").run([{"Name": "Ann"}, {"Name": "ann"}])

    assert _sample("importer_crew_rows_total", {"kind": "customer", "outcome": "submitted"}) == submitted_before + 1
    assert _sample("importer_crew_rows_total", {"kind": "customer", "outcome": "skipped_duplicate"}) == skipped_before + 1
    assert _sample("importer_crew_batch_duration_seconds_count", {"kind": "customer"}) == batches_before + 1


def test_preflight_metric_is_recorded(crew_service):
    before = _sample("importer_crew_preflight_failures_total", {"kind": "employee"})

    with pytest.raises(PreflightError):
        BatchProcessor(crew_service, "employee").run([])

    assert _sample("importer_crew_preflight_failures_total", {"kind": "employee"}) == before + 1
