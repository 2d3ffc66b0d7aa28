import pytest

from crew_app.importer import IMPORTER_EXTENSION_KEY, get_celery_app
from crew_app.importer.celery_app import DEFAULT_QUEUE_NAME
from crew_app.importer.errors import PreflightError


def _run_csv_task(app):
    return get_celery_app(app).tasks["importer.crew.run_csv"]


def test_celery_defaults_to_in_memory_transport(app):
    celery_app = get_celery_app(app)

    assert celery_app is app.extensions[IMPORTER_EXTENSION_KEY]["celery_app"]
    assert celery_app.conf.broker_url == "memory://"
    assert celery_app.conf.result_backend == "cache+memory://"
    assert celery_app.conf.task_default_queue == DEFAULT_QUEUE_NAME
    assert celery_app.conf.worker_prefetch_multiplier == 1
    assert celery_app.conf.task_always_eager is True


def test_celery_config_accepts_json_string(make_importer_app, crew_service):
    app = make_importer_app(crew_service, CELERY_CONFIG='{"task_always_eager": true, "worker_concurrency": 3}')

    assert get_celery_app(app).conf.worker_concurrency == 3


def test_run_csv_task_processes_file_and_removes_it(app, crew_service, tmp_path):
    csv_path = tmp_path / "upload.csv"
    csv_path.write_text("Name,Company\nAnn,Acme\nBo,acme\n", encoding="utf-8")

    result = _run_csv_task(app).apply(kwargs={"kind": "customer", "file_path": str(csv_path)})

    report = result.get()
    assert report["summary"]["ok"] == 2
    assert report["summary"]["total"] == 2
    assert len(crew_service.company_calls) == 1
    assert not csv_path.exists()


def test_run_csv_task_keeps_file_when_requested(app, tmp_path):
    csv_path = tmp_path / "upload.csv"
    csv_path.write_text("Name\nAnn\n", encoding="utf-8")

    _run_csv_task(app).apply(kwargs={"kind": "customer", "file_path": str(csv_path), "keep_file": True}).get()

    assert csv_path.exists()


def test_run_csv_task_propagates_preflight_errors(app, tmp_path):
    csv_path = tmp_path / "upload.csv"
    csv_path.write_text("Name First and Last\nPat\n", encoding="utf-8")

    with pytest.raises(PreflightError):
        _run_csv_task(app).apply(kwargs={"kind": "staff", "file_path": str(csv_path)}).get()

    assert not csv_path.exists()


def test_run_csv_task_missing_file(app, tmp_path):
    with pytest.raises(FileNotFoundError):
        _run_csv_task(app).apply(kwargs={"kind": "customer", "file_path": str(tmp_path / "gone.csv")}).get()
