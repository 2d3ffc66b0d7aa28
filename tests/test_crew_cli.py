import json
import os
import time

from flask import Flask

from crew_app.importer import get_celery_app, init_importer


def _write_csv(tmp_path, text, name="roster.csv"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_importer_group_lists_kinds(runner):
    result = runner.invoke(args=["importer"])

    assert result.exit_code == 0, result.output
    assert "Enabled importer record kinds:" in result.output
    assert "  - staff" in result.output


def test_kinds_command(runner):
    result = runner.invoke(args=["importer", "kinds"])

    assert result.exit_code == 0, result.output
    assert "  - customer" in result.output


def test_disabled_importer_registers_stub_cli():
    app = Flask(__name__)
    app.config.update(SECRET_KEY="test-secret", TESTING=True, IMPORTER_ENABLED=False)
    init_importer(app)

    result = app.test_cli_runner().invoke(args=["importer"])

    assert result.exit_code != 0
    assert "Importer commands are unavailable" in result.output
    assert "crew_import" not in app.blueprints


def test_inline_run_prints_summary(runner, crew_service, tmp_path):
    csv_path = _write_csv(
        tmp_path,
        "Name First and Last,Pin (4 digits or more)\nEli Park,0042\nFlo Ruiz,12\n",
    )

    result = runner.invoke(args=["importer", "run", "--kind", "employee", "--file", str(csv_path)])

    assert result.exit_code == 0, result.output
    assert "Crew employee import from roster.csv finished." in result.output
    assert "  ok                 : 1" in result.output
    assert "  validation_errors  : 1" in result.output
    assert "    line 3: Invalid PIN on line 3: must be exactly 4 digits (0-9)" in result.output
    assert len(crew_service.submitted) == 1


def test_inline_run_summary_json(runner, tmp_path):
    csv_path = _write_csv(tmp_path, "Name\nAnn\n")

    result = runner.invoke(
        args=["importer", "run", "--kind", "customer", "--file", str(csv_path), "--summary-json"]
    )

    assert result.exit_code == 0, result.output
    report = json.loads(result.output[result.output.index("{") :])
    assert report["summary"]["ok"] == 1


def test_inline_run_preflight_failure(runner, tmp_path):
    csv_path = _write_csv(tmp_path, "Name First and Last,Email\nPat,pat@example.com\n")

    result = runner.invoke(args=["importer", "run", "--kind", "staff", "--file", str(csv_path)])

    assert result.exit_code != 0
    assert 'Import aborted (400): CSV must include a column named "Password (6 Characters minimum)".' in result.output


def test_run_rejects_disabled_kind(make_importer_app, crew_service, tmp_path):
    app = make_importer_app(crew_service, IMPORTER_RECORD_KINDS=("customer",))
    csv_path = _write_csv(tmp_path, "Name\nAnn\n")

    result = app.test_cli_runner().invoke(args=["importer", "run", "--kind", "staff", "--file", str(csv_path)])

    assert result.exit_code != 0
    assert "Record kind 'staff' is not enabled" in result.output


def test_queue_run_sends_task(app, runner, tmp_path, monkeypatch):
    csv_path = _write_csv(tmp_path, "Name\nAnn\n")
    sent = []

    class FakeAsyncResult:
        id = "task-42"

    def fake_send_task(name, kwargs=None, **options):
        sent.append((name, kwargs))
        return FakeAsyncResult()

    monkeypatch.setattr(get_celery_app(app), "send_task", fake_send_task)

    result = runner.invoke(args=["importer", "run", "--kind", "customer", "--file", str(csv_path), "--queue"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"status": "queued", "task_id": "task-42", "kind": "customer"}
    assert sent == [
        (
            "importer.crew.run_csv",
            {"kind": "customer", "file_path": str(csv_path.resolve()), "keep_file": True},
        )
    ]


def test_summary_json_requires_inline(runner, tmp_path):
    csv_path = _write_csv(tmp_path, "Name\nAnn\n")

    result = runner.invoke(
        args=["importer", "run", "--kind", "customer", "--file", str(csv_path), "--queue", "--summary-json"]
    )

    assert result.exit_code != 0
    assert "--summary-json is only available for --inline runs." in result.output


def test_worker_ping(make_importer_app, crew_service):
    app = make_importer_app(crew_service, IMPORTER_WORKER_ENABLED=True)

    result = app.test_cli_runner().invoke(args=["importer", "worker", "ping"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["status"] == "ok"
    assert "timestamp" in payload
    assert "worker_hostname" in payload


def test_worker_run_invokes_celery(make_importer_app, crew_service, monkeypatch):
    app = make_importer_app(crew_service, IMPORTER_WORKER_ENABLED=True)
    calls = {}

    def fake_worker_main(argv=None):
        calls["argv"] = argv

    monkeypatch.setattr(get_celery_app(app), "worker_main", fake_worker_main)

    result = app.test_cli_runner().invoke(args=["importer", "worker", "run", "--pool", "solo", "--concurrency", "2"])

    assert result.exit_code == 0, result.output
    assert calls["argv"] == ["worker", "--loglevel", "info", "-Q", "imports", "--concurrency", "2", "--pool", "solo"]
    assert app.extensions["importer"]["worker_enabled"] is True


def test_cleanup_uploads_removes_stale_files(app, runner):
    from crew_app.importer.utils import resolve_upload_directory

    upload_dir = resolve_upload_directory(app)
    stale = upload_dir / "stale.csv"
    fresh = upload_dir / "fresh.csv"
    stale.write_text("Name\nAnn\n", encoding="utf-8")
    fresh.write_text("Name\nBo\n", encoding="utf-8")
    old = time.time() - 5 * 3600
    os.utime(stale, (old, old))

    result = runner.invoke(args=["importer", "cleanup-uploads", "--max-age-hours", "1"])

    assert result.exit_code == 0, result.output
    assert "Removed 1 upload file(s)" in result.output
    assert not stale.exists()
    assert fresh.exists()


def test_inline_run_rejects_undecodable_file(runner, crew_service, tmp_path):
    csv_path = tmp_path / "latin.csv"
    csv_path.write_bytes(b"Name\n\xff\xfeAnn\n")

    result = runner.invoke(args=["importer", "run", "--kind", "customer", "--file", str(csv_path)])

    assert result.exit_code != 0
    assert "CSV upload must be UTF-8 encoded text." in result.output
    assert crew_service.submitted == []
