import io
import json

from crew_app.importer import get_celery_app
from crew_app.importer.adapters import CrewTransportError


def _csv_upload(text: str, filename: str = "roster.csv"):
    return (io.BytesIO(text.encode("utf-8")), filename)


def test_json_upload_returns_report(client, crew_service):
    response = client.post(
        "/crew/customers",
        json={"rows": [{"Name": "Ann Lee", "Email": "ann@example.com"}, {"Name": "ann lee", "Email": "ANN@example.com"}]},
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["summary"]["total"] == 2
    assert payload["summary"]["ok"] == 1
    assert payload["summary"]["skippedDuplicates"] == 1
    assert payload["summary"]["baseAccountIdUsed"] == 77
    assert [result["outcomeKind"] for result in payload["results"]] == ["submitted", "skipped_duplicate"]
    assert payload["results"][0]["response"] == {"data": {"id": 101}}
    assert crew_service.submitted[0][0] == "customer"


def test_csv_upload_is_parsed(client, crew_service):
    text = "Name First and Last,Pin (4 digits or more),Foreman\nEli Park,0042,yes\nFlo Ruiz,12,\n"

    response = client.post(
        "/crew/employees",
        data={"file": _csv_upload(text)},
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["summary"]["ok"] == 1
    assert payload["summary"]["validationErrors"] == 1
    assert payload["results"][1]["error"] == "Invalid PIN on line 3: must be exactly 4 digits (0-9)"
    assert crew_service.submitted[0][1]["pin"] == "0042"


def test_csv_with_duplicate_headers_is_rejected(client):
    response = client.post(
        "/crew/customers",
        data={"file": _csv_upload("Name,Name\nAnn,Ann\n")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert "Duplicate columns detected" in response.get_json()["error"]


def test_missing_rows_is_a_preflight_error(client, crew_service):
    response = client.post("/crew/customers", json={})

    assert response.status_code == 400
    assert response.get_json() == {"error": "rows[] required"}
    assert crew_service.submitted == []


def test_malformed_rows_rejected(client):
    response = client.post("/crew/customers", json={"rows": ["Ann"]})

    assert response.status_code == 400
    assert "rows must be a list" in response.get_json()["error"]


def test_staff_missing_column_returns_400(client):
    response = client.post("/crew/staff", json={"rows": [{"Name First and Last": "Pat", "Password": "secret1"}]})

    assert response.status_code == 400
    assert response.get_json()["error"] == 'CSV must include a column named "Email".'


def test_base_account_failure_status_is_forwarded(make_importer_app, make_service):
    service = make_service(base_error=CrewTransportError("Unauthenticated.", status_code=401))
    client = make_importer_app(service).test_client()

    response = client.post("/crew/customers", json={"rows": [{"Name": "Ann"}]})

    assert response.status_code == 401
    assert response.get_json() == {"error": "Unauthenticated."}


def test_unknown_endpoint_returns_404(client):
    response = client.post("/crew/vendors", json={"rows": [{"Name": "Ann"}]})

    assert response.status_code == 404
    assert "vendors" in response.get_json()["error"]


def test_disabled_kind_returns_404(make_importer_app, crew_service):
    app = make_importer_app(crew_service, IMPORTER_RECORD_KINDS=("customer",))

    response = app.test_client().post("/crew/staff", json={"rows": [{"Name First and Last": "Pat"}]})

    assert response.status_code == 404


def test_queued_upload_persists_file_and_sends_task(app, client, monkeypatch):
    sent = []

    class FakeAsyncResult:
        id = "task-123"

    def fake_send_task(name, kwargs=None, **options):
        sent.append((name, kwargs))
        return FakeAsyncResult()

    monkeypatch.setattr(get_celery_app(app), "send_task", fake_send_task)

    response = client.post(
        "/crew/customers",
        data={"file": _csv_upload("Name\nAnn\n"), "queue": "true"},
        content_type="multipart/form-data",
    )

    assert response.status_code == 202
    assert response.get_json() == {"status": "queued", "task_id": "task-123", "kind": "customer"}
    name, kwargs = sent[0]
    assert name == "importer.crew.run_csv"
    assert kwargs["kind"] == "customer"
    assert kwargs["keep_file"] is False
    with open(kwargs["file_path"], encoding="utf-8") as handle:
        assert handle.read() == "Name\nAnn\n"


def test_queued_upload_requires_file(client):
    response = client.post("/crew/customers", data={"queue": "true"}, content_type="multipart/form-data")

    assert response.status_code == 400


def test_health_lists_enabled_kinds(client):
    response = client.get("/crew/health")

    assert response.status_code == 200
    payload = json.loads(response.data)
    assert payload["status"] == "ok"
    assert payload["enabled"] is True
    assert [kind["endpoint"] for kind in payload["kinds"]] == ["/crew/customers", "/crew/employees", "/crew/staff"]
    assert payload["adapter"]["status"] == "ready"


def test_non_utf8_csv_upload_returns_400(client, crew_service):
    response = client.post(
        "/crew/customers",
        data={"file": (io.BytesIO(b"Name\n\xff\xfeAnn\n"), "r.csv")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert response.get_json() == {"error": "CSV upload must be UTF-8 encoded text."}
    assert crew_service.submitted == []


def test_oversized_upload_returns_413(make_importer_app, crew_service):
    app = make_importer_app(crew_service, IMPORTER_MAX_UPLOAD_MB=1)
    text = "Name\n" + "Ann Lee\n" * (160 * 1024)

    response = app.test_client().post(
        "/crew/customers",
        data={"file": _csv_upload(text)},
        content_type="multipart/form-data",
    )

    assert response.status_code == 413
    assert response.get_json() == {"error": "Upload exceeds the 1 MB limit."}
    assert crew_service.submitted == []


def test_unconfigured_crew_api_is_a_preflight_error(make_importer_app):
    app = make_importer_app(CREW_API_TOKEN="")

    response = app.test_client().post("/crew/customers", json={"rows": [{"Name": "Ann"}]})

    assert response.status_code == 500
    assert "CREW_API_TOKEN" in response.get_json()["error"]
