# conftest.py

import os

import pytest
from flask import Flask

# Set testing environment BEFORE importing config so TestingConfig is used
os.environ["FLASK_ENV"] = "testing"

from crew_app.importer import init_importer, set_service_factory  # noqa: E402


class FakeCrewService:
    """In-memory stand-in for the crew record service."""

    def __init__(
        self,
        *,
        base_account_id=77,
        base_error=None,
        companies=None,
        company_error=None,
        existing=(),
        existing_error=None,
        submit_failures=None,
    ):
        self.base_account_id = base_account_id
        self.base_error = base_error
        self.companies = dict(companies or {})
        self.company_error = company_error
        self.existing = list(existing)
        self.existing_error = existing_error
        self.submit_failures = dict(submit_failures or {})
        self.company_calls = []
        self.submitted = []
        self._next_id = 100

    def resolve_base_account_id(self):
        if self.base_error is not None:
            raise self.base_error
        return self.base_account_id

    def find_or_create_company_by_name(self, name, base_account_id):
        self.company_calls.append((name, base_account_id))
        if self.company_error is not None:
            raise self.company_error
        key = name.lower()
        if key not in self.companies:
            self.companies[key] = 500 + len(self.companies)
        return self.companies[key]

    def list_existing_records(self, kind):
        if self.existing_error is not None:
            raise self.existing_error
        if kind != "staff":
            return []
        return [
            {"id": record["id"], "identity_key": record["email"].lower(), "name": record.get("name")}
            for record in self.existing
        ]

    def submit(self, kind, payload):
        call = len(self.submitted)
        self.submitted.append((kind, dict(payload)))
        failure = self.submit_failures.get(call)
        if failure is not None:
            raise failure
        self._next_id += 1
        return {"data": {"id": self._next_id}}


@pytest.fixture
def make_service():
    """Return the fake service class so tests can configure failures per case."""
    return FakeCrewService


@pytest.fixture
def crew_service():
    return FakeCrewService()


@pytest.fixture
def make_importer_app(tmp_path):
    """Factory building a minimal importer-enabled app wired to a fake crew service."""

    def _build(service=None, **overrides):
        app = Flask(__name__, instance_path=str(tmp_path / "instance"))
        app.config.update(
            SECRET_KEY="test-secret",
            TESTING=True,
            IMPORTER_ENABLED=True,
            IMPORTER_RECORD_KINDS=("customer", "employee", "staff"),
            CREW_API_BASE_URL="http://crew.test",
            CREW_API_TOKEN="test-token",
            CREW_API_TIMEOUT_SECONDS=5,
            CELERY_CONFIG={"task_always_eager": True, "task_eager_propagates": True},
        )
        app.config.update(overrides)
        init_importer(app)
        if service is not None:
            set_service_factory(app, lambda _app: service)
        return app

    return _build


@pytest.fixture
def app(make_importer_app, crew_service):
    """Importer-enabled app backed by the ``crew_service`` fake."""
    return make_importer_app(crew_service)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()
