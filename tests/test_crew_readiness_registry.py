import pytest

from crew_app.importer.adapters.crew import (
    CrewAdapterConfigError,
    check_crew_adapter_readiness,
    ensure_crew_adapter_ready,
)
from crew_app.importer.registry import find_by_endpoint, get_record_kind_registry, resolve_record_kinds


def test_readiness_reports_missing_env_vars():
    readiness = check_crew_adapter_readiness({})

    assert readiness.status == "missing-env"
    assert readiness.missing_env_vars == ("CREW_API_BASE_URL", "CREW_API_TOKEN")
    payload = readiness.as_dict()
    assert payload["status"] == "missing-env"
    assert payload["messages"][0] == "Missing required crew API env vars: CREW_API_BASE_URL, CREW_API_TOKEN"
    assert "CREW_API_TIMEOUT_SECONDS" in payload["notes"][0]


def test_readiness_ready_when_configured():
    readiness = check_crew_adapter_readiness(
        {"CREW_API_BASE_URL": "http://crew.test", "CREW_API_TOKEN": "t", "CREW_API_TIMEOUT_SECONDS": "10"}
    )

    assert readiness.status == "ready"
    assert readiness.messages() == ()
    assert "notes" not in readiness.as_dict()


def test_ensure_ready_raises_actionable_error():
    with pytest.raises(CrewAdapterConfigError) as excinfo:
        ensure_crew_adapter_ready({"CREW_API_BASE_URL": "http://crew.test"})

    assert "CREW_API_TOKEN" in str(excinfo.value)


def test_registry_lists_kinds_in_display_order():
    registry = get_record_kind_registry()

    assert list(registry) == ["customer", "employee", "staff"]
    assert registry["employee"].endpoint == "employees"


def test_resolve_record_kinds_keeps_configured_order_and_drops_repeats():
    descriptors = resolve_record_kinds(("staff", "customer", "staff"))

    assert [descriptor.name for descriptor in descriptors] == ["staff", "customer"]


def test_resolve_record_kinds_rejects_unknown():
    with pytest.raises(ValueError) as excinfo:
        resolve_record_kinds(("customer", "contractor"))

    assert "contractor" in str(excinfo.value)


def test_find_by_endpoint():
    assert find_by_endpoint("customers").name == "customer"
    assert find_by_endpoint("staff").name == "staff"
    assert find_by_endpoint("vendors") is None
