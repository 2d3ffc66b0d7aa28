"""
Per record-kind behaviour plugged into the batch processor.

Each :class:`RecordKind` bundles the field contract, identity key, duplicate
wording and payload builder for one upload template. The batch processor
drives every kind through the same state machine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Tuple

from crew_app.importer.contracts import (
    CUSTOMER_FIELDS,
    CUSTOMER_HEADER_MATCH,
    EMPLOYEE_FIELDS,
    EMPLOYEE_HEADER_MATCH,
    STAFF_FIELDS,
    STAFF_HEADER_MATCH,
    CustomerFields,
    EmployeeFields,
    FieldSpec,
    HeaderMatch,
    StaffFields,
    resolve_customer_fields,
    resolve_employee_fields,
    resolve_staff_fields,
)

from .dedupe import compose_key
from .normalize import normalize_phone
from .permissions import grants_payload, map_permissions, parse_toggles

if TYPE_CHECKING:  # pragma: no cover
    from .batch import BatchContext

CUSTOMER = "customer"
EMPLOYEE = "employee"
STAFF = "staff"

RECORD_KINDS: Tuple[str, ...] = (CUSTOMER, EMPLOYEE, STAFF)


@dataclass(frozen=True)
class RecordKind:
    """
    Behaviour for one record kind.

    Attributes:
        name: Record kind identifier (``customer``, ``employee``, ``staff``).
        fields: Field contract used for header resolution.
        header_match: Header comparison mode for the contract.
        resolve: Converts a raw row into the typed field record.
        identity_key: Intra-batch dedupe key; ``None`` disables dedupe.
        build_payload: Produces the submit payload from fields, batch context
            and resolved customer-company id.
        duplicate_reason: Skip reason reported for repeats within the upload.
        checks_existing: Prefetch existing remote records and reject matches.
        resolves_company: Resolve the ``company`` field through the
            customer-company lookup before building the payload.
        requires_headers: Enforce required columns on the first row.
        detects_duplicate_entry: Map unique-constraint submit failures to a
            friendly duplicate message.
    """

    name: str
    fields: Tuple[FieldSpec, ...]
    header_match: HeaderMatch
    resolve: Callable[[Mapping[str, object | None]], Any]
    identity_key: Callable[[Any], str | None]
    build_payload: Callable[[Any, "BatchContext", object | None], dict[str, object]]
    duplicate_reason: str = ""
    checks_existing: bool = False
    resolves_company: bool = False
    requires_headers: bool = False
    detects_duplicate_entry: bool = False


def _or_none(value: str) -> str | None:
    return value or None


def _attach_phone(
    payload: dict[str, object],
    raw: str,
    context: "BatchContext",
    *,
    always_country: bool = False,
) -> None:
    phone = normalize_phone(raw)
    if phone is None:
        return
    payload["phone"] = phone.e164
    payload["phone_number"] = phone.e164
    if phone.country_code or always_country:
        payload["phone_country_code"] = phone.country_code
    payload["consented_to_sms_at"] = context.now_sql()


def _customer_key(fields: CustomerFields) -> str:
    return compose_key(fields.name, fields.email, fields.company)


def _customer_payload(fields: CustomerFields, context: "BatchContext", company_id: object | None) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": fields.name,
        "company_id": context.base_account_id,
        "customer_company_id": company_id,
        "active": 1,
        "role": fields.role,
        "email": _or_none(fields.email),
    }
    _attach_phone(payload, fields.phone, context, always_country=True)
    payload["type"] = "customer"
    payload["pin"] = None
    return payload


def _employee_payload(fields: EmployeeFields, context: "BatchContext", company_id: object | None) -> dict[str, object]:
    flags = parse_toggles(fields.toggles)
    grants = map_permissions(flags, EMPLOYEE)
    payload: dict[str, object] = {
        "name": fields.name,
        # string keeps leading zeros
        "pin": fields.pin,
        "employee_id": _or_none(fields.employee_id),
        "company_id": context.base_account_id,
        "role": "user",
        "employee": 1,
        "active": 1,
        "foreman": int(flags["foreman"]),
        "time_clock_level": int(flags["tracking"]),
    }
    if grants:
        payload["permissions"] = grants_payload(grants)
    _attach_phone(payload, fields.phone, context)
    return payload


def _staff_key(fields: StaffFields) -> str | None:
    return compose_key(fields.email) or None


def _staff_payload(fields: StaffFields, context: "BatchContext", company_id: object | None) -> dict[str, object]:
    flags = parse_toggles(fields.toggles)
    grants = map_permissions(flags, STAFF)
    metrics_level = int(flags["analysis"])
    payload: dict[str, object] = {
        "name": fields.name,
        "email": fields.email,
        "password": fields.password,
        "password_confirmation": fields.password,
        "role": "user",
        "employee": 0,
        "active": 1,
        "time_clock_level": int(flags["payroll"]),
        "scheduler_level": int(flags["jobs"]),
        "metrics_level": metrics_level,
        "metrics_enabled": 1 if metrics_level > 0 else 0,
        "accounting_id": _or_none(fields.employee_id),
        "employee_id": _or_none(fields.employee_id),
        "company_id": context.base_account_id,
        "type": "user",
        "is_super_admin": 0,
    }
    if grants:
        payload["permissions"] = grants_payload(grants)
    _attach_phone(payload, fields.phone, context)
    return payload


RECORD_KIND_PROFILES: Mapping[str, RecordKind] = {
    CUSTOMER: RecordKind(
        name=CUSTOMER,
        fields=CUSTOMER_FIELDS,
        header_match=CUSTOMER_HEADER_MATCH,
        resolve=resolve_customer_fields,
        identity_key=_customer_key,
        build_payload=_customer_payload,
        duplicate_reason="Duplicate row in upload (same Name/Email/Company)",
        resolves_company=True,
    ),
    EMPLOYEE: RecordKind(
        name=EMPLOYEE,
        fields=EMPLOYEE_FIELDS,
        header_match=EMPLOYEE_HEADER_MATCH,
        resolve=resolve_employee_fields,
        identity_key=lambda fields: None,
        build_payload=_employee_payload,
    ),
    STAFF: RecordKind(
        name=STAFF,
        fields=STAFF_FIELDS,
        header_match=STAFF_HEADER_MATCH,
        resolve=resolve_staff_fields,
        identity_key=_staff_key,
        build_payload=_staff_payload,
        duplicate_reason="Duplicate email in upload",
        checks_existing=True,
        requires_headers=True,
        detects_duplicate_entry=True,
    ),
}


def get_record_kind(name: str) -> RecordKind:
    """Return the profile for ``name`` or raise ``ValueError``."""

    try:
        return RECORD_KIND_PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown record kind '{name}'. Expected one of: {', '.join(RECORD_KINDS)}.") from None
