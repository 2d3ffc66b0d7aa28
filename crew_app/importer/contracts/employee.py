"""Employee (field crew) upload contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from .fields import FieldSpec, HeaderMatch, resolve_field

EMPLOYEE_HEADER_MATCH = HeaderMatch.COMPACT

EMPLOYEE_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="name",
        description="Employee full name.",
        required=True,
        aliases=("Name First and Last", "Name"),
    ),
    FieldSpec(
        name="pin",
        description="Time clock PIN, exactly four digits.",
        required=True,
        aliases=("Pin (4 digits or more)", "PIN", "Pin"),
    ),
    FieldSpec(
        name="employee_id",
        description="Payroll/accounting identifier.",
        aliases=("Employee ID", "ID"),
    ),
    FieldSpec(
        name="phone",
        description="Cell phone used for SMS clock-in.",
        aliases=("Cell Number", "Cell Phone", "Phone Number", "Phone"),
    ),
    FieldSpec(
        name="foreman",
        description="Toggle: may record time for other employees.",
        aliases=("Foreman",),
    ),
    FieldSpec(
        name="tracking",
        description="Toggle: location tracking enabled.",
        aliases=("Tracking",),
    ),
)

EMPLOYEE_TOGGLES: Tuple[str, ...] = ("foreman", "tracking")

_SPECS = {spec.name: spec for spec in EMPLOYEE_FIELDS}


@dataclass(frozen=True)
class EmployeeFields:
    name: str
    pin: str
    employee_id: str
    phone: str
    toggles: Mapping[str, str]


def resolve_employee_fields(row: Mapping[str, object | None]) -> EmployeeFields:
    """Resolve a raw upload row into the fixed employee shape."""

    def get(name: str) -> str:
        return resolve_field(row, _SPECS[name], EMPLOYEE_HEADER_MATCH)

    return EmployeeFields(
        name=get("name"),
        pin=get("pin"),
        employee_id=get("employee_id"),
        phone=get("phone"),
        toggles={toggle: get(toggle) for toggle in EMPLOYEE_TOGGLES},
    )
