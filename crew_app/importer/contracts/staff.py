"""Staff (office user) upload contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from .fields import FieldSpec, HeaderMatch, resolve_field

STAFF_HEADER_MATCH = HeaderMatch.COMPACT
PASSWORD_MIN_LENGTH = 6

STAFF_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="name",
        description="Staff member full name.",
        required=True,
        aliases=("Name First and Last",),
    ),
    FieldSpec(
        name="employee_id",
        description="Accounting identifier, mirrored into employee_id.",
        aliases=("Employee ID",),
    ),
    FieldSpec(
        name="email",
        description="Login email; unique across the account.",
        required=True,
        aliases=("Email",),
    ),
    FieldSpec(
        name="password",
        description="Initial password, at least six characters after trimming.",
        required=True,
        aliases=("Password (6 Characters minimum)", "Password"),
    ),
    FieldSpec(
        name="phone",
        description="Cell phone.",
        aliases=("Cell Phone", "Cell Number", "Phone"),
    ),
    FieldSpec(name="payroll", description="Toggle: time and payroll modules.", aliases=("Payroll",)),
    FieldSpec(name="jobs", description="Toggle: jobs/scheduler module.", aliases=("Jobs",)),
    FieldSpec(name="users", description="Toggle: user management module.", aliases=("Users",)),
    FieldSpec(name="analysis", description="Toggle: analysis dashboards (view only).", aliases=("Analysis",)),
    FieldSpec(name="foreman", description="Toggle: may record time for others.", aliases=("Foreman",)),
    FieldSpec(name="tracking", description="Toggle: location tracking enabled.", aliases=("Tracking",)),
)

STAFF_TOGGLES: Tuple[str, ...] = ("payroll", "jobs", "users", "analysis", "foreman", "tracking")

_SPECS = {spec.name: spec for spec in STAFF_FIELDS}


@dataclass(frozen=True)
class StaffFields:
    name: str
    employee_id: str
    email: str
    password: str
    phone: str
    toggles: Mapping[str, str]

    def __repr__(self) -> str:
        return f"StaffFields(name={self.name!r}, email={self.email!r}, employee_id={self.employee_id!r})"


def resolve_staff_fields(row: Mapping[str, object | None]) -> StaffFields:
    """Resolve a raw upload row into the fixed staff shape."""

    def get(name: str) -> str:
        return resolve_field(row, _SPECS[name], STAFF_HEADER_MATCH)

    return StaffFields(
        name=get("name"),
        employee_id=get("employee_id"),
        email=get("email"),
        password=get("password"),
        phone=get("phone"),
        toggles={toggle: get(toggle) for toggle in STAFF_TOGGLES},
    )
