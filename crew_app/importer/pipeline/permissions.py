"""
Toggle columns to capability grants.

Each record kind declares a fixed, ordered mapping from toggle name to the
grants it switches on. Grants are only emitted for toggles whose cell holds a
truthy token.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Mapping, Sequence, Tuple

AccessLevel = Literal["view", "edit"]

TRUTHY_TOKENS = frozenset({"y", "yes", "true", "1", "x", "on", "✓", "check", "checked"})


@dataclass(frozen=True)
class PermissionGrant:
    capability: str
    access_level: AccessLevel

    def as_payload(self) -> dict[str, object]:
        """Shape expected by the crew Permissions model."""

        return {"name": self.capability, "pivot": {"value": self.access_level}}


def parse_truthy(value: object | None) -> bool:
    """Return True for ``y``/``yes``/``true``/``1``/``x``/``on``/``✓``/``check``/``checked``."""

    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_TOKENS


PermissionTable = Tuple[Tuple[str, PermissionGrant], ...]

EMPLOYEE_PERMISSIONS: PermissionTable = (
    ("tracking", PermissionGrant("tracking_info", "edit")),
    ("foreman", PermissionGrant("time_for_others", "edit")),
)

STAFF_PERMISSIONS: PermissionTable = (
    ("payroll", PermissionGrant("time", "edit")),
    ("foreman", PermissionGrant("time_for_others", "edit")),
    ("tracking", PermissionGrant("tracking_info", "edit")),
    ("payroll", PermissionGrant("payroll", "edit")),
    ("jobs", PermissionGrant("jobs", "edit")),
    ("users", PermissionGrant("users", "edit")),
    ("analysis", PermissionGrant("analysis", "view")),
)

PERMISSION_TABLES: Mapping[str, PermissionTable] = {
    "customer": (),
    "employee": EMPLOYEE_PERMISSIONS,
    "staff": STAFF_PERMISSIONS,
}


def parse_toggles(cells: Mapping[str, object | None]) -> dict[str, bool]:
    """Convert raw toggle cells into booleans."""

    return {name: parse_truthy(value) for name, value in cells.items()}


def map_permissions(flags: Mapping[str, bool], kind: str) -> list[PermissionGrant]:
    """Return the grants switched on by ``flags`` for the given record kind."""

    try:
        table = PERMISSION_TABLES[kind]
    except KeyError:
        raise ValueError(f"Unknown record kind '{kind}'.") from None
    return [grant for toggle, grant in table if flags.get(toggle)]


def grants_payload(grants: Sequence[PermissionGrant]) -> list[dict[str, object]]:
    return [grant.as_payload() for grant in grants]
