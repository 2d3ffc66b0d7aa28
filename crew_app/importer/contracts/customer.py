"""Customer upload contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from .fields import FieldSpec, HeaderMatch, resolve_field

CUSTOMER_HEADER_MATCH = HeaderMatch.LENIENT
DEFAULT_CUSTOMER_ROLE = "Customer"

CUSTOMER_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="name",
        description="Customer full name.",
        required=True,
        aliases=("Name First and Last", "Name"),
    ),
    FieldSpec(
        name="role",
        description="Role label shown in the crew app; defaults to Customer.",
        aliases=("Role",),
    ),
    FieldSpec(
        name="email",
        description="Contact email.",
        aliases=("Email",),
    ),
    FieldSpec(
        name="company",
        description="Customer company name; resolved or created remotely.",
        aliases=("Company",),
    ),
    FieldSpec(
        name="phone",
        description="Contact phone in any common notation.",
        aliases=("Phone", "Phone Number", "Cell Phone", "Mobile", "Mobile Phone", "Telephone", "Tel"),
    ),
)

_SPECS = {spec.name: spec for spec in CUSTOMER_FIELDS}


@dataclass(frozen=True)
class CustomerFields:
    name: str
    role: str
    email: str
    company: str
    phone: str


def resolve_customer_fields(row: Mapping[str, object | None]) -> CustomerFields:
    """Resolve a raw upload row into the fixed customer shape."""

    def get(name: str) -> str:
        return resolve_field(row, _SPECS[name], CUSTOMER_HEADER_MATCH)

    return CustomerFields(
        name=get("name"),
        role=get("role") or DEFAULT_CUSTOMER_ROLE,
        email=get("email"),
        company=get("company"),
        phone=get("phone"),
    )
