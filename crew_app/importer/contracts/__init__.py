"""Upload contracts (field aliases and resolved record shapes) per record kind."""

from __future__ import annotations

from .customer import CUSTOMER_FIELDS, CUSTOMER_HEADER_MATCH, CustomerFields, resolve_customer_fields
from .employee import EMPLOYEE_FIELDS, EMPLOYEE_HEADER_MATCH, EmployeeFields, resolve_employee_fields
from .fields import FieldSpec, HeaderMatch, missing_headers, normalize_header, resolve_field
from .staff import PASSWORD_MIN_LENGTH, STAFF_FIELDS, STAFF_HEADER_MATCH, StaffFields, resolve_staff_fields

__all__ = [
    "FieldSpec",
    "HeaderMatch",
    "normalize_header",
    "resolve_field",
    "missing_headers",
    "CUSTOMER_FIELDS",
    "CUSTOMER_HEADER_MATCH",
    "CustomerFields",
    "resolve_customer_fields",
    "EMPLOYEE_FIELDS",
    "EMPLOYEE_HEADER_MATCH",
    "EmployeeFields",
    "resolve_employee_fields",
    "STAFF_FIELDS",
    "STAFF_HEADER_MATCH",
    "PASSWORD_MIN_LENGTH",
    "StaffFields",
    "resolve_staff_fields",
]
