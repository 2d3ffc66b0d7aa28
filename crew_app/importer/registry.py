"""
Record-kind registry.

Each uploadable record kind registers descriptive metadata here so
configuration validation can happen before any batch runs.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence


@dataclass(frozen=True)
class RecordKindDescriptor:
    """Metadata describing an uploadable record kind."""

    name: str
    title: str
    endpoint: str
    summary: str | None = None


def get_record_kind_registry() -> Mapping[str, RecordKindDescriptor]:
    """Return the registry of supported record kinds, in display order."""
    return OrderedDict(
        (
            (
                "customer",
                RecordKindDescriptor(
                    name="customer",
                    title="Customers",
                    endpoint="customers",
                    summary="Customer contacts with optional customer company.",
                ),
            ),
            (
                "employee",
                RecordKindDescriptor(
                    name="employee",
                    title="Employees",
                    endpoint="employees",
                    summary="Field crew with time clock PIN and Foreman/Tracking toggles.",
                ),
            ),
            (
                "staff",
                RecordKindDescriptor(
                    name="staff",
                    title="Staff",
                    endpoint="staff",
                    summary="Office users with login credentials and module permissions.",
                ),
            ),
        )
    )


def resolve_record_kinds(
    configured: Sequence[str],
    registry: Mapping[str, RecordKindDescriptor] | None = None,
) -> Iterable[RecordKindDescriptor]:
    """
    Map configured record kind names to registry descriptors, raising on unknowns.
    """
    registry = registry or get_record_kind_registry()
    unknown = sorted({kind for kind in configured if kind not in registry})
    if unknown:
        raise ValueError(
            "Unknown importer record kinds configured: "
            + ", ".join(unknown)
            + ". Expected any of: "
            + ", ".join(registry)
            + "."
        )
    return tuple(registry[kind] for kind in dict.fromkeys(configured))


def find_by_endpoint(endpoint: str, registry: Mapping[str, RecordKindDescriptor] | None = None) -> RecordKindDescriptor | None:
    registry = registry or get_record_kind_registry()
    for descriptor in registry.values():
        if descriptor.endpoint == endpoint:
            return descriptor
    return None
