"""Importer adapter interfaces and concrete implementations."""

from __future__ import annotations

from .crew import CrewAdapterReadiness, CrewTransportError, check_crew_adapter_readiness
from .crew.client import CrewClient
from .csv_rows import CrewCSVAdapter, CrewCSVStatistics, CSVAdapterError, CSVHeaderError, CSVParseError

__all__ = [
    "CSVAdapterError",
    "CSVHeaderError",
    "CSVParseError",
    "CrewCSVAdapter",
    "CrewCSVStatistics",
    "CrewAdapterReadiness",
    "CrewClient",
    "CrewTransportError",
    "check_crew_adapter_readiness",
]
