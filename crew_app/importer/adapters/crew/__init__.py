"""Crew record service adapter: readiness checks and transport errors."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Tuple

REQUIRED_ENV_VARS: Tuple[str, ...] = ("CREW_API_BASE_URL", "CREW_API_TOKEN")
OPTIONAL_ENV_VARS: Tuple[str, ...] = ("CREW_API_TIMEOUT_SECONDS",)


class CrewAdapterError(RuntimeError):
    """Base error for crew adapter readiness issues."""


class CrewAdapterConfigError(CrewAdapterError):
    """Required crew API settings are not configured."""


class CrewTransportError(CrewAdapterError):
    """
    A call to the crew service failed.

    Attributes:
        status_code: HTTP status when the service answered, otherwise ``None``.
        message: Message from the response body or the underlying exception.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class CrewAdapterReadiness:
    """Outcome of checking the crew API settings; ``status`` is ``ready`` or ``missing-env``."""

    missing_env_vars: Tuple[str, ...]
    notes: Tuple[str, ...] = ()

    @property
    def status(self) -> str:
        return "missing-env" if self.missing_env_vars else "ready"

    def messages(self) -> Tuple[str, ...]:
        head: Tuple[str, ...] = ()
        if self.missing_env_vars:
            head = ("Missing required crew API env vars: " + ", ".join(self.missing_env_vars),)
        return head + self.notes

    def as_dict(self) -> dict[str, object]:
        result = dict(status=self.status, missing_env_vars=list(self.missing_env_vars), messages=list(self.messages()))
        if self.notes:
            result["notes"] = list(self.notes)
        return result


def check_crew_adapter_readiness(env: Mapping[str, str] | None = None) -> CrewAdapterReadiness:
    """Report which crew API settings are absent from ``env`` (default ``os.environ``)."""
    env = os.environ if env is None else env

    def absent(names: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(sorted(name for name in names if not env.get(name)))

    defaulted = absent(OPTIONAL_ENV_VARS)
    notes = (f"{', '.join(defaulted)} not set; built-in defaults are used.",) if defaulted else ()
    return CrewAdapterReadiness(missing_env_vars=absent(REQUIRED_ENV_VARS), notes=notes)


def ensure_crew_adapter_ready(env: Mapping[str, str] | None = None) -> CrewAdapterReadiness:
    """Like :func:`check_crew_adapter_readiness` but raises when required settings are absent."""
    readiness = check_crew_adapter_readiness(env)
    if readiness.status != "ready":
        missing = ", ".join(readiness.missing_env_vars)
        raise CrewAdapterConfigError(f"Set {missing} (or turn IMPORTER_ENABLED off) before running crew imports.")
    return readiness


__all__ = [
    "REQUIRED_ENV_VARS",
    "OPTIONAL_ENV_VARS",
    "CrewAdapterError",
    "CrewAdapterConfigError",
    "CrewTransportError",
    "CrewAdapterReadiness",
    "check_crew_adapter_readiness",
    "ensure_crew_adapter_ready",
]
