"""
HTTP client for the crew record service.

Implements the collaborator contract consumed by the batch processor over a
``requests.Session``. One attempt per call; failures surface as
:class:`CrewTransportError` carrying the HTTP status when there is one.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import requests

from . import CrewTransportError, ensure_crew_adapter_ready

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

SUBMIT_PATHS: Mapping[str, str] = {
    "customer": "/api/customers",
    "employee": "/api/users",
    "staff": "/api/users",
}


def _records(body: Any) -> list[Mapping[str, Any]]:
    """Accept both ``{"data": [...]}`` envelopes and bare lists."""

    if isinstance(body, Mapping):
        body = body.get("data")
    if not isinstance(body, list):
        return []
    return [item for item in body if isinstance(item, Mapping)]


def _record_id(body: Any) -> Any:
    if not isinstance(body, Mapping):
        return None
    data = body.get("data")
    if isinstance(data, Mapping) and data.get("id") is not None:
        return data["id"]
    return body.get("id")


class CrewClient:
    """Thin wrapper around the crew REST API."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("Crew API base URL is required.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._headers = {"Accept": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_config(cls, config: Mapping[str, Any], *, session: requests.Session | None = None) -> "CrewClient":
        """Build a client from app config; raises ``CrewAdapterConfigError`` when URL or token is unset."""
        ensure_crew_adapter_ready(config)
        return cls(
            config.get("CREW_API_BASE_URL") or "",
            config.get("CREW_API_TOKEN"),
            timeout=float(config.get("CREW_API_TIMEOUT_SECONDS") or DEFAULT_TIMEOUT_SECONDS),
            session=session,
        )

    # Transport ------------------------------------------------------------------

    def _request(self, method: str, path: str, *, params=None, json=None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Crew API request failed", extra={"method": method, "path": path, "error": str(exc)})
            raise CrewTransportError(str(exc) or "Request failed") from exc

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.info(
                "Crew API returned an error",
                extra={"method": method, "path": path, "status_code": response.status_code},
            )
            raise CrewTransportError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = response.text
        if isinstance(body, Mapping) and body.get("message"):
            return str(body["message"])
        if isinstance(body, str) and body.strip():
            return body.strip()
        return response.reason or f"HTTP {response.status_code}"

    # Collaborator contract --------------------------------------------------------

    def resolve_base_account_id(self) -> Any:
        """Return the owning account id (``company_id`` of the first user)."""

        users = _records(self._request("GET", "/api/users"))
        for user in users:
            company_id = user.get("company_id")
            if company_id is not None:
                return company_id
        raise CrewTransportError("Unable to resolve company_id from /api/users")

    def find_or_create_company_by_name(self, name: str, base_account_id: Any) -> Any:
        """Return the id of the customer company named ``name``, creating it when absent."""

        wanted = name.strip().lower()
        matches = _records(self._request("GET", "/api/customer-companies", params={"search": name}))
        for company in matches:
            if str(company.get("name") or "").strip().lower() == wanted:
                return company.get("id")

        created = self._request(
            "POST",
            "/api/customer-companies",
            json={"name": name.strip(), "company_id": base_account_id},
        )
        company_id = _record_id(created)
        if company_id is None:
            raise CrewTransportError(f'Customer company "{name}" was created without an id')
        return company_id

    def list_existing_records(self, kind: str) -> Sequence[Mapping[str, Any]]:
        """Existing records for ``kind`` as ``{id, identity_key, name}`` entries."""

        if kind != "staff":
            return []
        records = []
        for user in _records(self._request("GET", "/api/users")):
            email = str(user.get("email") or "").strip().lower()
            if not email:
                continue
            records.append({"id": user.get("id"), "identity_key": email, "name": user.get("name")})
        return records

    def submit(self, kind: str, payload: Mapping[str, Any]) -> Any:
        try:
            path = SUBMIT_PATHS[kind]
        except KeyError:
            raise ValueError(f"Unknown record kind '{kind}'.") from None
        return self._request("POST", path, json=dict(payload))
