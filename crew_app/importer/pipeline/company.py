"""
Customer-company resolution with a per-batch, write-once cache.
"""

from __future__ import annotations

import logging
from typing import Protocol

from crew_app.importer.errors import SoftResolutionError

logger = logging.getLogger(__name__)


class CompanyLookup(Protocol):
    def find_or_create_company_by_name(self, name: str, base_account_id: object) -> object: ...


class CompanyCache:
    """
    Lower-cased company name to resolved id (``None`` records a failed lookup).

    Entries are write-once for the lifetime of the batch.
    """

    def __init__(self) -> None:
        self._entries: dict[str, object | None] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> object | None:
        return self._entries.get(key)

    def set(self, key: str, company_id: object | None) -> None:
        if key in self._entries:
            raise KeyError(f"Company cache entry '{key}' is already set.")
        self._entries[key] = company_id


class CompanyResolver:
    """
    Resolve customer-company names to ids through the crew service.

    Failed lookups raise :class:`SoftResolutionError`. They are retried on the
    next occurrence unless ``cache_failures`` is set, in which case ``None`` is
    cached for that name.
    """

    def __init__(
        self,
        service: CompanyLookup,
        base_account_id: object,
        *,
        cache: CompanyCache | None = None,
        cache_failures: bool = False,
    ) -> None:
        self.service = service
        self.base_account_id = base_account_id
        self.cache = cache if cache is not None else CompanyCache()
        self.cache_failures = cache_failures
        self.failures = 0

    def resolve(self, company_name: str) -> object | None:
        name = (company_name or "").strip()
        if not name:
            return None
        key = name.lower()
        if key in self.cache:
            return self.cache.get(key)

        try:
            company_id = self.service.find_or_create_company_by_name(name, self.base_account_id)
        except Exception as exc:  # transport failures are soft for company lookups
            self.failures += 1
            if self.cache_failures:
                self.cache.set(key, None)
            logger.warning(
                "Customer company lookup failed",
                extra={"company_name": name, "error": str(exc), "cached": self.cache_failures},
            )
            raise SoftResolutionError(
                f'Could not resolve/create customer company "{name}". Proceeding with null. {exc}'.rstrip()
            ) from exc

        self.cache.set(key, company_id)
        return company_id
