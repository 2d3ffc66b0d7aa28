"""
Duplicate detection within an upload and against records already on the
crew service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping


def compose_key(*parts: object | None) -> str:
    """Lower-case, trim and ``|``-join identity fields (``None`` counts as empty)."""

    return "|".join("" if part is None else str(part).strip().lower() for part in parts)


class Deduplicator:
    """Per-batch set of identity keys already seen in the upload."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def check_and_register(self, key: str | None) -> bool:
        """
        Return True when ``key`` was already seen in this batch.

        Unseen keys are registered. A ``None`` key means the record kind does
        not dedupe within an upload; it is never registered and never a repeat.
        """

        if key is None:
            return False
        if key in self._seen:
            return True
        self._seen.add(key)
        return False

    def __len__(self) -> int:
        return len(self._seen)


@dataclass(frozen=True)
class ExistingRecord:
    id: object | None
    name: str | None

    def describe(self) -> str:
        if not self.name:
            return ""
        if self.id is not None:
            return f" (belongs to {self.name} #{self.id})"
        return f" (belongs to {self.name})"


class ExistingRecordIndex:
    """Identity key to remote record, prefetched before the batch runs."""

    def __init__(self, records: Mapping[str, ExistingRecord] | None = None) -> None:
        self._records: dict[str, ExistingRecord] = dict(records or {})

    @classmethod
    def from_listing(cls, listing: Iterable[Mapping[str, object | None]]) -> "ExistingRecordIndex":
        """Build from ``{id, identity_key, name}`` entries; blank keys are ignored."""

        index = cls()
        for entry in listing:
            key = compose_key(entry.get("identity_key"))
            if not key:
                continue
            name = entry.get("name")
            index.remember(key, ExistingRecord(id=entry.get("id"), name=str(name) if name else None))
        return index

    def lookup(self, key: str | None) -> ExistingRecord | None:
        if key is None:
            return None
        return self._records.get(key)

    def remember(self, key: str, record: ExistingRecord) -> None:
        self._records[key] = record

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records
