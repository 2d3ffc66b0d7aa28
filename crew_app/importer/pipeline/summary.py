"""
Batch summary aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from .batch import RowOutcome


@dataclass(frozen=True)
class BatchSummary:
    """Counts reported once a batch finishes."""

    total: int
    ok: int
    failed: int
    validation_errors: int
    skipped_duplicates: int
    base_account_id_used: object | None = None

    def as_dict(self) -> dict[str, object]:
        """Wire form with camelCase keys."""
        return {
            "total": self.total,
            "ok": self.ok,
            "failed": self.failed,
            "validationErrors": self.validation_errors,
            "skippedDuplicates": self.skipped_duplicates,
            "baseAccountIdUsed": self.base_account_id_used,
        }


def summarize(outcomes: Sequence["RowOutcome"], base_account_id: object | None = None) -> BatchSummary:
    """
    Tally row outcomes.

    ``failed`` is everything that neither submitted nor was skipped as a
    duplicate. Validation failures are counted by error category.
    """

    total = len(outcomes)
    ok = sum(1 for outcome in outcomes if outcome.outcome == "submitted")
    skipped = sum(1 for outcome in outcomes if outcome.outcome == "skipped_duplicate")
    validation_errors = sum(
        1 for outcome in outcomes if outcome.outcome == "rejected" and outcome.error_category == "validation"
    )
    return BatchSummary(
        total=total,
        ok=ok,
        failed=total - ok - skipped,
        validation_errors=validation_errors,
        skipped_duplicates=skipped,
        base_account_id_used=base_account_id,
    )
