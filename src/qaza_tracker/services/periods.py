"""Validation of exclusion and travel periods."""

from collections.abc import Sequence
from dataclasses import dataclass

from qaza_tracker.domain.qaza import ExclusionPeriod


@dataclass(frozen=True)
class PeriodValidation:
    """Result of validating a set of periods."""

    valid: bool
    violations: list[str]


@dataclass
class PeriodValidator:
    """Check that periods are well formed and pairwise non-overlapping.

    Periods are closed intervals: two periods that share a boundary date
    overlap, while a period ending the day before another starts does not.
    Indices in messages are 1-based.
    """

    def validate(self, periods: Sequence[ExclusionPeriod]) -> PeriodValidation:
        """Return every violation found in the set."""
        violations: list[str] = []
        for index, period in enumerate(periods):
            if period.start_date > period.end_date:
                violations.append(
                    f"Period {index + 1}: start date {period.start_date.isoformat()} "
                    f"is after end date {period.end_date.isoformat()}"
                )
        for i, first in enumerate(periods):
            for j in range(i + 1, len(periods)):
                second = periods[j]
                if first.overlaps(second):
                    violations.append(
                        f"Periods {i + 1} and {j + 1} overlap: "
                        f"{_span(first)} and {_span(second)}"
                    )
        return PeriodValidation(valid=not violations, violations=violations)

    def find_cross_overlaps(
        self, first: Sequence[ExclusionPeriod], second: Sequence[ExclusionPeriod]
    ) -> list[str]:
        """Describe overlaps between two different period sets."""
        overlaps: list[str] = []
        for i, left in enumerate(first):
            for j, right in enumerate(second):
                if left.overlaps(right):
                    overlaps.append(
                        f"{left.kind.value} period {i + 1} overlaps "
                        f"{right.kind.value} period {j + 1}: "
                        f"{_span(left)} and {_span(right)}"
                    )
        return overlaps


def _span(period: ExclusionPeriod) -> str:
    return f"{period.start_date.isoformat()}..{period.end_date.isoformat()}"
