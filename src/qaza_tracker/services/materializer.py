"""Expansion of a debt period into per-day calendar entries."""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from qaza_tracker.domain.qaza import (
    CalendarEntry,
    DebtBreakdown,
    MaterializationReport,
    Prayer,
)
from qaza_tracker.errors import MaterializationError

_logger = logging.getLogger(__name__)


class CalendarRepository(Protocol):
    """Persistence interface for calendar entries."""

    def mark_debt_days(self, user_id: UUID, days: list[date]) -> None:
        """Upsert entries for days, setting only the debt-day flag."""

    def clear_debt_days_outside(self, user_id: UUID, start: date, end: date) -> None:
        """Unset the debt-day flag on entries before start or after end.

        Prayer flags are left as they are.
        """

    def update_entry(
        self, user_id: UUID, date_local: date, prayers: Mapping[Prayer, bool]
    ) -> CalendarEntry:
        """Set the supplied prayer flags on an entry, creating it if absent."""

    def count_marked(self, user_id: UUID, prayer: Prayer) -> int:
        """Return how many entries have the prayer marked."""

    def list_entries(
        self, user_id: UUID, start: date, end: date
    ) -> list[CalendarEntry]:
        """Return entries between start and end inclusive, ordered by date."""


def iter_day_chunks(start: date, end: date, chunk_size: int) -> Iterator[list[date]]:
    """Yield consecutive days from start to end inclusive in bounded chunks."""
    cursor = start
    while cursor <= end:
        size = min(chunk_size, (end - cursor).days + 1)
        yield [cursor + timedelta(days=offset) for offset in range(size)]
        cursor += timedelta(days=size)


@dataclass
class CalendarMaterializer:
    """Seed calendar entries for every day of a computed debt period.

    Each chunk is one upsert that only sets ``is_debt_day``; completion flags
    on existing entries are left alone, so re-running over the same or a wider
    range never erases recorded prayers. Entries outside the period keep their
    prayer flags but lose ``is_debt_day``, so a shrunken period stops listing
    them as debt. A failed write raises ``MaterializationError`` with the date
    to resume from; a resume past the period end only redoes the clearing.
    """

    repository: CalendarRepository
    chunk_size: int = 500

    def materialize(
        self,
        user_id: UUID,
        breakdown: DebtBreakdown,
        resume_from: date | None = None,
    ) -> MaterializationReport:
        """Write the debt period in chunks and return what was written."""
        start = breakdown.period_start
        end = breakdown.period_end
        if end < start:
            self._clear_outside(user_id, start, end)
            return MaterializationReport(
                days_in_range=0, days_written=0, chunks=0, last_date=None
            )
        if resume_from is not None and resume_from > start:
            start = resume_from

        days_written = 0
        chunks = 0
        last_date: date | None = None
        for days in iter_day_chunks(start, end, self.chunk_size):
            try:
                self.repository.mark_debt_days(user_id, days)
            except Exception as exc:
                raise MaterializationError(
                    f"Failed to write calendar chunk starting {days[0].isoformat()}",
                    resume_from=days[0],
                ) from exc
            days_written += len(days)
            chunks += 1
            last_date = days[-1]

        self._clear_outside(user_id, breakdown.period_start, end)

        _logger.info(
            "Materialized calendar: user=%s days=%s chunks=%s",
            user_id,
            days_written,
            chunks,
        )
        return MaterializationReport(
            days_in_range=(breakdown.period_end - breakdown.period_start).days + 1,
            days_written=days_written,
            chunks=chunks,
            last_date=last_date,
        )

    def _clear_outside(self, user_id: UUID, start: date, end: date) -> None:
        try:
            self.repository.clear_debt_days_outside(user_id, start, end)
        except Exception as exc:
            raise MaterializationError(
                "Failed to clear debt days outside the current period",
                resume_from=end + timedelta(days=1),
            ) from exc
