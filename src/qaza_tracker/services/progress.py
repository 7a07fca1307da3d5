"""Progress tracking and payoff detection."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import UUID

from qaza_tracker.domain.qaza import (
    ALL_PRAYERS,
    CalendarEntry,
    DebtRecord,
    DebtStatus,
    Prayer,
    PrayerCounts,
    ProgressSummary,
)
from qaza_tracker.errors import NotFoundError, ValidationError
from qaza_tracker.services.materializer import CalendarRepository

_logger = logging.getLogger(__name__)


class DebtRepository(Protocol):
    """Persistence interface for debt records."""

    def get(self, user_id: UUID) -> DebtRecord | None:
        """Return the user's debt record, if one was calculated."""

    def save(self, record: DebtRecord) -> None:
        """Insert or replace the user's debt record."""

    def update_progress(self, record: DebtRecord) -> None:
        """Persist progress counters, status and completion time."""


class CompletionNotifier(Protocol):
    """Collaborator told when a user has made up every missed prayer."""

    async def notify_completed(self, record: DebtRecord) -> None:
        """Handle a transition into the fully paid state."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ProgressTracker:
    """Apply progress mutations and detect full payoff.

    Direct sets overwrite one counter. Calendar marks recount the touched
    prayers from the calendar, so the counter always equals the number of
    marked entries after a toggle. The notifier fires once per transition
    into the completed state.
    """

    debt_repository: DebtRepository
    calendar_repository: CalendarRepository
    notifier: CompletionNotifier
    clock: Callable[[], datetime] = _utc_now

    def require_record(self, user_id: UUID) -> DebtRecord:
        """Return the debt record or raise NotFoundError."""
        record = self.debt_repository.get(user_id)
        if record is None:
            raise NotFoundError(
                f"No qaza debt calculated for user {user_id}; calculate first"
            )
        return record

    async def set_progress(
        self, user_id: UUID, prayer: Prayer, count: int
    ) -> DebtRecord:
        """Set the made-up count for one prayer."""
        if count < 0:
            raise ValidationError([f"count must not be negative, got {count}"])
        record = self.require_record(user_id)
        updated = replace(record, progress=record.progress.with_value(prayer, count))
        return await self.settle(updated)

    async def mark_day(
        self, user_id: UUID, date_local: date, prayers: Mapping[Prayer, bool]
    ) -> tuple[CalendarEntry, DebtRecord]:
        """Update the supplied prayer flags for a date and recount them."""
        record = self.require_record(user_id)
        entry = self.calendar_repository.update_entry(user_id, date_local, prayers)
        progress = record.progress
        for prayer in prayers:
            progress = progress.with_value(
                prayer, self.calendar_repository.count_marked(user_id, prayer)
            )
        updated = await self.settle(replace(record, progress=progress))
        return entry, updated

    async def reconcile(self, user_id: UUID) -> DebtRecord:
        """Recount every prayer counter from the calendar."""
        record = self.require_record(user_id)
        counts = {
            prayer.value: self.calendar_repository.count_marked(user_id, prayer)
            for prayer in ALL_PRAYERS
        }
        return await self.settle(replace(record, progress=PrayerCounts(**counts)))

    def summary(self, user_id: UUID) -> ProgressSummary:
        """Return remaining debt and overall percentage."""
        record = self.require_record(user_id)
        remaining = PrayerCounts(
            **{prayer.value: record.remaining(prayer) for prayer in ALL_PRAYERS}
        )
        total_debt = record.debts.total()
        total_progress = total_debt - remaining.total()
        percentage = round(total_progress * 100 / total_debt) if total_debt else 0
        return ProgressSummary(
            remaining=remaining,
            total_debt=total_debt,
            total_progress=total_progress,
            percentage=percentage,
            status=record.status,
        )

    async def settle(self, record: DebtRecord) -> DebtRecord:
        """Derive the status, persist progress and signal a new payoff."""
        paid = record.is_fully_paid()
        entered_completion = paid and record.status != DebtStatus.COMPLETED
        if entered_completion:
            record = replace(
                record, status=DebtStatus.COMPLETED, completed_at=self.clock()
            )
        elif not paid and record.status == DebtStatus.COMPLETED:
            record = replace(record, status=DebtStatus.ACTIVE, completed_at=None)
        self.debt_repository.update_progress(record)
        if entered_completion:
            _logger.info("Qaza debt fully made up: user=%s", record.user_id)
            try:
                await self.notifier.notify_completed(record)
            except Exception:
                _logger.exception(
                    "Failed to deliver qaza completion for user %s", record.user_id
                )
        return record
