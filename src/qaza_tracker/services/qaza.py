"""Per-user orchestration of qaza calculation and tracking."""

import asyncio
import logging
import weakref
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID

from qaza_tracker.domain.qaza import (
    CalculationRequest,
    CalendarEntry,
    DebtRecord,
    DebtStatus,
    MaterializationReport,
    Prayer,
    PrayerCounts,
    ProgressSummary,
)
from qaza_tracker.errors import MaterializationError
from qaza_tracker.services.debt import DebtCalculator
from qaza_tracker.services.materializer import CalendarMaterializer
from qaza_tracker.services.progress import DebtRepository, ProgressTracker

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class CalculationOutcome:
    """A committed calculation and the state of its calendar seeding."""

    record: DebtRecord
    materialization: MaterializationReport | None = None
    resume_from: date | None = None


@dataclass
class QazaService:
    """Serialize every operation per user and tie the components together.

    A calculation replaces debt counts and period bounds but keeps progress,
    which records prayers actually made up. The record is committed before the
    calendar is seeded; a seeding failure is reported with its resume date and
    does not undo the calculation.
    """

    calculator: DebtCalculator
    debt_repository: DebtRepository
    materializer: CalendarMaterializer
    progress_tracker: ProgressTracker
    clock: Callable[[], datetime] = _utc_now
    # Entries drop out once no operation holds or awaits the lock.
    _locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = field(
        default_factory=weakref.WeakValueDictionary, init=False, repr=False
    )

    def _get_lock(self, user_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def calculate(
        self, user_id: UUID, request: CalculationRequest, materialize: bool = True
    ) -> CalculationOutcome:
        """Recalculate the user's debt, persist it and seed the calendar."""
        async with self._get_lock(user_id):
            breakdown = await self.calculator.calculate(request)
            existing = self.debt_repository.get(user_id)
            record = DebtRecord(
                user_id=user_id,
                request=request,
                breakdown=breakdown,
                progress=existing.progress if existing else PrayerCounts(),
                status=existing.status if existing else DebtStatus.ACTIVE,
                calculated_at=self.clock(),
                completed_at=existing.completed_at if existing else None,
            )
            self.debt_repository.save(record)
            record = await self.progress_tracker.settle(record)
            _logger.info(
                "Qaza calculated: user=%s method=%s effective_days=%s",
                user_id,
                breakdown.calculation_method.value,
                breakdown.effective_days,
            )
            if not materialize:
                return CalculationOutcome(record=record)
            try:
                report = self.materializer.materialize(user_id, breakdown)
            except MaterializationError as exc:
                _logger.warning(
                    "Calendar seeding interrupted for user %s: %s", user_id, exc
                )
                return CalculationOutcome(record=record, resume_from=exc.resume_from)
            return CalculationOutcome(record=record, materialization=report)

    def get_record(self, user_id: UUID) -> DebtRecord | None:
        """Return the user's debt record, if any."""
        return self.debt_repository.get(user_id)

    async def materialize(
        self, user_id: UUID, resume_from: date | None = None
    ) -> MaterializationReport:
        """Seed (or resume seeding) the calendar for the stored debt period."""
        async with self._get_lock(user_id):
            record = self.progress_tracker.require_record(user_id)
            return self.materializer.materialize(
                user_id, record.breakdown, resume_from=resume_from
            )

    async def set_progress(
        self, user_id: UUID, prayer: Prayer, count: int
    ) -> DebtRecord:
        """Set an absolute made-up count for one prayer."""
        async with self._get_lock(user_id):
            return await self.progress_tracker.set_progress(user_id, prayer, count)

    async def mark_day(
        self, user_id: UUID, date_local: date, prayers: Mapping[Prayer, bool]
    ) -> tuple[CalendarEntry, DebtRecord]:
        """Mark prayers on a calendar date."""
        async with self._get_lock(user_id):
            return await self.progress_tracker.mark_day(user_id, date_local, prayers)

    async def reconcile(self, user_id: UUID) -> DebtRecord:
        """Rebuild every progress counter from the calendar."""
        async with self._get_lock(user_id):
            return await self.progress_tracker.reconcile(user_id)

    def summary(self, user_id: UUID) -> ProgressSummary:
        """Return the user's progress summary."""
        return self.progress_tracker.summary(user_id)

    def list_calendar(
        self, user_id: UUID, start: date | None = None, end: date | None = None
    ) -> list[CalendarEntry]:
        """Return calendar entries, defaulting to the stored debt period."""
        record = self.progress_tracker.require_record(user_id)
        return self.materializer.repository.list_entries(
            user_id,
            start or record.breakdown.period_start,
            end or record.breakdown.period_end,
        )
