"""Shared test fixtures."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import httpx
import pytest

from qaza_tracker.adapters.hijri_api_client import HijriApiClient
from qaza_tracker.config import Settings
from qaza_tracker.containers import AppContainer
from qaza_tracker.domain.hijri import CalendarVariant, HijriDate
from qaza_tracker.domain.qaza import CalendarEntry, DebtRecord, Prayer
from qaza_tracker.services.cache import InMemoryCache
from qaza_tracker.services.calendar_conversion import (
    ArithmeticHijriConverter,
    FallbackHijriConverter,
    HijriConverter,
)
from qaza_tracker.services.debt import DebtCalculator
from qaza_tracker.services.materializer import CalendarMaterializer, CalendarRepository
from qaza_tracker.services.onset import OnsetDateResolver
from qaza_tracker.services.periods import PeriodValidator
from qaza_tracker.services.progress import (
    CompletionNotifier,
    DebtRepository,
    ProgressTracker,
)
from qaza_tracker.services.qaza import QazaService

FIXED_TODAY = date(2026, 1, 15)
FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@dataclass
class InMemoryDebtRepository(DebtRepository):
    """In-memory debt repository for tests."""

    records: dict[UUID, DebtRecord] = field(default_factory=dict)
    saves: int = 0

    def get(self, user_id: UUID) -> DebtRecord | None:
        return self.records.get(user_id)

    def save(self, record: DebtRecord) -> None:
        self.saves += 1
        self.records[record.user_id] = record

    def update_progress(self, record: DebtRecord) -> None:
        stored = self.records[record.user_id]
        self.records[record.user_id] = replace(
            stored,
            progress=record.progress,
            status=record.status,
            completed_at=record.completed_at,
        )


@dataclass
class InMemoryCalendarRepository(CalendarRepository):
    """In-memory calendar repository that can fail on a chosen chunk."""

    entries: dict[tuple[UUID, date], CalendarEntry] = field(default_factory=dict)
    chunk_sizes: list[int] = field(default_factory=list)
    fail_on_chunk: int | None = None
    fail_on_clear: bool = False

    def mark_debt_days(self, user_id: UUID, days: list[date]) -> None:
        if self.fail_on_chunk == len(self.chunk_sizes):
            self.fail_on_chunk = None
            raise RuntimeError("storage unavailable")
        self.chunk_sizes.append(len(days))
        for day in days:
            existing = self.entries.get((user_id, day))
            if existing is None:
                existing = CalendarEntry(user_id=user_id, date_local=day)
            self.entries[(user_id, day)] = replace(existing, is_debt_day=True)

    def clear_debt_days_outside(self, user_id: UUID, start: date, end: date) -> None:
        if self.fail_on_clear:
            self.fail_on_clear = False
            raise RuntimeError("storage unavailable")
        for (owner, day), entry in list(self.entries.items()):
            if owner == user_id and (day < start or day > end):
                self.entries[(owner, day)] = replace(entry, is_debt_day=False)

    def update_entry(
        self, user_id: UUID, date_local: date, prayers: Mapping[Prayer, bool]
    ) -> CalendarEntry:
        entry = self.entries.get(
            (user_id, date_local), CalendarEntry(user_id=user_id, date_local=date_local)
        )
        flags = {prayer.value: marked for prayer, marked in prayers.items()}
        entry = replace(entry, **flags)
        self.entries[(user_id, date_local)] = entry
        return entry

    def count_marked(self, user_id: UUID, prayer: Prayer) -> int:
        return sum(
            1
            for (owner, _day), entry in self.entries.items()
            if owner == user_id and entry.is_marked(prayer)
        )

    def list_entries(
        self, user_id: UUID, start: date, end: date
    ) -> list[CalendarEntry]:
        return sorted(
            (
                entry
                for (owner, day), entry in self.entries.items()
                if owner == user_id and start <= day <= end
            ),
            key=lambda entry: entry.date_local,
        )


@dataclass
class RecordingCalendarRepository(InMemoryCalendarRepository):
    """Calendar repository that logs each prayer update to a shared list."""

    events: list[str] = field(default_factory=list)

    def update_entry(
        self, user_id: UUID, date_local: date, prayers: Mapping[Prayer, bool]
    ) -> CalendarEntry:
        self.events.append("mark")
        return super().update_entry(user_id, date_local, prayers)


@dataclass
class SteppingHijriConverter(HijriConverter):
    """Arithmetic converter that yields to the event loop around each call."""

    events: list[str] = field(default_factory=list)
    steps: int = 3
    inner: ArithmeticHijriConverter = field(default_factory=ArithmeticHijriConverter)

    async def _yield(self) -> None:
        for _ in range(self.steps):
            await asyncio.sleep(0)

    async def to_hijri(
        self, day: date, variant: CalendarVariant = CalendarVariant.UMM_AL_QURA
    ) -> HijriDate:
        self.events.append("convert-start")
        await self._yield()
        result = await self.inner.to_hijri(day, variant)
        self.events.append("convert-end")
        return result

    async def to_gregorian(self, hijri: HijriDate) -> date:
        self.events.append("convert-start")
        await self._yield()
        result = await self.inner.to_gregorian(hijri)
        self.events.append("convert-end")
        return result


@dataclass
class RecordingNotifier(CompletionNotifier):
    """Notifier that records completion signals."""

    completed: list[UUID] = field(default_factory=list)
    fail: bool = False

    async def notify_completed(self, record: DebtRecord) -> None:
        if self.fail:
            raise RuntimeError("notifier down")
        self.completed.append(record.user_id)


@dataclass
class FakeHijriApiClient(HijriApiClient):
    """Calendar authority fake answering from fixed tables."""

    to_hijri: dict[str, dict[str, int]] = field(default_factory=dict)
    to_gregorian: dict[tuple[int, int, int], str] = field(default_factory=dict)
    available: bool = True
    calls: int = 0

    async def convert_to_hijri(self, date_iso: str, calendar: str) -> dict[str, object]:
        self.calls += 1
        if not self.available:
            raise httpx.ConnectError("authority offline")
        return {"hijri": self.to_hijri[date_iso]}

    async def convert_to_gregorian(
        self, year: int, month: int, day: int
    ) -> dict[str, object]:
        self.calls += 1
        if not self.available:
            raise httpx.ConnectError("authority offline")
        return {"gregorian": self.to_gregorian[(year, month, day)]}


def fixed_now() -> datetime:
    return FIXED_NOW


def build_calculator(
    converter: HijriConverter | None = None, today: date = FIXED_TODAY
) -> DebtCalculator:
    resolved = converter or FallbackHijriConverter(
        primary=None, fallback=ArithmeticHijriConverter(), cache=InMemoryCache()
    )
    return DebtCalculator(
        onset_resolver=OnsetDateResolver(resolved),
        period_validator=PeriodValidator(),
        today=lambda: today,
    )


@dataclass
class QazaHarness:
    """A fully wired service over in-memory collaborators."""

    service: QazaService
    debts: InMemoryDebtRepository
    calendar: InMemoryCalendarRepository
    notifier: RecordingNotifier
    user_id: UUID


def build_harness(
    chunk_size: int = 500,
    calendar: InMemoryCalendarRepository | None = None,
    converter: HijriConverter | None = None,
) -> QazaHarness:
    debts = InMemoryDebtRepository()
    calendar = calendar or InMemoryCalendarRepository()
    notifier = RecordingNotifier()
    tracker = ProgressTracker(
        debt_repository=debts,
        calendar_repository=calendar,
        notifier=notifier,
        clock=fixed_now,
    )
    service = QazaService(
        calculator=build_calculator(converter),
        debt_repository=debts,
        materializer=CalendarMaterializer(repository=calendar, chunk_size=chunk_size),
        progress_tracker=tracker,
        clock=fixed_now,
    )
    return QazaHarness(
        service=service,
        debts=debts,
        calendar=calendar,
        notifier=notifier,
        user_id=uuid4(),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test-header.test-payload.test-signature",
        hijri_api_base_url="https://calendar.example.com/",
    )


@pytest.fixture
def harness() -> QazaHarness:
    return build_harness()


@pytest.fixture
def container(settings: Settings, harness: QazaHarness) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        hijri_converter=harness.service.calculator.onset_resolver.converter,
        qaza_service=harness.service,
        close_resources=close_resources,
    )
