"""Domain models for qaza debt calculation and tracking."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import StrEnum
from uuid import UUID

from qaza_tracker.domain.hijri import CalendarVariant

DEFAULT_ONSET_AGE = 15


class Gender(StrEnum):
    """Gender of the person whose debt is calculated."""

    MALE = "male"
    FEMALE = "female"


class Madhab(StrEnum):
    """Supported jurisprudence schools."""

    HANAFI = "hanafi"
    SHAFII = "shafii"
    MALIKI = "maliki"
    HANBALI = "hanbali"


class Prayer(StrEnum):
    """Prayer obligations tracked per day."""

    FAJR = "fajr"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"
    WITR = "witr"


DAILY_PRAYERS = (Prayer.FAJR, Prayer.DHUHR, Prayer.ASR, Prayer.MAGHRIB, Prayer.ISHA)
ALL_PRAYERS = (*DAILY_PRAYERS, Prayer.WITR)

# The one school that counts witr as an obligatory missed prayer.
WITR_OBLIGATORY_MADHAB = Madhab.HANAFI


class PeriodKind(StrEnum):
    """Kind of an exclusion period."""

    HAYD = "hayd"
    NIFAS = "nifas"
    TRAVEL = "travel"


class DebtStatus(StrEnum):
    """Lifecycle status of a debt record."""

    ACTIVE = "active"
    COMPLETED = "completed"


class CalculationMethod(StrEnum):
    """How the debt period was derived."""

    CALCULATOR = "calculator"
    MANUAL = "manual"


@dataclass(frozen=True)
class ExclusionPeriod:
    """A closed date interval exempt from prayer."""

    start_date: date
    end_date: date
    kind: PeriodKind

    @property
    def days(self) -> int:
        """Length in days counting both the start and the end date.

        This is one more than the plain day difference: a one-day period
        (start == end) has length 1, matching the closed interval used by
        ``overlaps``. A reversed interval has length 0.
        """
        return max(0, (self.end_date - self.start_date).days + 1)

    def overlaps(self, other: "ExclusionPeriod") -> bool:
        """Closed-interval overlap test; a shared boundary date overlaps."""
        return (
            self.start_date <= other.end_date and other.start_date <= self.end_date
        )


@dataclass(frozen=True)
class ManualPeriod:
    """A debt period given directly as years and months."""

    years: int
    months: int = 0


@dataclass(frozen=True)
class CalculationRequest:
    """Inputs for a debt calculation."""

    gender: Gender
    birth_date: date | None = None
    birth_year: int | None = None
    onset_age: int = DEFAULT_ONSET_AGE
    period_end_date: date | None = None
    period_end_year: int | None = None
    count_through_today: bool = False
    madhab: Madhab = Madhab.HANAFI
    menstruation_days_per_month: int | None = None
    childbirth_count: int = 0
    postpartum_days_per_childbirth: int | None = None
    hayd_nifas_periods: tuple[ExclusionPeriod, ...] = ()
    travel_days: int = 0
    travel_periods: tuple[ExclusionPeriod, ...] = ()
    manual_period: ManualPeriod | None = None
    calendar_variant: CalendarVariant = CalendarVariant.UMM_AL_QURA


@dataclass(frozen=True)
class PrayerCounts:
    """One counter per prayer obligation."""

    fajr: int = 0
    dhuhr: int = 0
    asr: int = 0
    maghrib: int = 0
    isha: int = 0
    witr: int = 0

    def get(self, prayer: Prayer) -> int:
        """Return the counter for a prayer."""
        return getattr(self, prayer.value)

    def with_value(self, prayer: Prayer, value: int) -> "PrayerCounts":
        """Return a copy with one counter replaced."""
        return replace(self, **{prayer.value: value})

    def total(self) -> int:
        """Sum of all counters."""
        return sum(self.get(prayer) for prayer in ALL_PRAYERS)

    def as_dict(self) -> dict[str, int]:
        """Return the counters keyed by prayer name."""
        return {prayer.value: self.get(prayer) for prayer in ALL_PRAYERS}


@dataclass(frozen=True)
class TravelCounts:
    """Shortened-prayer counters derived from travel days."""

    dhuhr: int = 0
    asr: int = 0
    isha: int = 0


@dataclass(frozen=True)
class DebtBreakdown:
    """Result of a debt calculation."""

    debts: PrayerCounts
    travel: TravelCounts
    total_days: int
    excluded_days: int
    effective_days: int
    onset_date: date | None
    period_start: date
    period_end: date
    calculation_method: CalculationMethod
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class DebtRecord:
    """Persisted debt state for one user."""

    user_id: UUID
    request: CalculationRequest
    breakdown: DebtBreakdown
    progress: PrayerCounts = field(default_factory=PrayerCounts)
    status: DebtStatus = DebtStatus.ACTIVE
    calculated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def debts(self) -> PrayerCounts:
        """Per-prayer debt counts."""
        return self.breakdown.debts

    def remaining(self, prayer: Prayer) -> int:
        """Remaining debt for a prayer, never negative."""
        return max(0, self.debts.get(prayer) - self.progress.get(prayer))

    def is_fully_paid(self) -> bool:
        """True when there was debt and every prayer's progress covers it."""
        if self.debts.total() <= 0:
            return False
        return all(
            self.progress.get(prayer) >= self.debts.get(prayer)
            for prayer in ALL_PRAYERS
        )


@dataclass(frozen=True)
class CalendarEntry:
    """Tracking flags for one user and local date."""

    user_id: UUID
    date_local: date
    is_debt_day: bool = False
    fajr: bool = False
    dhuhr: bool = False
    asr: bool = False
    maghrib: bool = False
    isha: bool = False
    witr: bool = False

    def is_marked(self, prayer: Prayer) -> bool:
        """Return True when the prayer was made up on this date."""
        return getattr(self, prayer.value)


@dataclass(frozen=True)
class ProgressSummary:
    """Aggregate progress view of a debt record."""

    remaining: PrayerCounts
    total_debt: int
    total_progress: int
    percentage: int
    status: DebtStatus


@dataclass(frozen=True)
class MaterializationReport:
    """Outcome of a calendar materialization run."""

    days_in_range: int
    days_written: int
    chunks: int
    last_date: date | None
