"""Pydantic models for qaza API payloads."""

from datetime import date

from pydantic import BaseModel, Field

from qaza_tracker.domain.hijri import CalendarVariant
from qaza_tracker.domain.qaza import (
    DEFAULT_ONSET_AGE,
    CalculationRequest,
    ExclusionPeriod,
    Gender,
    Madhab,
    ManualPeriod,
    PeriodKind,
    Prayer,
)


class PeriodPayload(BaseModel):
    """A closed date interval."""

    start_date: date
    end_date: date
    kind: PeriodKind | None = None

    def to_domain(self, default_kind: PeriodKind) -> ExclusionPeriod:
        """Return the domain period, filling in the kind when omitted."""
        return ExclusionPeriod(
            start_date=self.start_date,
            end_date=self.end_date,
            kind=self.kind or default_kind,
        )


class ManualPeriodPayload(BaseModel):
    """A debt period given as years and months."""

    years: int
    months: int = 0


class CalculationPayload(BaseModel):
    """Body of a calculation request."""

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
    hayd_nifas_periods: list[PeriodPayload] = Field(default_factory=list)
    travel_days: int = 0
    travel_periods: list[PeriodPayload] = Field(default_factory=list)
    manual_period: ManualPeriodPayload | None = None
    calendar_variant: CalendarVariant = CalendarVariant.UMM_AL_QURA
    materialize: bool = True

    def to_domain(self) -> CalculationRequest:
        """Return the domain calculation request."""
        manual = self.manual_period
        return CalculationRequest(
            gender=self.gender,
            birth_date=self.birth_date,
            birth_year=self.birth_year,
            onset_age=self.onset_age,
            period_end_date=self.period_end_date,
            period_end_year=self.period_end_year,
            count_through_today=self.count_through_today,
            madhab=self.madhab,
            menstruation_days_per_month=self.menstruation_days_per_month,
            childbirth_count=self.childbirth_count,
            postpartum_days_per_childbirth=self.postpartum_days_per_childbirth,
            hayd_nifas_periods=tuple(
                period.to_domain(PeriodKind.HAYD) for period in self.hayd_nifas_periods
            ),
            travel_days=self.travel_days,
            travel_periods=tuple(
                period.to_domain(PeriodKind.TRAVEL) for period in self.travel_periods
            ),
            manual_period=(
                ManualPeriod(years=manual.years, months=manual.months)
                if manual
                else None
            ),
            calendar_variant=self.calendar_variant,
        )


class ProgressPayload(BaseModel):
    """Absolute made-up count for one prayer."""

    prayer: Prayer
    count: int


class CalendarMarkPayload(BaseModel):
    """Prayer flags to set on one calendar date."""

    date_local: date
    prayers: dict[Prayer, bool] = Field(min_length=1)


class MaterializePayload(BaseModel):
    """Optional resume point for calendar seeding."""

    resume_from: date | None = None
