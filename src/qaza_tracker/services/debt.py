"""Missed-prayer debt calculation."""

import calendar
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime

from qaza_tracker.domain.qaza import (
    WITR_OBLIGATORY_MADHAB,
    CalculationMethod,
    CalculationRequest,
    DebtBreakdown,
    Gender,
    ManualPeriod,
    PeriodKind,
    PrayerCounts,
    TravelCounts,
)
from qaza_tracker.errors import ConfigurationError, ValidationError
from qaza_tracker.services.onset import OnsetDateResolver
from qaza_tracker.services.periods import PeriodValidator

AVERAGE_MONTH_DAYS = 30.44
DEFAULT_MENSTRUATION_DAYS = 7
DEFAULT_POSTPARTUM_DAYS = 40
MIN_ONSET_AGE = 10
MAX_ONSET_AGE = 20
MIN_YEAR = 1900
MAX_MENSTRUATION_DAYS = 15
MAX_POSTPARTUM_DAYS = 60
MAX_MANUAL_MONTHS = 11
# Manual periods are converted with fixed month and year lengths rather than
# calendar arithmetic; see DESIGN.md.
MANUAL_YEAR_DAYS = 365
MANUAL_MONTH_DAYS = 30
MONTHS_IN_YEAR = 12

_EXCLUSION_KINDS = {PeriodKind.HAYD, PeriodKind.NIFAS}

_logger = logging.getLogger(__name__)


def utc_today() -> date:
    """Return the current UTC date."""
    return datetime.now(tz=UTC).date()


@dataclass
class DebtCalculator:
    """Compute per-prayer debt from a calculation request.

    The calculation is deterministic for fixed inputs, a fixed ``today`` and a
    fixed converter behaviour. Every exclusion source is additive, so raising
    any exclusion input can only lower the effective days.
    """

    onset_resolver: OnsetDateResolver
    period_validator: PeriodValidator
    today: Callable[[], date] = utc_today

    async def calculate(self, request: CalculationRequest) -> DebtBreakdown:
        """Validate the request and return the debt breakdown."""
        today = self.today()
        if (
            request.manual_period is None
            and request.birth_date is None
            and request.birth_year is None
        ):
            raise ConfigurationError(
                "A birth date, a birth year or a manual period is required"
            )
        violations = self._collect_violations(request, today)
        if violations:
            raise ValidationError(violations)
        warnings = self._collect_warnings(request)
        for warning in warnings:
            _logger.warning("Qaza calculation warning: %s", warning)

        onset_date: date | None = None
        if request.manual_period is not None:
            period_start = _months_before(today, request.manual_period)
            method = CalculationMethod.MANUAL
        else:
            birth = request.birth_date or date(request.birth_year or MIN_YEAR, 1, 1)
            onset_date = await self.onset_resolver.resolve_onset_date(
                birth, request.onset_age, request.calendar_variant
            )
            period_start = onset_date
            method = CalculationMethod.CALCULATOR
        period_end = _resolve_period_end(request, today)

        if request.manual_period is not None:
            total_days = (
                request.manual_period.years * MANUAL_YEAR_DAYS
                + request.manual_period.months * MANUAL_MONTH_DAYS
            )
        else:
            total_days = max(0, (period_end - period_start).days)

        travel_days = _travel_days(request)
        excluded_days = _female_excluded_days(request, total_days) + travel_days
        effective_days = max(0, total_days - excluded_days)

        witr = effective_days if request.madhab == WITR_OBLIGATORY_MADHAB else 0
        debts = PrayerCounts(
            fajr=effective_days,
            dhuhr=effective_days,
            asr=effective_days,
            maghrib=effective_days,
            isha=effective_days,
            witr=witr,
        )
        return DebtBreakdown(
            debts=debts,
            travel=TravelCounts(dhuhr=travel_days, asr=travel_days, isha=travel_days),
            total_days=total_days,
            excluded_days=excluded_days,
            effective_days=effective_days,
            onset_date=onset_date,
            period_start=period_start,
            period_end=period_end,
            calculation_method=method,
            warnings=tuple(warnings),
        )

    def _collect_violations(  # noqa: PLR0912
        self, request: CalculationRequest, today: date
    ) -> list[str]:
        violations: list[str] = []
        if not MIN_ONSET_AGE <= request.onset_age <= MAX_ONSET_AGE:
            violations.append(
                f"onset_age must be between {MIN_ONSET_AGE} and {MAX_ONSET_AGE}, "
                f"got {request.onset_age}"
            )
        if request.birth_year is not None and not (
            MIN_YEAR <= request.birth_year <= today.year
        ):
            violations.append(
                f"birth_year must be between {MIN_YEAR} and {today.year}, "
                f"got {request.birth_year}"
            )
        if request.birth_date is not None and request.birth_date > today:
            violations.append(
                f"birth_date {request.birth_date.isoformat()} is in the future"
            )
        if request.period_end_year is not None and not (
            MIN_YEAR <= request.period_end_year <= today.year
        ):
            violations.append(
                f"period_end_year must be between {MIN_YEAR} and {today.year}, "
                f"got {request.period_end_year}"
            )
        menstruation = request.menstruation_days_per_month
        if menstruation is not None and not 0 <= menstruation <= MAX_MENSTRUATION_DAYS:
            violations.append(
                f"menstruation_days_per_month must be between 0 and "
                f"{MAX_MENSTRUATION_DAYS}, got {menstruation}"
            )
        if request.childbirth_count < 0:
            violations.append("childbirth_count must not be negative")
        postpartum = request.postpartum_days_per_childbirth
        if postpartum is not None and not 0 <= postpartum <= MAX_POSTPARTUM_DAYS:
            violations.append(
                f"postpartum_days_per_childbirth must be between 0 and "
                f"{MAX_POSTPARTUM_DAYS}, got {postpartum}"
            )
        if request.travel_days < 0:
            violations.append("travel_days must not be negative")
        manual = request.manual_period
        if manual is not None:
            if manual.years < 0:
                violations.append("manual_period.years must not be negative")
            if not 0 <= manual.months <= MAX_MANUAL_MONTHS:
                violations.append(
                    f"manual_period.months must be between 0 and {MAX_MANUAL_MONTHS}, "
                    f"got {manual.months}"
                )
            elif _start_month_index(today, manual) < MIN_YEAR * MONTHS_IN_YEAR:
                violations.append(
                    f"manual_period reaches back before {MIN_YEAR}, "
                    f"got {manual.years} years {manual.months} months"
                )
        for index, period in enumerate(request.hayd_nifas_periods):
            if period.kind not in _EXCLUSION_KINDS:
                violations.append(
                    f"hayd/nifas periods: period {index + 1} has kind "
                    f"{period.kind.value}"
                )
        for index, period in enumerate(request.travel_periods):
            if period.kind != PeriodKind.TRAVEL:
                violations.append(
                    f"travel periods: period {index + 1} has kind {period.kind.value}"
                )
        for label, periods in (
            ("hayd/nifas periods", request.hayd_nifas_periods),
            ("travel periods", request.travel_periods),
        ):
            result = self.period_validator.validate(periods)
            violations.extend(f"{label}: {item}" for item in result.violations)
        return violations

    def _collect_warnings(self, request: CalculationRequest) -> list[str]:
        warnings: list[str] = []
        if request.gender == Gender.MALE and request.hayd_nifas_periods:
            warnings.append("hayd/nifas periods are ignored for male users")
        if request.gender == Gender.FEMALE:
            has_hayd = any(
                period.kind == PeriodKind.HAYD for period in request.hayd_nifas_periods
            )
            if has_hayd and request.menstruation_days_per_month != 0:
                warnings.append(
                    "menstruation_days_per_month and explicit hayd periods are both "
                    "counted; the same days may be excluded twice"
                )
            warnings.extend(
                self.period_validator.find_cross_overlaps(
                    request.hayd_nifas_periods, request.travel_periods
                )
            )
        if request.travel_days and request.travel_periods:
            warnings.append(
                "travel_days and explicit travel periods are both counted; the same "
                "days may be excluded twice"
            )
        return warnings


def _start_month_index(today: date, period: ManualPeriod) -> int:
    return (
        today.year * MONTHS_IN_YEAR
        + today.month
        - 1
        - (period.years * MONTHS_IN_YEAR + period.months)
    )


def _months_before(today: date, period: ManualPeriod) -> date:
    year, month_index = divmod(_start_month_index(today, period), MONTHS_IN_YEAR)
    last_day = calendar.monthrange(year, month_index + 1)[1]
    return date(year, month_index + 1, min(today.day, last_day))


def _resolve_period_end(request: CalculationRequest, today: date) -> date:
    if request.count_through_today:
        return today
    if request.period_end_date is not None:
        return request.period_end_date
    if request.period_end_year is not None:
        return date(request.period_end_year, 1, 1)
    return today


def _female_excluded_days(request: CalculationRequest, total_days: int) -> int:
    if request.gender != Gender.FEMALE:
        return 0
    menstruation = request.menstruation_days_per_month
    if menstruation is None:
        menstruation = DEFAULT_MENSTRUATION_DAYS
    postpartum = request.postpartum_days_per_childbirth
    if postpartum is None:
        postpartum = DEFAULT_POSTPARTUM_DAYS
    total_months = total_days / AVERAGE_MONTH_DAYS
    menstruation_days = math.floor(total_months * menstruation)
    postpartum_days = request.childbirth_count * postpartum
    explicit_days = sum(period.days for period in request.hayd_nifas_periods)
    return menstruation_days + postpartum_days + explicit_days


def _travel_days(request: CalculationRequest) -> int:
    return request.travel_days + sum(period.days for period in request.travel_periods)
