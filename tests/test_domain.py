"""Tests for domain models."""

from datetime import date
from uuid import uuid4

import pytest

from qaza_tracker.domain.hijri import HijriDate
from qaza_tracker.domain.qaza import (
    CalculationMethod,
    CalculationRequest,
    DebtBreakdown,
    DebtRecord,
    Gender,
    Prayer,
    PrayerCounts,
    TravelCounts,
)


def test_hijri_date_rejects_out_of_range_parts() -> None:
    with pytest.raises(ValueError):
        HijriDate(1445, 13, 1)
    with pytest.raises(ValueError):
        HijriDate(1445, 1, 31)
    with pytest.raises(ValueError):
        HijriDate(0, 1, 1)


def test_hijri_date_clamps_to_month_table() -> None:
    assert HijriDate(1445, 2, 30).clamped() == HijriDate(1445, 2, 29)
    assert HijriDate(1445, 1, 30).clamped() == HijriDate(1445, 1, 30)
    assert HijriDate(1453, 12, 30).clamped() == HijriDate(1453, 12, 30)
    assert HijriDate(1452, 12, 30).clamped() == HijriDate(1452, 12, 29)
    assert HijriDate(1410, 6, 5).add_years(15).isoformat() == "1425-06-05"


def test_remaining_never_negative() -> None:
    debts = PrayerCounts(fajr=10, dhuhr=10, asr=10, maghrib=10, isha=10)
    record = DebtRecord(
        user_id=uuid4(),
        request=CalculationRequest(gender=Gender.MALE, birth_year=1990),
        breakdown=DebtBreakdown(
            debts=debts,
            travel=TravelCounts(),
            total_days=10,
            excluded_days=0,
            effective_days=10,
            onset_date=None,
            period_start=date(2020, 1, 1),
            period_end=date(2020, 1, 11),
            calculation_method=CalculationMethod.CALCULATOR,
        ),
        progress=PrayerCounts(fajr=25),
    )

    assert record.remaining(Prayer.FAJR) == 0
    assert record.remaining(Prayer.DHUHR) == 10
    assert record.remaining(Prayer.WITR) == 0
    assert not record.is_fully_paid()
