"""Tests for exclusion period validation."""

from datetime import date

from qaza_tracker.domain.qaza import ExclusionPeriod, PeriodKind
from qaza_tracker.services.periods import PeriodValidator


def _hayd(start: date, end: date) -> ExclusionPeriod:
    return ExclusionPeriod(start_date=start, end_date=end, kind=PeriodKind.HAYD)


def test_one_day_overlap_names_both_periods() -> None:
    result = PeriodValidator().validate(
        [
            _hayd(date(2010, 1, 1), date(2010, 1, 7)),
            _hayd(date(2010, 1, 7), date(2010, 1, 12)),
        ]
    )

    assert not result.valid
    assert len(result.violations) == 1
    assert "Periods 1 and 2 overlap" in result.violations[0]


def test_adjacent_periods_do_not_overlap() -> None:
    result = PeriodValidator().validate(
        [
            _hayd(date(2010, 1, 1), date(2010, 1, 7)),
            _hayd(date(2010, 1, 8), date(2010, 1, 12)),
        ]
    )

    assert result.valid
    assert result.violations == []


def test_reversed_period_is_reported() -> None:
    result = PeriodValidator().validate([_hayd(date(2010, 2, 1), date(2010, 1, 1))])

    assert not result.valid
    assert result.violations == [
        "Period 1: start date 2010-02-01 is after end date 2010-01-01"
    ]


def test_every_overlapping_pair_is_reported() -> None:
    result = PeriodValidator().validate(
        [
            _hayd(date(2010, 1, 1), date(2010, 1, 31)),
            _hayd(date(2010, 1, 5), date(2010, 1, 6)),
            _hayd(date(2010, 1, 20), date(2010, 1, 21)),
        ]
    )

    assert len(result.violations) == 2
    assert "Periods 1 and 2 overlap" in result.violations[0]
    assert "Periods 1 and 3 overlap" in result.violations[1]


def test_empty_set_is_valid() -> None:
    assert PeriodValidator().validate([]).valid


def test_cross_overlaps_between_sets() -> None:
    travel = ExclusionPeriod(
        start_date=date(2010, 1, 3), end_date=date(2010, 1, 4), kind=PeriodKind.TRAVEL
    )

    overlaps = PeriodValidator().find_cross_overlaps(
        [_hayd(date(2010, 1, 1), date(2010, 1, 7))], [travel]
    )

    assert overlaps == [
        "hayd period 1 overlaps travel period 1: 2010-01-01..2010-01-07 and "
        "2010-01-03..2010-01-04"
    ]


def test_period_days_are_inclusive() -> None:
    assert _hayd(date(2010, 1, 1), date(2010, 1, 7)).days == 7
    assert _hayd(date(2010, 1, 1), date(2010, 1, 1)).days == 1
    assert _hayd(date(2010, 1, 2), date(2010, 1, 1)).days == 0
    first = _hayd(date(2010, 1, 1), date(2010, 1, 7))
    second = _hayd(date(2010, 1, 8), date(2010, 1, 14))
    assert first.days + second.days == 14
    assert not first.overlaps(second)
