"""Tests for Gregorian/Hijri conversion."""

import asyncio
from datetime import date

import pytest

from qaza_tracker.domain.hijri import (
    CalendarVariant,
    HijriDate,
    is_long_year,
    year_start,
)
from qaza_tracker.errors import ExternalServiceError
from qaza_tracker.services.cache import InMemoryCache
from qaza_tracker.services.calendar_conversion import (
    HIJRI_EPOCH,
    ArithmeticHijriConverter,
    AuthorityHijriConverter,
    FallbackHijriConverter,
    days_from_hijri,
    hijri_from_days,
)
from tests.conftest import FakeHijriApiClient


def test_arithmetic_epoch_is_first_of_muharram() -> None:
    converter = ArithmeticHijriConverter()

    assert asyncio.run(converter.to_hijri(HIJRI_EPOCH)) == HijriDate(1, 1, 1)
    assert asyncio.run(converter.to_gregorian(HijriDate(1, 1, 1))) == HIJRI_EPOCH


def test_arithmetic_known_date() -> None:
    converter = ArithmeticHijriConverter()

    assert asyncio.run(converter.to_hijri(date(1990, 1, 1))) == HijriDate(1410, 6, 5)


def test_arithmetic_round_trip_for_every_day() -> None:
    start = (date(1980, 1, 1) - HIJRI_EPOCH).days
    for days in range(start, start + 20_000):
        hijri = hijri_from_days(days)
        assert hijri.fits_table()
        assert days_from_hijri(hijri) == days


def test_long_year_ends_on_thirtieth_of_dhu_al_hijjah() -> None:
    last_day = year_start(1453) - 1

    assert is_long_year(1453)
    assert not is_long_year(1452)
    assert hijri_from_days(last_day) == HijriDate(1453, 12, 30)
    assert hijri_from_days(last_day - 1) == HijriDate(1453, 12, 29)
    assert days_from_hijri(HijriDate(1453, 12, 30)) == last_day
    assert hijri_from_days(last_day + 1) == HijriDate(1454, 1, 1)


def test_arithmetic_clamps_day_outside_month_table() -> None:
    converter = ArithmeticHijriConverter()

    clamped = asyncio.run(converter.to_gregorian(HijriDate(1445, 2, 30)))

    assert clamped == asyncio.run(converter.to_gregorian(HijriDate(1445, 2, 29)))


def test_authority_converter_parses_payloads() -> None:
    client = FakeHijriApiClient(
        to_hijri={"2000-01-01": {"year": 1420, "month": 9, "day": 24}},
        to_gregorian={(1435, 9, 24): "2014-07-22T00:00:00Z"},
    )
    converter = AuthorityHijriConverter(client)

    hijri = asyncio.run(converter.to_hijri(date(2000, 1, 1)))
    gregorian = asyncio.run(converter.to_gregorian(HijriDate(1435, 9, 24)))

    assert hijri == HijriDate(1420, 9, 24)
    assert gregorian == date(2014, 7, 22)


def test_authority_converter_wraps_failures() -> None:
    converter = AuthorityHijriConverter(FakeHijriApiClient(available=False))

    with pytest.raises(ExternalServiceError):
        asyncio.run(converter.to_hijri(date(2000, 1, 1)))


def test_authority_converter_rejects_malformed_payload() -> None:
    converter = AuthorityHijriConverter(FakeHijriApiClient())

    with pytest.raises(ExternalServiceError):
        asyncio.run(converter.to_hijri(date(2000, 1, 1)))


def test_fallback_uses_authority_and_caches() -> None:
    client = FakeHijriApiClient(
        to_hijri={"2000-01-01": {"year": 1420, "month": 9, "day": 24}},
    )
    converter = FallbackHijriConverter(
        primary=AuthorityHijriConverter(client),
        fallback=ArithmeticHijriConverter(),
        cache=InMemoryCache(),
    )

    first = asyncio.run(converter.to_hijri(date(2000, 1, 1)))
    second = asyncio.run(converter.to_hijri(date(2000, 1, 1)))

    assert first == second == HijriDate(1420, 9, 24)
    assert client.calls == 1


def test_fallback_degrades_to_arithmetic_without_caching() -> None:
    client = FakeHijriApiClient(available=False)
    cache = InMemoryCache()
    converter = FallbackHijriConverter(
        primary=AuthorityHijriConverter(client),
        fallback=ArithmeticHijriConverter(),
        cache=cache,
    )

    result = asyncio.run(converter.to_hijri(date(1990, 1, 1), CalendarVariant.ISLAMIC))
    asyncio.run(converter.to_hijri(date(1990, 1, 1), CalendarVariant.ISLAMIC))

    assert result == HijriDate(1410, 6, 5)
    assert client.calls == 2
    assert len(cache) == 0


def test_fallback_without_authority_is_arithmetic() -> None:
    converter = FallbackHijriConverter(
        primary=None, fallback=ArithmeticHijriConverter(), cache=InMemoryCache()
    )

    assert asyncio.run(converter.to_gregorian(HijriDate(1, 1, 1))) == HIJRI_EPOCH
