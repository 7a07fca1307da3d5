"""Gregorian/Hijri date conversion.

Two interchangeable implementations answer the same ``HijriConverter``
interface: the calendar authority (accurate, remote, unreliable) and a local
arithmetic approximation (deterministic, never fails). ``FallbackHijriConverter``
picks between them per call, so callers never know which one answered.

The arithmetic mode is a degraded mode. It uses a fixed epoch, a mean year of
354.367 days and an alternating 30/29 month table whose last month gains a
day in 355-day years, so it can be a day or two
off the observed calendar. Its answers are never cached or reported as
authoritative.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol

import httpx

from qaza_tracker.adapters.hijri_api_client import HijriApiClient
from qaza_tracker.domain.hijri import (
    MEAN_YEAR_DAYS,
    MONTHS_IN_YEAR,
    CalendarVariant,
    HijriDate,
    year_start,
)
from qaza_tracker.errors import ExternalServiceError
from qaza_tracker.services.cache import Cache

# 1 Muharram 1 AH in the proleptic Gregorian calendar.
HIJRI_EPOCH = date(622, 7, 16)

_logger = logging.getLogger(__name__)


class HijriConverter(Protocol):
    """Bidirectional Gregorian/Hijri conversion."""

    async def to_hijri(
        self, day: date, variant: CalendarVariant = CalendarVariant.UMM_AL_QURA
    ) -> HijriDate:
        """Convert a Gregorian date to Hijri."""

    async def to_gregorian(self, hijri: HijriDate) -> date:
        """Convert a Hijri date to Gregorian."""


@dataclass
class ArithmeticHijriConverter(HijriConverter):
    """Deterministic approximation used when the authority is unavailable."""

    async def to_hijri(
        self, day: date, variant: CalendarVariant = CalendarVariant.UMM_AL_QURA
    ) -> HijriDate:
        """Approximate the Hijri date; the variant is ignored."""
        return hijri_from_days(max(0, (day - HIJRI_EPOCH).days))

    async def to_gregorian(self, hijri: HijriDate) -> date:
        """Approximate the Gregorian date, clamping the day to the month table."""
        return HIJRI_EPOCH + timedelta(days=days_from_hijri(hijri.clamped()))


def hijri_from_days(days_since_epoch: int) -> HijriDate:
    """Map days since the epoch to a Hijri date using the arithmetic model.

    Every day of a year gets its own date: the day after 29 Dhu al-Hijjah in
    a 355-day year is 30 Dhu al-Hijjah.
    """
    years_elapsed = math.floor(days_since_epoch / MEAN_YEAR_DAYS)
    year = years_elapsed + 1
    day_of_year = days_since_epoch - year_start(years_elapsed)
    for month in range(1, MONTHS_IN_YEAR):
        length = HijriDate(year=year, month=month, day=1).month_length
        if day_of_year < length:
            return HijriDate(year=year, month=month, day=day_of_year + 1)
        day_of_year -= length
    return HijriDate(year=year, month=MONTHS_IN_YEAR, day=day_of_year + 1)


def days_from_hijri(hijri: HijriDate) -> int:
    """Map a Hijri date that fits the modeled month lengths to days since the epoch."""
    preceding_months = sum(
        HijriDate(year=hijri.year, month=month, day=1).month_length
        for month in range(1, hijri.month)
    )
    return year_start(hijri.year - 1) + preceding_months + hijri.day - 1


@dataclass
class AuthorityHijriConverter(HijriConverter):
    """Converter backed by the remote calendar authority."""

    client: HijriApiClient

    async def to_hijri(
        self, day: date, variant: CalendarVariant = CalendarVariant.UMM_AL_QURA
    ) -> HijriDate:
        """Ask the authority for the Hijri date."""
        try:
            payload = await self.client.convert_to_hijri(
                day.isoformat(), variant.value
            )
            raw = payload["hijri"]
            return HijriDate(
                year=int(raw["year"]), month=int(raw["month"]), day=int(raw["day"])
            )
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError(
                f"Hijri conversion failed for {day.isoformat()}: {exc}"
            ) from exc

    async def to_gregorian(self, hijri: HijriDate) -> date:
        """Ask the authority for the Gregorian date."""
        try:
            payload = await self.client.convert_to_gregorian(
                hijri.year, hijri.month, hijri.day
            )
            return date.fromisoformat(str(payload["gregorian"])[:10])
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError(
                f"Gregorian conversion failed for {hijri.isoformat()}: {exc}"
            ) from exc


@dataclass
class FallbackHijriConverter(HijriConverter):
    """Try the authority first and fall back to arithmetic on any failure."""

    primary: HijriConverter | None
    fallback: HijriConverter
    cache: Cache
    cache_ttl_seconds: int = 86400

    async def to_hijri(
        self, day: date, variant: CalendarVariant = CalendarVariant.UMM_AL_QURA
    ) -> HijriDate:
        """Convert to Hijri, never raising."""
        cache_key = f"hijri:to:{variant.value}:{day.isoformat()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, HijriDate):
            return cached
        if self.primary is not None:
            try:
                result = await self.primary.to_hijri(day, variant)
            except ExternalServiceError as exc:
                _logger.debug(
                    "Calendar authority unavailable, using arithmetic: %s", exc
                )
            else:
                self.cache.set(cache_key, result, ttl_seconds=self.cache_ttl_seconds)
                return result
        return await self.fallback.to_hijri(day, variant)

    async def to_gregorian(self, hijri: HijriDate) -> date:
        """Convert to Gregorian, never raising."""
        cache_key = f"hijri:from:{hijri.isoformat()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, date):
            return cached
        if self.primary is not None:
            try:
                result = await self.primary.to_gregorian(hijri)
            except ExternalServiceError as exc:
                _logger.debug(
                    "Calendar authority unavailable, using arithmetic: %s", exc
                )
            else:
                self.cache.set(cache_key, result, ttl_seconds=self.cache_ttl_seconds)
                return result
        return await self.fallback.to_gregorian(hijri)
