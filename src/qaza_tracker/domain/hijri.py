"""Hijri calendar domain models."""

import math
from dataclasses import dataclass
from enum import StrEnum
from fractions import Fraction

MONTHS_IN_YEAR = 12
MAX_MONTH_LENGTH = 30

# Muharram .. Dhu al-Hijjah, alternating 30/29; long years add a day to the last.
MONTH_LENGTHS = (30, 29, 30, 29, 30, 29, 30, 29, 30, 29, 30, 29)
MEAN_YEAR_DAYS = Fraction("354.367")
SHORT_YEAR_DAYS = sum(MONTH_LENGTHS)


def year_start(years_elapsed: int) -> int:
    """Day offset from 1 Muharram 1 AH at which a modeled year begins."""
    return math.ceil(years_elapsed * MEAN_YEAR_DAYS)


def is_long_year(year: int) -> bool:
    """True when the modeled year has 355 days, the extra one ending Dhu al-Hijjah."""
    return year_start(year) - year_start(year - 1) > SHORT_YEAR_DAYS


class CalendarVariant(StrEnum):
    """Hijri calendar variants understood by the calendar authority."""

    UMM_AL_QURA = "ummalqura"
    ISLAMIC = "islamic"


@dataclass(frozen=True)
class HijriDate:
    """A date in the Hijri calendar."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        if self.year < 1:
            raise ValueError(f"Hijri year must be positive, got {self.year}")
        if not 1 <= self.month <= MONTHS_IN_YEAR:
            raise ValueError(f"Hijri month must be 1..12, got {self.month}")
        if not 1 <= self.day <= MAX_MONTH_LENGTH:
            raise ValueError(f"Hijri day must be 1..30, got {self.day}")

    @property
    def month_length(self) -> int:
        """Modeled length of this date's month.

        Dhu al-Hijjah has 30 days in long years and 29 otherwise.
        """
        if self.month == MONTHS_IN_YEAR and is_long_year(self.year):
            return MAX_MONTH_LENGTH
        return MONTH_LENGTHS[self.month - 1]

    def fits_table(self) -> bool:
        """Return True when the day is within the modeled month length."""
        return self.day <= self.month_length

    def clamped(self) -> "HijriDate":
        """Return the date with its day clamped to the modeled month length."""
        if self.fits_table():
            return self
        return HijriDate(year=self.year, month=self.month, day=self.month_length)

    def add_years(self, years: int) -> "HijriDate":
        """Shift the year component only."""
        return HijriDate(year=self.year + years, month=self.month, day=self.day)

    def isoformat(self) -> str:
        """Return the date as YYYY-MM-DD."""
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
