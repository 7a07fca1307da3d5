"""Onset-of-obligation (bulugh) date resolution."""

import logging
from dataclasses import dataclass
from datetime import date

from qaza_tracker.domain.hijri import CalendarVariant
from qaza_tracker.services.calendar_conversion import HijriConverter

_logger = logging.getLogger(__name__)


@dataclass
class OnsetDateResolver:
    """Resolve the date prayer became obligatory, counting age in lunar years.

    A Hijri year is about eleven days shorter than a Gregorian one, so adding
    solar years to the birth date would start the debt period months too late.
    The birth date is converted to Hijri, the age is added to the year and the
    result is converted back. Only round-trip consistency of the converter
    matters here, so the arithmetic fallback gives a usable answer too.
    """

    converter: HijriConverter

    async def resolve_onset_date(
        self,
        birth_date: date,
        onset_age: int,
        variant: CalendarVariant = CalendarVariant.UMM_AL_QURA,
    ) -> date:
        """Return the Gregorian date on which the person reached onset age."""
        hijri_birth = await self.converter.to_hijri(birth_date, variant)
        onset = await self.converter.to_gregorian(hijri_birth.add_years(onset_age))
        _logger.debug(
            "Resolved onset: birth=%s hijri=%s age=%s onset=%s",
            birth_date,
            hijri_birth.isoformat(),
            onset_age,
            onset,
        )
        return onset
