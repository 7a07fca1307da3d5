"""Supabase repository for qaza calendar entries."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from supabase import Client

from qaza_tracker.domain.qaza import ALL_PRAYERS, CalendarEntry, Prayer
from qaza_tracker.services.materializer import CalendarRepository

_TABLE = "qaza_calendar_entries"
_CONFLICT_COLUMNS = "user_id,date_local"
_ENTRY_COLUMNS = (
    "user_id, date_local, is_debt_day, fajr, dhuhr, asr, maghrib, isha, witr"
)
_PAGE_SIZE = 1000


@dataclass
class SupabaseCalendarRepository(CalendarRepository):
    """Supabase implementation for calendar entries.

    Upserts carry only the columns being changed, so PostgREST leaves the
    remaining flags of an existing row untouched.
    """

    client: Client

    def mark_debt_days(self, user_id: UUID, days: list[date]) -> None:
        """Upsert one row per day with only the debt-day flag set."""
        if not days:
            return
        payload = [
            {
                "user_id": str(user_id),
                "date_local": day.isoformat(),
                "is_debt_day": True,
            }
            for day in days
        ]
        self.client.table(_TABLE).upsert(
            payload, on_conflict=_CONFLICT_COLUMNS
        ).execute()

    def clear_debt_days_outside(self, user_id: UUID, start: date, end: date) -> None:
        """Unset ``is_debt_day`` before start and after end; prayer flags stay."""
        (
            self.client.table(_TABLE)
            .update({"is_debt_day": False})
            .eq("user_id", str(user_id))
            .lt("date_local", start.isoformat())
            .execute()
        )
        (
            self.client.table(_TABLE)
            .update({"is_debt_day": False})
            .eq("user_id", str(user_id))
            .gt("date_local", end.isoformat())
            .execute()
        )

    def update_entry(
        self, user_id: UUID, date_local: date, prayers: Mapping[Prayer, bool]
    ) -> CalendarEntry:
        """Set the given prayer flags and return the stored entry."""
        payload: dict[str, object] = {
            "user_id": str(user_id),
            "date_local": date_local.isoformat(),
        }
        for prayer, marked in prayers.items():
            payload[prayer.value] = bool(marked)
        response = (
            self.client.table(_TABLE)
            .upsert(payload, on_conflict=_CONFLICT_COLUMNS)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update qaza calendar entry")
        return _parse_entry(response.data[0])

    def count_marked(self, user_id: UUID, prayer: Prayer) -> int:
        """Return the number of entries with the prayer marked."""
        response = (
            self.client.table(_TABLE)
            .select("date_local", count="exact")
            .eq("user_id", str(user_id))
            .eq(prayer.value, True)
            .execute()
        )
        return int(response.count or 0)

    def list_entries(
        self, user_id: UUID, start: date, end: date
    ) -> list[CalendarEntry]:
        """Return entries in the inclusive range, paging through the table."""
        entries: list[CalendarEntry] = []
        offset = 0
        while True:
            response = (
                self.client.table(_TABLE)
                .select(_ENTRY_COLUMNS)
                .eq("user_id", str(user_id))
                .gte("date_local", start.isoformat())
                .lte("date_local", end.isoformat())
                .order("date_local", desc=False)
                .range(offset, offset + _PAGE_SIZE - 1)
                .execute()
            )
            rows = response.data or []
            entries.extend(_parse_entry(row) for row in rows)
            if len(rows) < _PAGE_SIZE:
                return entries
            offset += _PAGE_SIZE


def _parse_entry(row: dict[str, Any]) -> CalendarEntry:
    flags = {prayer.value: bool(row.get(prayer.value, False)) for prayer in ALL_PRAYERS}
    return CalendarEntry(
        user_id=UUID(str(row["user_id"])),
        date_local=date.fromisoformat(str(row["date_local"])[:10]),
        is_debt_day=bool(row.get("is_debt_day", False)),
        **flags,
    )
