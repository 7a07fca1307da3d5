"""Supabase repository for qaza debt records."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from supabase import Client

from qaza_tracker.domain.hijri import CalendarVariant
from qaza_tracker.domain.qaza import (
    ALL_PRAYERS,
    CalculationMethod,
    CalculationRequest,
    DebtBreakdown,
    DebtRecord,
    DebtStatus,
    ExclusionPeriod,
    Gender,
    Madhab,
    ManualPeriod,
    PeriodKind,
    PrayerCounts,
    TravelCounts,
)
from qaza_tracker.services.progress import DebtRepository

_TABLE = "qaza_debts"


@dataclass
class SupabaseDebtRepository(DebtRepository):
    """Supabase implementation for debt records, one row per user."""

    client: Client

    def get(self, user_id: UUID) -> DebtRecord | None:
        """Return the user's debt record."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_record(response.data[0])

    def save(self, record: DebtRecord) -> None:
        """Insert or replace the user's debt row."""
        response = (
            self.client.table(_TABLE)
            .upsert(_record_row(record), on_conflict="user_id")
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save qaza debt")

    def update_progress(self, record: DebtRecord) -> None:
        """Write progress counters, status and completion time."""
        payload: dict[str, object] = {
            f"{prayer.value}_progress": record.progress.get(prayer)
            for prayer in ALL_PRAYERS
        }
        payload["status"] = record.status.value
        payload["completed_at"] = _isoformat(record.completed_at)
        self.client.table(_TABLE).update(payload).eq(
            "user_id", str(record.user_id)
        ).execute()


def _record_row(record: DebtRecord) -> dict[str, object]:
    breakdown = record.breakdown
    row: dict[str, object] = {
        "user_id": str(record.user_id),
        "inputs": _request_payload(record.request),
        "calculation_method": breakdown.calculation_method.value,
        "total_days": breakdown.total_days,
        "excluded_days": breakdown.excluded_days,
        "effective_days": breakdown.effective_days,
        "onset_date": _isoformat(breakdown.onset_date),
        "period_start": breakdown.period_start.isoformat(),
        "period_end": breakdown.period_end.isoformat(),
        "travel_dhuhr": breakdown.travel.dhuhr,
        "travel_asr": breakdown.travel.asr,
        "travel_isha": breakdown.travel.isha,
        "warnings": list(breakdown.warnings),
        "status": record.status.value,
        "calculated_at": _isoformat(record.calculated_at),
        "completed_at": _isoformat(record.completed_at),
    }
    for prayer in ALL_PRAYERS:
        row[f"{prayer.value}_debt"] = breakdown.debts.get(prayer)
        row[f"{prayer.value}_progress"] = record.progress.get(prayer)
    return row


def _parse_record(row: dict[str, Any]) -> DebtRecord:
    debts = PrayerCounts(
        **{p.value: int(row.get(f"{p.value}_debt") or 0) for p in ALL_PRAYERS}
    )
    progress = PrayerCounts(
        **{p.value: int(row.get(f"{p.value}_progress") or 0) for p in ALL_PRAYERS}
    )
    breakdown = DebtBreakdown(
        debts=debts,
        travel=TravelCounts(
            dhuhr=int(row.get("travel_dhuhr") or 0),
            asr=int(row.get("travel_asr") or 0),
            isha=int(row.get("travel_isha") or 0),
        ),
        total_days=int(row.get("total_days") or 0),
        excluded_days=int(row.get("excluded_days") or 0),
        effective_days=int(row.get("effective_days") or 0),
        onset_date=_parse_date(row.get("onset_date")),
        period_start=date.fromisoformat(str(row["period_start"])[:10]),
        period_end=date.fromisoformat(str(row["period_end"])[:10]),
        calculation_method=CalculationMethod(row["calculation_method"]),
        warnings=tuple(row.get("warnings") or ()),
    )
    return DebtRecord(
        user_id=UUID(str(row["user_id"])),
        request=_parse_request(row.get("inputs") or {}),
        breakdown=breakdown,
        progress=progress,
        status=DebtStatus(row.get("status") or DebtStatus.ACTIVE.value),
        calculated_at=_parse_datetime(row.get("calculated_at")),
        completed_at=_parse_datetime(row.get("completed_at")),
    )


def _request_payload(request: CalculationRequest) -> dict[str, object]:
    manual = request.manual_period
    return {
        "gender": request.gender.value,
        "birth_date": _isoformat(request.birth_date),
        "birth_year": request.birth_year,
        "onset_age": request.onset_age,
        "period_end_date": _isoformat(request.period_end_date),
        "period_end_year": request.period_end_year,
        "count_through_today": request.count_through_today,
        "madhab": request.madhab.value,
        "menstruation_days_per_month": request.menstruation_days_per_month,
        "childbirth_count": request.childbirth_count,
        "postpartum_days_per_childbirth": request.postpartum_days_per_childbirth,
        "hayd_nifas_periods": [_period_payload(p) for p in request.hayd_nifas_periods],
        "travel_days": request.travel_days,
        "travel_periods": [_period_payload(p) for p in request.travel_periods],
        "manual_period": (
            {"years": manual.years, "months": manual.months} if manual else None
        ),
        "calendar_variant": request.calendar_variant.value,
    }


def _parse_request(payload: dict[str, Any]) -> CalculationRequest:
    manual = payload.get("manual_period")
    return CalculationRequest(
        gender=Gender(payload.get("gender", Gender.MALE.value)),
        birth_date=_parse_date(payload.get("birth_date")),
        birth_year=payload.get("birth_year"),
        onset_age=int(payload.get("onset_age", 15)),
        period_end_date=_parse_date(payload.get("period_end_date")),
        period_end_year=payload.get("period_end_year"),
        count_through_today=bool(payload.get("count_through_today", False)),
        madhab=Madhab(payload.get("madhab", Madhab.HANAFI.value)),
        menstruation_days_per_month=payload.get("menstruation_days_per_month"),
        childbirth_count=int(payload.get("childbirth_count", 0)),
        postpartum_days_per_childbirth=payload.get("postpartum_days_per_childbirth"),
        hayd_nifas_periods=tuple(
            _parse_period(item) for item in payload.get("hayd_nifas_periods") or []
        ),
        travel_days=int(payload.get("travel_days", 0)),
        travel_periods=tuple(
            _parse_period(item) for item in payload.get("travel_periods") or []
        ),
        manual_period=(
            ManualPeriod(years=int(manual["years"]), months=int(manual["months"]))
            if manual
            else None
        ),
        calendar_variant=CalendarVariant(
            payload.get("calendar_variant", CalendarVariant.UMM_AL_QURA.value)
        ),
    )


def _period_payload(period: ExclusionPeriod) -> dict[str, str]:
    return {
        "start_date": period.start_date.isoformat(),
        "end_date": period.end_date.isoformat(),
        "kind": period.kind.value,
    }


def _parse_period(payload: dict[str, Any]) -> ExclusionPeriod:
    return ExclusionPeriod(
        start_date=date.fromisoformat(payload["start_date"]),
        end_date=date.fromisoformat(payload["end_date"]),
        kind=PeriodKind(payload["kind"]),
    )


def _isoformat(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_date(value: object) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value: object) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value))
