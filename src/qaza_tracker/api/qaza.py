"""Qaza debt endpoints, scoped to the user named in the X-User-Id header."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Header, HTTPException, Request, status

from qaza_tracker.api.models import (
    CalculationPayload,
    CalendarMarkPayload,
    MaterializePayload,
    ProgressPayload,
)

if TYPE_CHECKING:
    from datetime import datetime

    from qaza_tracker.containers import AppContainer
    from qaza_tracker.domain.qaza import (
        CalendarEntry,
        DebtRecord,
        MaterializationReport,
        ProgressSummary,
    )

router = APIRouter(prefix="/qaza", tags=["qaza"])


@router.get("")
async def get_debt(
    request: Request, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Return the stored debt record."""
    container: AppContainer = request.app.state.container
    record = container.qaza_service.get_record(x_user_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No qaza debt calculated yet; calculate first",
        )
    return {"debt": _record_payload(record)}


@router.post("/calculate")
async def calculate(
    payload: CalculationPayload, request: Request, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Calculate the debt, persist it and seed the calendar."""
    container: AppContainer = request.app.state.container
    outcome = await container.qaza_service.calculate(
        x_user_id, payload.to_domain(), materialize=payload.materialize
    )
    return {
        "debt": _record_payload(outcome.record),
        "materialization": (
            _report_payload(outcome.materialization)
            if outcome.materialization
            else None
        ),
        "resume_from": _isoformat(outcome.resume_from),
    }


@router.patch("/progress")
async def set_progress(
    payload: ProgressPayload, request: Request, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Set the made-up count for one prayer."""
    container: AppContainer = request.app.state.container
    record = await container.qaza_service.set_progress(
        x_user_id, payload.prayer, payload.count
    )
    return {"debt": _record_payload(record)}


@router.post("/calendar/mark")
async def mark_calendar(
    payload: CalendarMarkPayload, request: Request, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Mark prayers as made up on a date."""
    container: AppContainer = request.app.state.container
    entry, record = await container.qaza_service.mark_day(
        x_user_id, payload.date_local, payload.prayers
    )
    return {"entry": _entry_payload(entry), "debt": _record_payload(record)}


@router.get("/calendar")
async def list_calendar(
    request: Request,
    x_user_id: UUID = Header(),
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, object]:
    """Return calendar entries, defaulting to the debt period."""
    container: AppContainer = request.app.state.container
    entries = container.qaza_service.list_calendar(x_user_id, start_date, end_date)
    return {"entries": [_entry_payload(entry) for entry in entries]}


@router.post("/calendar/materialize")
async def materialize_calendar(
    request: Request,
    x_user_id: UUID = Header(),
    payload: MaterializePayload | None = None,
) -> dict[str, object]:
    """Seed or resume seeding the calendar for the stored debt period."""
    container: AppContainer = request.app.state.container
    resume_from = payload.resume_from if payload else None
    report = await container.qaza_service.materialize(x_user_id, resume_from)
    return {"materialization": _report_payload(report)}


@router.post("/reconcile")
async def reconcile(
    request: Request, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Recount every progress counter from the calendar."""
    container: AppContainer = request.app.state.container
    record = await container.qaza_service.reconcile(x_user_id)
    return {"debt": _record_payload(record)}


@router.get("/summary")
async def summary(request: Request, x_user_id: UUID = Header()) -> dict[str, object]:
    """Return remaining debt and overall percentage."""
    container: AppContainer = request.app.state.container
    return {"summary": _summary_payload(container.qaza_service.summary(x_user_id))}


def _record_payload(record: DebtRecord) -> dict[str, object]:
    breakdown = record.breakdown
    return {
        "user_id": str(record.user_id),
        "status": record.status.value,
        "calculation_method": breakdown.calculation_method.value,
        "debts": breakdown.debts.as_dict(),
        "progress": record.progress.as_dict(),
        "travel": {
            "dhuhr": breakdown.travel.dhuhr,
            "asr": breakdown.travel.asr,
            "isha": breakdown.travel.isha,
        },
        "total_days": breakdown.total_days,
        "excluded_days": breakdown.excluded_days,
        "effective_days": breakdown.effective_days,
        "onset_date": _isoformat(breakdown.onset_date),
        "period_start": breakdown.period_start.isoformat(),
        "period_end": breakdown.period_end.isoformat(),
        "warnings": list(breakdown.warnings),
        "calculated_at": _isoformat(record.calculated_at),
        "completed_at": _isoformat(record.completed_at),
    }


def _entry_payload(entry: CalendarEntry) -> dict[str, object]:
    return {
        "date_local": entry.date_local.isoformat(),
        "is_debt_day": entry.is_debt_day,
        "fajr": entry.fajr,
        "dhuhr": entry.dhuhr,
        "asr": entry.asr,
        "maghrib": entry.maghrib,
        "isha": entry.isha,
        "witr": entry.witr,
    }


def _report_payload(report: MaterializationReport) -> dict[str, object]:
    return {
        "days_in_range": report.days_in_range,
        "days_written": report.days_written,
        "chunks": report.chunks,
        "last_date": _isoformat(report.last_date),
    }


def _summary_payload(summary: ProgressSummary) -> dict[str, object]:
    return {
        "remaining": summary.remaining.as_dict(),
        "total_debt": summary.total_debt,
        "total_progress": summary.total_progress,
        "percentage": summary.percentage,
        "status": summary.status.value,
    }


def _isoformat(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
