from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query

from jobledger.application import (
    LedgerNotFoundError,
    get_ledger_service,
    parse_jobs,
    parse_payments,
    summarize_records,
)
from jobledger.core.periods import Granularity, parse_granularity
from jobledger.core.schema import parse_timestamp
from jobledger.core.validation import RecordValidationError

router = APIRouter(tags=["dashboard"])


def _resolve_now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def _granularity(value: str | None) -> Granularity:
    try:
        return parse_granularity(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/ledgers/{ledger_id}/summary")
async def get_summary(
    ledger_id: str,
    now: datetime | None = Query(default=None),
    granularity: str | None = Query(default=None),
) -> dict:
    service = get_ledger_service()
    period = _granularity(granularity)
    try:
        summary = service.summary(ledger_id, _resolve_now(now), period)
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    return summary.model_dump(mode="json")


@router.get("/ledgers/{ledger_id}/chart")
async def get_chart(
    ledger_id: str,
    now: datetime | None = Query(default=None),
    granularity: str | None = Query(default=None),
) -> dict:
    service = get_ledger_service()
    period = _granularity(granularity)
    try:
        series, y_axis_max = service.chart(ledger_id, _resolve_now(now), period)
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    return {
        "granularity": period.value,
        "items": [point.model_dump(mode="json") for point in series],
        "y_axis_max": float(y_axis_max),
    }


@router.get("/ledgers/{ledger_id}/change")
async def get_percentage_change(
    ledger_id: str,
    now: datetime | None = Query(default=None),
    granularity: str | None = Query(default=None),
) -> dict:
    service = get_ledger_service()
    period = _granularity(granularity)
    try:
        change = service.percentage_change(ledger_id, _resolve_now(now), period)
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    return {"granularity": period.value, "percentage_change": float(change)}


@router.get("/ledgers/{ledger_id}/months/{label}/jobs")
async def get_jobs_for_month(ledger_id: str, label: str, now: datetime | None = Query(default=None)) -> dict:
    service = get_ledger_service()
    try:
        jobs = service.jobs_for_month(ledger_id, _resolve_now(now), label)
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    return {"month": label, "items": [job.model_dump(mode="json") for job in jobs]}


@router.get("/ledgers/{ledger_id}/statistics")
async def get_statistics(ledger_id: str, now: datetime | None = Query(default=None)) -> dict:
    service = get_ledger_service()
    try:
        stats = service.statistics(ledger_id, _resolve_now(now))
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    return stats.model_dump(mode="json")


@router.post("/aggregate")
async def aggregate(payload: dict) -> dict:
    """Summarise records supplied in the request body without storing them."""

    period = _granularity(payload.get("granularity"))
    try:
        now = parse_timestamp(payload.get("now"))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        jobs = parse_jobs(payload.get("jobs") or [])
        payments = parse_payments(payload.get("payments") or [])
    except RecordValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    settings = get_ledger_service().settings
    summary = summarize_records(jobs, payments, _resolve_now(now), period, settings)
    return summary.model_dump(mode="json")
