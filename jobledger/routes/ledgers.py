from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query

from jobledger.application import LedgerNotFoundError, get_ledger_service
from jobledger.core.validation import RecordValidationError

router = APIRouter(prefix="/ledgers", tags=["ledger"])


def _resolve_now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def _items(payload: dict) -> list[dict]:
    items = payload.get("items")
    if not isinstance(items, list):
        raise HTTPException(status_code=400, detail="items must be a list")
    return items


@router.get("")
async def list_ledgers() -> dict:
    service = get_ledger_service()
    return {"items": service.list_ledgers()}


@router.post("")
async def create_ledger(payload: dict) -> dict:
    ledger_id = payload.get("ledger_id")
    if not ledger_id:
        raise HTTPException(status_code=400, detail="ledger_id is required")
    service = get_ledger_service()
    return {"ledger_id": service.create_ledger(str(ledger_id))}


@router.get("/{ledger_id}")
async def get_ledger(ledger_id: str) -> dict:
    service = get_ledger_service()
    overview = service.get_ledger_overview(ledger_id)
    if not overview:
        raise HTTPException(status_code=404, detail="ledger not found")
    return overview


@router.post("/{ledger_id}/jobs")
async def upsert_jobs(ledger_id: str, payload: dict) -> dict:
    service = get_ledger_service()
    try:
        jobs = service.upsert_jobs(ledger_id, _items(payload))
    except RecordValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"ledger_id": ledger_id, "stored": len(jobs)}


@router.post("/{ledger_id}/payments")
async def upsert_payments(ledger_id: str, payload: dict) -> dict:
    service = get_ledger_service()
    try:
        payments = service.upsert_payments(ledger_id, _items(payload))
    except RecordValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"ledger_id": ledger_id, "stored": len(payments)}


@router.get("/{ledger_id}/jobs")
async def list_jobs(ledger_id: str, agency_id: str | None = Query(default=None)) -> dict:
    service = get_ledger_service()
    try:
        jobs = service.list_jobs(ledger_id, agency_id=agency_id)
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    return {"items": [job.model_dump(mode="json") for job in jobs]}


@router.get("/{ledger_id}/payments")
async def list_payments(
    ledger_id: str,
    job_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
) -> dict:
    service = get_ledger_service()
    try:
        payments = service.list_payments(ledger_id, job_id=job_id, status=status)
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"items": [payment.model_dump(mode="json") for payment in payments]}


@router.get("/{ledger_id}/payments/overdue")
async def list_overdue_payments(ledger_id: str, now: datetime | None = Query(default=None)) -> dict:
    service = get_ledger_service()
    try:
        payments = service.overdue_payments(ledger_id, _resolve_now(now))
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    return {"items": [payment.model_dump(mode="json") for payment in payments]}


@router.get("/{ledger_id}/payments/upcoming")
async def list_upcoming_payments(
    ledger_id: str,
    now: datetime | None = Query(default=None),
    days: int = Query(default=30, ge=0),
) -> dict:
    service = get_ledger_service()
    try:
        payments = service.upcoming_payments(ledger_id, _resolve_now(now), days)
    except LedgerNotFoundError as exc:
        raise HTTPException(status_code=404, detail="ledger not found") from exc
    return {"days": days, "items": [payment.model_dump(mode="json") for payment in payments]}
