"""Application service layer for ledger records and dashboard aggregates."""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from jobledger.core import amounts, payment_stats
from jobledger.core.periods import Granularity, parse_granularity
from jobledger.core.schema import (
    PAYMENT_STATUSES,
    ChartPoint,
    DashboardSummary,
    JobAmountEntry,
    JobRecord,
    PaymentRecord,
    PaymentStatistics,
    resolve_status,
)
from jobledger.core.settings import Settings, get_settings
from jobledger.core.validation import RecordValidationError, validate_job, validate_payment
from jobledger.infrastructure import InMemoryLedgerRepository, LedgerRepository

logger = logging.getLogger(__name__)


class LedgerNotFoundError(KeyError):
    """Raised when a ledger id has never been created or populated."""


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


def parse_jobs(rows: Iterable[Mapping[str, Any] | JobRecord]) -> list[JobRecord]:
    """Turn raw rows into validated job records."""

    jobs: list[JobRecord] = []
    for index, row in enumerate(rows):
        try:
            job = row if isinstance(row, JobRecord) else JobRecord.model_validate(row)
        except ValidationError as exc:
            raise RecordValidationError(f"jobs[{index}]: {_describe_errors(exc)}") from exc
        validate_job(job)
        jobs.append(job)
    return jobs


def parse_payments(rows: Iterable[Mapping[str, Any] | PaymentRecord]) -> list[PaymentRecord]:
    """Turn raw rows into validated payment records."""

    payments: list[PaymentRecord] = []
    for index, row in enumerate(rows):
        try:
            payment = row if isinstance(row, PaymentRecord) else PaymentRecord.model_validate(row)
        except ValidationError as exc:
            raise RecordValidationError(f"payments[{index}]: {_describe_errors(exc)}") from exc
        validate_payment(payment)
        payments.append(payment)
    return payments


class LedgerService:
    """Coordinates record caching and aggregate use cases."""

    def __init__(self, repository: LedgerRepository, settings: Settings | None = None) -> None:
        self._repository = repository
        self._settings = settings or get_settings()

    @property
    def settings(self) -> Settings:
        return self._settings

    def configure(self, settings: Settings) -> None:
        self._settings = settings

    # ------------------------------------------------------------------
    # ledger lifecycle
    # ------------------------------------------------------------------
    def create_ledger(self, ledger_id: str) -> str:
        return self._repository.create_ledger(ledger_id)

    def get_ledger_overview(self, ledger_id: str) -> dict[str, object] | None:
        return self._repository.get_ledger_overview(ledger_id)

    def list_ledgers(self) -> list[dict[str, object]]:
        return self._repository.list_ledgers()

    def _require_ledger(self, ledger_id: str) -> None:
        if not self._repository.has_ledger(ledger_id):
            raise LedgerNotFoundError(ledger_id)

    # ------------------------------------------------------------------
    # record ingestion
    # ------------------------------------------------------------------
    def upsert_jobs(self, ledger_id: str, rows: Iterable[Mapping[str, Any] | JobRecord]) -> list[JobRecord]:
        jobs = parse_jobs(rows)
        stored = self._repository.upsert_jobs(ledger_id, jobs)
        logger.info("ledger %s: stored %d jobs", ledger_id, stored)
        return jobs

    def upsert_payments(
        self,
        ledger_id: str,
        rows: Iterable[Mapping[str, Any] | PaymentRecord],
    ) -> list[PaymentRecord]:
        payments = parse_payments(rows)
        stored = self._repository.upsert_payments(ledger_id, payments)
        logger.info("ledger %s: stored %d payments", ledger_id, stored)
        return payments

    # ------------------------------------------------------------------
    # record listings
    # ------------------------------------------------------------------
    def list_jobs(self, ledger_id: str, *, agency_id: str | None = None) -> list[JobRecord]:
        self._require_ledger(ledger_id)
        jobs = self._repository.list_jobs(ledger_id)
        if agency_id is not None:
            jobs = [job for job in jobs if job.agency_id == agency_id]
        return jobs

    def list_payments(
        self,
        ledger_id: str,
        *,
        job_id: str | None = None,
        status: str | None = None,
    ) -> list[PaymentRecord]:
        self._require_ledger(ledger_id)
        payments = self._repository.list_payments(ledger_id)
        if job_id is not None:
            payments = [payment for payment in payments if payment.job_id == job_id]
        if status is not None:
            wanted = resolve_status(status)
            if wanted is None:
                raise ValueError(f"unknown payment status: {status!r}; expected one of {', '.join(PAYMENT_STATUSES)}")
            payments = [payment for payment in payments if payment.status == wanted]
        return payments

    def overdue_payments(self, ledger_id: str, now: datetime) -> list[PaymentRecord]:
        payments = self.list_payments(ledger_id)
        return payment_stats.overdue_payments(payments, now, self._settings.timezone)

    def upcoming_payments(self, ledger_id: str, now: datetime, days: int | None = 30) -> list[PaymentRecord]:
        payments = self.list_payments(ledger_id)
        return payment_stats.upcoming_payments(payments, now, days, self._settings.timezone)

    # ------------------------------------------------------------------
    # aggregates
    # ------------------------------------------------------------------
    def _records(self, ledger_id: str) -> tuple[list[JobRecord], list[PaymentRecord]]:
        self._require_ledger(ledger_id)
        return self._repository.list_jobs(ledger_id), self._repository.list_payments(ledger_id)

    def received_job_view(self, ledger_id: str) -> list[JobAmountEntry]:
        jobs, payments = self._records(ledger_id)
        return amounts.build_received_job_view(jobs, payments, tz=self._settings.timezone)

    def summary(
        self,
        ledger_id: str,
        now: datetime,
        granularity: Granularity | str | None = None,
    ) -> DashboardSummary:
        jobs, payments = self._records(ledger_id)
        return summarize_records(jobs, payments, now, granularity, self._settings)

    def chart(
        self,
        ledger_id: str,
        now: datetime,
        granularity: Granularity | str | None = None,
    ) -> tuple[list[ChartPoint], Decimal]:
        entries = self.received_job_view(ledger_id)
        series = amounts.chart_series(
            entries,
            now,
            parse_granularity(granularity),
            first_weekday=self._settings.first_weekday,
            tz=self._settings.timezone,
        )
        return series, amounts.y_axis_max(series)

    def percentage_change(
        self,
        ledger_id: str,
        now: datetime,
        granularity: Granularity | str | None = None,
    ) -> Decimal:
        entries = self.received_job_view(ledger_id)
        return amounts.compute_percentage_change(
            entries,
            now,
            parse_granularity(granularity),
            first_weekday=self._settings.first_weekday,
            tz=self._settings.timezone,
            surface_declines=self._settings.surface_declines,
        )

    def jobs_for_month(self, ledger_id: str, now: datetime, label: str) -> list[JobAmountEntry]:
        entries = self.received_job_view(ledger_id)
        breakdown = amounts.build_monthly_breakdown(entries, now, tz=self._settings.timezone)
        return amounts.jobs_for_month(breakdown, label)

    def statistics(self, ledger_id: str, now: datetime) -> PaymentStatistics:
        _, payments = self._records(ledger_id)
        return payment_stats.payment_statistics(payments, now, self._settings.timezone)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()


def summarize_records(
    jobs: list[JobRecord],
    payments: list[PaymentRecord],
    now: datetime,
    granularity: Granularity | str | None,
    settings: Settings,
) -> DashboardSummary:
    return amounts.summarize(
        jobs,
        payments,
        now,
        parse_granularity(granularity),
        first_weekday=settings.first_weekday,
        tz=settings.timezone,
        surface_declines=settings.surface_declines,
    )


_repository = InMemoryLedgerRepository()
_service = LedgerService(_repository)


def get_ledger_service() -> LedgerService:
    """Return the singleton ledger service for the process."""

    return _service


def reset_ledger_state() -> None:
    """Reset the in-memory store (used in tests)."""

    _service.reset()
