"""Infrastructure layer for cached ledger records."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Protocol

from jobledger.core.schema import JobRecord, PaymentRecord
from jobledger.domain import LedgerState


class LedgerRepository(Protocol):
    """Storage contract for fetched job and payment records."""

    def create_ledger(self, ledger_id: str) -> str: ...

    def has_ledger(self, ledger_id: str) -> bool: ...

    def get_ledger_overview(self, ledger_id: str) -> dict[str, object] | None: ...

    def upsert_jobs(self, ledger_id: str, jobs: Iterable[JobRecord]) -> int: ...

    def upsert_payments(self, ledger_id: str, payments: Iterable[PaymentRecord]) -> int: ...

    def list_jobs(self, ledger_id: str) -> list[JobRecord]: ...

    def list_payments(self, ledger_id: str) -> list[PaymentRecord]: ...

    def list_ledgers(self) -> list[dict[str, object]]: ...

    def reset(self) -> None: ...


class InMemoryLedgerRepository:
    """Process-local record cache used by the API and tests."""

    def __init__(self) -> None:
        self._ledgers: dict[str, LedgerState] = {}

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _ensure_ledger(self, ledger_id: str) -> LedgerState:
        ledger = self._ledgers.get(ledger_id)
        if ledger is None:
            ledger = LedgerState(ledger_id=ledger_id, created_at=datetime.now(timezone.utc))
            self._ledgers[ledger_id] = ledger
        return ledger

    @staticmethod
    def _touch(ledger: LedgerState) -> None:
        ledger.updated_at = datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------
    def create_ledger(self, ledger_id: str) -> str:
        self._ensure_ledger(ledger_id)
        return ledger_id

    def has_ledger(self, ledger_id: str) -> bool:
        return ledger_id in self._ledgers

    def get_ledger_overview(self, ledger_id: str) -> dict[str, object] | None:
        ledger = self._ledgers.get(ledger_id)
        if ledger is None:
            return None
        return {
            "ledger_id": ledger.ledger_id,
            "created_at": ledger.created_at.isoformat(),
            "updated_at": ledger.updated_at.isoformat() if ledger.updated_at else None,
            "jobs": len(ledger.jobs),
            "payments": len(ledger.payments),
        }

    def upsert_jobs(self, ledger_id: str, jobs: Iterable[JobRecord]) -> int:
        ledger = self._ensure_ledger(ledger_id)
        count = 0
        for job in jobs:
            ledger.jobs[job.id] = job
            count += 1
        self._touch(ledger)
        return count

    def upsert_payments(self, ledger_id: str, payments: Iterable[PaymentRecord]) -> int:
        ledger = self._ensure_ledger(ledger_id)
        count = 0
        for payment in payments:
            ledger.payments[payment.id] = payment
            count += 1
        self._touch(ledger)
        return count

    def list_jobs(self, ledger_id: str) -> list[JobRecord]:
        ledger = self._ledgers.get(ledger_id)
        return list(ledger.jobs.values()) if ledger else []

    def list_payments(self, ledger_id: str) -> list[PaymentRecord]:
        ledger = self._ledgers.get(ledger_id)
        return list(ledger.payments.values()) if ledger else []

    def list_ledgers(self) -> list[dict[str, object]]:
        summaries: list[dict[str, object]] = []
        for ledger in self._ledgers.values():
            summaries.append(
                {
                    "ledger_id": ledger.ledger_id,
                    "jobs": len(ledger.jobs),
                    "payments": len(ledger.payments),
                }
            )
        summaries.sort(key=lambda item: str(item["ledger_id"]))
        return summaries

    def reset(self) -> None:
        self._ledgers.clear()
