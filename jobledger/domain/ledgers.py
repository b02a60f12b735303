"""Domain entities for cached ledger records."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from jobledger.core.schema import JobRecord, PaymentRecord


@dataclass(slots=True)
class LedgerState:
    """Jobs and payments already fetched for one account, keyed by record id."""

    ledger_id: str
    created_at: datetime
    updated_at: datetime | None = None
    jobs: dict[str, JobRecord] = field(default_factory=dict)
    payments: dict[str, PaymentRecord] = field(default_factory=dict)
