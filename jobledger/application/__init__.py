"""Application services."""

from .ledgers import (
    LedgerNotFoundError,
    LedgerService,
    get_ledger_service,
    parse_jobs,
    parse_payments,
    reset_ledger_state,
    summarize_records,
)

__all__ = [
    "LedgerNotFoundError",
    "LedgerService",
    "get_ledger_service",
    "parse_jobs",
    "parse_payments",
    "reset_ledger_state",
    "summarize_records",
]
