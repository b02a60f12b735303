"""Infrastructure layer exports."""

from .ledgers import InMemoryLedgerRepository, LedgerRepository

__all__ = [
    "InMemoryLedgerRepository",
    "LedgerRepository",
]
