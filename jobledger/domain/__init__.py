"""Domain layer definitions."""

from .ledgers import LedgerState

__all__ = [
    "LedgerState",
]
