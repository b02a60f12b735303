"""Overdue and upcoming payment classification."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from jobledger.core.periods import to_local
from jobledger.core.schema import PaymentRecord, PaymentStatistics

OPEN_STATUSES = frozenset({"pending", "invoiced"})


def is_overdue(payment: PaymentRecord, now: datetime, tz: str = "UTC") -> bool:
    if payment.status not in OPEN_STATUSES:
        return False
    return to_local(payment.due_date, tz) < to_local(now, tz)


def is_upcoming(payment: PaymentRecord, now: datetime, days: int | None = None, tz: str = "UTC") -> bool:
    if payment.status not in OPEN_STATUSES:
        return False
    due = to_local(payment.due_date, tz)
    reference = to_local(now, tz)
    if due < reference:
        return False
    if days is not None and due > reference + timedelta(days=days):
        return False
    return True


def overdue_payments(payments: Iterable[PaymentRecord], now: datetime, tz: str = "UTC") -> list[PaymentRecord]:
    selected = [payment for payment in payments if is_overdue(payment, now, tz)]
    selected.sort(key=lambda payment: to_local(payment.due_date, tz))
    return selected


def upcoming_payments(
    payments: Iterable[PaymentRecord],
    now: datetime,
    days: int | None = 30,
    tz: str = "UTC",
) -> list[PaymentRecord]:
    selected = [payment for payment in payments if is_upcoming(payment, now, days, tz)]
    selected.sort(key=lambda payment: to_local(payment.due_date, tz))
    return selected


def payment_statistics(payments: Iterable[PaymentRecord], now: datetime, tz: str = "UTC") -> PaymentStatistics:
    stats = PaymentStatistics()
    for payment in payments:
        stats.total_amount += payment.amount
        stats.total_count += 1
        if payment.status == "received":
            stats.received_amount += payment.amount
            stats.received_count += 1
        elif payment.status in OPEN_STATUSES:
            stats.pending_amount += payment.amount
            stats.pending_count += 1
        if is_overdue(payment, now, tz):
            stats.overdue_amount += payment.amount
            stats.overdue_count += 1
    return stats


__all__ = [
    "is_overdue",
    "is_upcoming",
    "overdue_payments",
    "upcoming_payments",
    "payment_statistics",
]
