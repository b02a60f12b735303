from __future__ import annotations

import logging
from decimal import Decimal

from jobledger.core.schema import JobRecord, PaymentRecord

logger = logging.getLogger(__name__)


class RecordValidationError(Exception):
    """Raised when an incoming job or payment record fails domain validation."""


def validate_job(job: JobRecord) -> None:
    if job.fixed_price is not None and job.fixed_price < Decimal("0"):
        raise RecordValidationError(f"job {job.id}: fixed price cannot be negative")
    if job.hourly_rate is not None and job.hourly_rate < Decimal("0"):
        raise RecordValidationError(f"job {job.id}: hourly rate cannot be negative")


def validate_payment(payment: PaymentRecord) -> None:
    if not payment.amount.is_finite():
        raise RecordValidationError(f"payment {payment.id}: amount must be a finite number")
    if payment.amount < Decimal("0"):
        raise RecordValidationError(f"payment {payment.id}: amount cannot be negative")
    if payment.paid_date is not None and payment.status != "received":
        logger.warning("payment %s has a paid date but status %s", payment.id, payment.status)
