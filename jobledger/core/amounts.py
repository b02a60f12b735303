"""Job amount aggregation used by the dashboard and chart endpoints.

Everything here is a pure function of the job and payment records plus an
explicit ``now``.  Only payments with status ``received`` feed the charts and
percentage indicators; the status buckets cover every payment.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, Sequence

from jobledger.core.client_names import extract_client_name
from jobledger.core.payment_stats import payment_statistics
from jobledger.core.periods import (
    PERIOD_TABLE,
    Granularity,
    add_months,
    parse_granularity,
    period_bounds,
    period_label,
    shift,
    start_of,
    to_local,
)
from jobledger.core.schema import (
    ChartPoint,
    DashboardSummary,
    JobAmountEntry,
    JobRecord,
    MonthlyBreakdown,
    PaymentRecord,
    StatusBucketTotals,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

_BUCKET_FIELDS = {
    "pending": "pending",
    "invoiced": "invoiced",
    "partiallyPaid": "partially_paid",
    "received": "received",
    "overdue": "overdue",
    "cancelled": "cancelled",
}


@dataclass
class _MonthSlot:
    start: datetime
    total: Decimal = ZERO
    jobs: list[JobAmountEntry] = field(default_factory=list)


def _quantize(value: Decimal) -> Decimal:
    with localcontext() as ctx:
        # quantize needs every integer digit plus two decimals inside the context
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _percent(current: Decimal, prior: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, current.adjusted() - prior.adjusted() + 8)
        ratio = (current - prior) / prior * HUNDRED
    return _quantize(ratio)


def _fallback_percent(current: Decimal) -> Decimal:
    return _quantize(HUNDRED if current > ZERO else ZERO)


def _localized(entries: Iterable[JobAmountEntry], tz: str) -> list[tuple[datetime, Decimal]]:
    return [(to_local(entry.date, tz), entry.amount) for entry in entries]


def _period_total(
    points: Sequence[tuple[datetime, Decimal]],
    anchor: datetime,
    granularity: Granularity,
    first_weekday: int,
) -> Decimal:
    start, end = period_bounds(anchor, granularity, first_weekday)
    return sum((amount for moment, amount in points if start <= moment < end), ZERO)


def _trailing_totals(points: Sequence[tuple[datetime, Decimal]], reference: datetime) -> tuple[Decimal, Decimal]:
    window = PERIOD_TABLE["trailing"]
    current_start = reference - timedelta(days=int(window["window_days"]))
    previous_start = reference - timedelta(days=int(window["previous_start_days"]))
    previous_end = reference - timedelta(days=int(window["previous_end_days"]))

    current = sum((amount for moment, amount in points if current_start <= moment <= reference), ZERO)
    previous = sum((amount for moment, amount in points if previous_start <= moment <= previous_end), ZERO)
    return current, previous


# ----------------------------------------------------------------------
# status buckets
# ----------------------------------------------------------------------
def categorize_amounts(payments: Iterable[PaymentRecord]) -> StatusBucketTotals:
    totals = dict.fromkeys(_BUCKET_FIELDS.values(), ZERO)
    for payment in payments:
        bucket = _BUCKET_FIELDS[payment.status]
        totals[bucket] += payment.amount
    return StatusBucketTotals(**totals)


# ----------------------------------------------------------------------
# received job view
# ----------------------------------------------------------------------
def _latest_paid_date(payments: Iterable[PaymentRecord], tz: str) -> datetime | None:
    paid = [payment.paid_date for payment in payments if payment.paid_date is not None]
    if not paid:
        return None
    return max(paid, key=lambda moment: to_local(moment, tz))


def build_received_job_view(
    jobs: Iterable[JobRecord],
    payments: Iterable[PaymentRecord],
    *,
    tz: str = "UTC",
) -> list[JobAmountEntry]:
    """One entry per job that has at least one received payment."""

    received_by_job: dict[str, list[PaymentRecord]] = defaultdict(list)
    for payment in payments:
        if payment.status == "received":
            received_by_job[payment.job_id].append(payment)

    entries: list[JobAmountEntry] = []
    for job in jobs:
        job_payments = received_by_job.get(job.id)
        if not job_payments:
            continue
        entries.append(
            JobAmountEntry(
                job_id=job.id,
                title=job.title,
                amount=sum((payment.amount for payment in job_payments), ZERO),
                client_name=extract_client_name(job.title, job.notes),
                date=_latest_paid_date(job_payments, tz) or job.start_date or job.created_at,
            )
        )
    return entries


# ----------------------------------------------------------------------
# monthly breakdown
# ----------------------------------------------------------------------
def build_monthly_breakdown(
    entries: Iterable[JobAmountEntry],
    now: datetime,
    *,
    tz: str = "UTC",
) -> list[MonthlyBreakdown]:
    """Fixed month window around ``now``, padded with empty months."""

    window = PERIOD_TABLE["breakdown"]
    anchor = start_of(to_local(now, tz), Granularity.MONTH)

    slots: dict[tuple[int, int], _MonthSlot] = {}
    for offset in range(-int(window["months_before"]), int(window["months_after"]) + 1):
        start = add_months(anchor, offset)
        slots[(start.year, start.month)] = _MonthSlot(start=start)

    for entry in entries:
        moment = to_local(entry.date, tz)
        slot = slots.get((moment.year, moment.month))
        if slot is None:
            logger.debug("job %s dated %s falls outside the monthly window", entry.job_id, moment.date())
            continue
        slot.jobs.append(entry)
        slot.total += entry.amount

    return [
        MonthlyBreakdown(
            label=period_label(slot.start, Granularity.MONTH),
            period_start=slot.start,
            total_amount=slot.total,
            job_count=len(slot.jobs),
            jobs=slot.jobs,
        )
        for slot in sorted(slots.values(), key=lambda item: item.start)
    ]


def jobs_for_month(breakdown: Iterable[MonthlyBreakdown], label: str) -> list[JobAmountEntry]:
    for month in breakdown:
        if month.label == label:
            return list(month.jobs)
    return []


# ----------------------------------------------------------------------
# percentage change
# ----------------------------------------------------------------------
def trailing_totals(entries: Iterable[JobAmountEntry], now: datetime, *, tz: str = "UTC") -> tuple[Decimal, Decimal]:
    """Received totals for the last 30 days and for days 31-60 before ``now``."""

    return _trailing_totals(_localized(entries, tz), to_local(now, tz))


def compute_percentage_change(
    entries: Iterable[JobAmountEntry],
    now: datetime,
    granularity: Granularity | str | None = Granularity.SIX_MONTHS,
    *,
    first_weekday: int = 0,
    tz: str = "UTC",
    surface_declines: bool = False,
) -> Decimal:
    """Change of the current period against the last positive prior period.

    Calendar granularities walk back up to the configured lookback looking for
    a prior period with a positive total that the current period exceeds; with
    ``surface_declines`` the first positive prior period is used even when the
    result is negative.  Without a usable prior period the result is 100 when
    anything was received in the current period and 0 otherwise.
    """

    granularity = parse_granularity(granularity)
    points = _localized(entries, tz)
    reference = to_local(now, tz)

    if granularity is Granularity.SIX_MONTHS:
        current, previous = _trailing_totals(points, reference)
        if previous > ZERO:
            return _percent(current, previous)
        return _fallback_percent(current)

    lookback = int(PERIOD_TABLE["lookback"][granularity.value])
    current = _period_total(points, reference, granularity, first_weekday)
    for step in range(1, lookback + 1):
        prior = _period_total(points, shift(reference, granularity, -step), granularity, first_weekday)
        if prior > ZERO and (surface_declines or current > prior):
            return _percent(current, prior)
    return _fallback_percent(current)


# ----------------------------------------------------------------------
# chart series
# ----------------------------------------------------------------------
def chart_series(
    entries: Iterable[JobAmountEntry],
    now: datetime,
    granularity: Granularity | str | None = Granularity.SIX_MONTHS,
    *,
    first_weekday: int = 0,
    tz: str = "UTC",
) -> list[ChartPoint]:
    granularity = parse_granularity(granularity)
    if granularity is Granularity.SIX_MONTHS:
        return [
            ChartPoint(period=month.label, amount=month.total_amount)
            for month in build_monthly_breakdown(entries, now, tz=tz)
        ]

    points = _localized(entries, tz)
    anchor = start_of(to_local(now, tz), granularity, first_weekday)
    buckets = int(PERIOD_TABLE["chart_buckets"][granularity.value])

    series: list[ChartPoint] = []
    for offset in range(-(buckets - 1), 1):
        start = shift(anchor, granularity, offset)
        series.append(
            ChartPoint(
                period=period_label(start, granularity),
                amount=_period_total(points, start, granularity, first_weekday),
            )
        )
    return series


def y_axis_max(series: Iterable[ChartPoint]) -> Decimal:
    settings = PERIOD_TABLE["y_axis"]
    headroom = Decimal(str(settings["headroom"]))
    step = Decimal(str(settings["step"]))
    floor = Decimal(str(settings["floor"]))

    peak = max((point.amount for point in series), default=ZERO)
    rounded = (peak * headroom / step).to_integral_value(rounding=ROUND_CEILING) * step
    return max(rounded, floor)


def chart_y_axis_max(
    entries: Iterable[JobAmountEntry],
    now: datetime,
    granularity: Granularity | str | None = Granularity.SIX_MONTHS,
    *,
    first_weekday: int = 0,
    tz: str = "UTC",
) -> Decimal:
    return y_axis_max(chart_series(entries, now, granularity, first_weekday=first_weekday, tz=tz))


# ----------------------------------------------------------------------
# one-shot dashboard summary
# ----------------------------------------------------------------------
def summarize(
    jobs: Sequence[JobRecord],
    payments: Sequence[PaymentRecord],
    now: datetime,
    granularity: Granularity | str | None = Granularity.SIX_MONTHS,
    *,
    first_weekday: int = 0,
    tz: str = "UTC",
    surface_declines: bool = False,
) -> DashboardSummary:
    granularity = parse_granularity(granularity)
    buckets = categorize_amounts(payments)
    entries = build_received_job_view(jobs, payments, tz=tz)
    breakdown = build_monthly_breakdown(entries, now, tz=tz)

    if granularity is Granularity.SIX_MONTHS:
        series = [ChartPoint(period=month.label, amount=month.total_amount) for month in breakdown]
    else:
        series = chart_series(entries, now, granularity, first_weekday=first_weekday, tz=tz)

    change = compute_percentage_change(
        entries,
        now,
        granularity,
        first_weekday=first_weekday,
        tz=tz,
        surface_declines=surface_declines,
    )
    current, previous = trailing_totals(entries, now, tz=tz)

    logger.info(
        "amounts received=%s pending=%s invoiced=%s partially_paid=%s overdue=%s change(%s)=%s%%",
        buckets.received,
        buckets.pending,
        buckets.invoiced,
        buckets.partially_paid,
        buckets.overdue,
        granularity.value,
        change,
    )

    return DashboardSummary(
        generated_at=now,
        granularity=granularity.value,
        buckets=buckets,
        monthly_breakdown=breakdown,
        chart=series,
        chart_y_axis_max=y_axis_max(series),
        percentage_change=change,
        trailing_current_total=current,
        trailing_previous_total=previous,
        statistics=payment_statistics(payments, now, tz),
    )
