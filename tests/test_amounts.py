import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from jobledger.core import amounts
from jobledger.core.periods import Granularity
from jobledger.core.schema import ChartPoint, JobAmountEntry, JobRecord, PaymentRecord

# Wednesday; the Monday-based week runs Jun 16 - Jun 22.
NOW = datetime(2025, 6, 18, 12, 0)


def _job(job_id: str, title: str = "Studio shoot", **extra) -> JobRecord:
    extra.setdefault("created_at", datetime(2025, 1, 2, 9, 0))
    return JobRecord(id=job_id, title=title, **extra)


def _payment(
    payment_id: str,
    job_id: str,
    amount,
    status: str = "received",
    paid: datetime | None = None,
    due: datetime = datetime(2025, 6, 1),
) -> PaymentRecord:
    return PaymentRecord(
        id=payment_id,
        job_id=job_id,
        amount=Decimal(str(amount)),
        status=status,
        paid_date=paid,
        due_date=due,
    )


def _entry(job_id: str, amount, when: datetime) -> JobAmountEntry:
    return JobAmountEntry(job_id=job_id, title=f"Job {job_id}", amount=Decimal(str(amount)), date=when)


# ----------------------------------------------------------------------
# status buckets
# ----------------------------------------------------------------------
def test_categorize_amounts_pending_and_received():
    buckets = amounts.categorize_amounts(
        [
            _payment("p1", "j1", 100, status="pending"),
            _payment("p2", "j1", 200, status="received"),
        ]
    )

    assert buckets.pending == Decimal("100")
    assert buckets.received == Decimal("200")
    assert buckets.total_income == Decimal("200")
    assert buckets.upcoming == Decimal("100")


def test_buckets_partition_every_payment():
    payments = [
        _payment("p1", "j1", "10.50", status="pending"),
        _payment("p2", "j1", 20, status="invoiced"),
        _payment("p3", "j1", 30, status="partiallyPaid"),
        _payment("p4", "j1", 40, status="received"),
        _payment("p5", "j1", 50, status="overdue"),
        _payment("p6", "j1", 60, status="cancelled"),
    ]

    buckets = amounts.categorize_amounts(payments)

    assert buckets.total == sum(payment.amount for payment in payments)
    assert buckets.total_income == buckets.received == Decimal("40")
    assert buckets.upcoming == Decimal("60.50")
    assert buckets.cancelled == Decimal("60")
    assert buckets.overdue == Decimal("50")


def test_categorize_amounts_empty_list_is_all_zero():
    buckets = amounts.categorize_amounts([])

    dumped = buckets.model_dump()
    assert all(value == 0 for value in dumped.values())


# ----------------------------------------------------------------------
# received job view
# ----------------------------------------------------------------------
def test_job_without_payments_is_dropped():
    view = amounts.build_received_job_view([_job("j1")], [])

    assert view == []


def test_job_with_only_open_payments_is_dropped():
    view = amounts.build_received_job_view(
        [_job("j1"), _job("j2")],
        [
            _payment("p1", "j1", 100, status="pending"),
            _payment("p2", "j2", 100, status="received", paid=datetime(2025, 6, 2)),
        ],
    )

    assert [entry.job_id for entry in view] == ["j2"]


def test_received_payments_are_summed_and_latest_paid_date_wins():
    view = amounts.build_received_job_view(
        [_job("j2")],
        [
            _payment("p1", "j2", 50, paid=datetime(2025, 3, 1)),
            _payment("p2", "j2", 75, paid=datetime(2025, 3, 15)),
            _payment("p3", "j2", 999, status="invoiced"),
        ],
    )

    assert len(view) == 1
    assert view[0].amount == Decimal("125")
    assert view[0].date == datetime(2025, 3, 15)
    assert view[0].payment_status == "received"


def test_entry_date_falls_back_to_start_then_creation():
    jobs = [
        _job("started", start_date=datetime(2025, 4, 3)),
        _job("created", created_at=datetime(2025, 2, 8, 10, 0)),
    ]
    payments = [
        _payment("p1", "started", 10),
        _payment("p2", "created", 20),
    ]

    view = {entry.job_id: entry for entry in amounts.build_received_job_view(jobs, payments)}

    assert view["started"].date == datetime(2025, 4, 3)
    assert view["created"].date == datetime(2025, 2, 8, 10, 0)


def test_entry_carries_extracted_client_name():
    jobs = [
        _job("j1", title="Lookbook for Zara"),
        _job("j2", title="Campaign", notes="Client: Nike\nRate agreed"),
        _job("j3", title="Fitting"),
    ]
    payments = [_payment(f"p{i}", f"j{i}", 10, paid=datetime(2025, 6, 1)) for i in (1, 2, 3)]

    names = [entry.client_name for entry in amounts.build_received_job_view(jobs, payments)]

    assert names == ["Zara", "Nike", "Unknown Client"]


# ----------------------------------------------------------------------
# monthly breakdown
# ----------------------------------------------------------------------
def test_monthly_breakdown_always_has_six_slots():
    breakdown = amounts.build_monthly_breakdown([], NOW)

    assert [month.label for month in breakdown] == ["Mar", "Apr", "May", "Jun", "Jul", "Aug"]
    assert all(month.total_amount == 0 and month.job_count == 0 for month in breakdown)
    assert breakdown[0].period_start == datetime(2025, 3, 1)


def test_monthly_breakdown_groups_by_year_and_month():
    now = datetime(2025, 1, 10)
    entries = [
        _entry("old", 999, datetime(2024, 1, 20)),
        _entry("jan", 100, datetime(2025, 1, 5)),
        _entry("dec", 40, datetime(2024, 12, 31, 23, 0)),
        _entry("dec2", 60, datetime(2024, 12, 1)),
        _entry("future", 10, datetime(2025, 3, 2)),
        _entry("outside", 10, datetime(2025, 4, 2)),
    ]

    breakdown = amounts.build_monthly_breakdown(entries, now)

    assert [month.label for month in breakdown] == ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]
    assert [month.period_start.year for month in breakdown] == [2024, 2024, 2024, 2025, 2025, 2025]
    by_label = {month.label: month for month in breakdown}
    assert by_label["Jan"].total_amount == Decimal("100")
    assert by_label["Jan"].job_count == 1
    assert by_label["Dec"].total_amount == Decimal("100")
    assert by_label["Dec"].job_count == 2
    assert by_label["Mar"].total_amount == Decimal("10")


def test_jobs_for_month_returns_slot_jobs():
    entries = [_entry("j1", 100, datetime(2025, 6, 2)), _entry("j2", 50, datetime(2025, 5, 2))]
    breakdown = amounts.build_monthly_breakdown(entries, NOW)

    assert [entry.job_id for entry in amounts.jobs_for_month(breakdown, "Jun")] == ["j1"]
    assert amounts.jobs_for_month(breakdown, "Dec") == []


# ----------------------------------------------------------------------
# percentage change
# ----------------------------------------------------------------------
def test_monthly_change_uses_last_positive_month():
    entries = [
        _entry("now", 500, datetime(2025, 6, 3)),
        _entry("march", 300, datetime(2025, 3, 20)),
    ]

    change = amounts.compute_percentage_change(entries, NOW, Granularity.MONTH)

    assert change == Decimal("66.67")


def test_change_is_zero_without_any_income():
    entries = [_entry("old", 300, datetime(2024, 6, 3))]

    assert amounts.compute_percentage_change(entries, NOW, "month") == 0


def test_change_is_hundred_without_positive_prior_period():
    entries = [_entry("now", 250, datetime(2025, 6, 10))]

    for granularity in ("day", "week", "month", "year"):
        entries_today = entries + [_entry("today", 1, NOW)]
        assert amounts.compute_percentage_change(entries_today, NOW, granularity) == Decimal("100")


def test_change_skips_prior_periods_that_are_not_exceeded():
    entries = [
        _entry("now", 100, datetime(2025, 6, 3)),
        _entry("may", 200, datetime(2025, 5, 3)),
        _entry("feb", 50, datetime(2025, 2, 3)),
    ]

    assert amounts.compute_percentage_change(entries, NOW, "month") == Decimal("100")
    assert amounts.compute_percentage_change(entries, NOW, "month", surface_declines=True) == Decimal("-50")


def test_change_without_exceeded_prior_falls_back_to_hundred():
    entries = [
        _entry("now", 100, datetime(2025, 6, 3)),
        _entry("may", 200, datetime(2025, 5, 3)),
    ]

    assert amounts.compute_percentage_change(entries, NOW, "month") == Decimal("100")


def test_daily_change():
    entries = [
        _entry("today", 300, datetime(2025, 6, 18, 9, 0)),
        _entry("monday", 100, datetime(2025, 6, 16, 15, 0)),
    ]

    assert amounts.compute_percentage_change(entries, NOW, "day") == Decimal("200")


def test_weekly_change_uses_calendar_weeks():
    entries = [
        _entry("this-week", 400, datetime(2025, 6, 17)),
        _entry("two-weeks-ago", 200, datetime(2025, 6, 8, 23, 0)),
    ]

    assert amounts.compute_percentage_change(entries, NOW, "week") == Decimal("100")


def test_yearly_change_looks_back_three_years():
    entries = [
        _entry("2025", 1000, datetime(2025, 2, 1)),
        _entry("2023", 500, datetime(2023, 7, 1)),
        _entry("2021", 10, datetime(2021, 7, 1)),
    ]

    assert amounts.compute_percentage_change(entries, NOW, "year") == Decimal("100")


def test_trailing_thirty_day_change():
    entries = [
        _entry("recent", 300, datetime(2025, 6, 1)),
        _entry("previous", 200, datetime(2025, 5, 1)),
    ]

    assert amounts.compute_percentage_change(entries, NOW) == Decimal("50")
    assert amounts.trailing_totals(entries, NOW) == (Decimal("300"), Decimal("200"))


def test_trailing_change_reports_declines():
    entries = [
        _entry("recent", 100, datetime(2025, 6, 1)),
        _entry("previous", 200, datetime(2025, 5, 1)),
    ]

    assert amounts.compute_percentage_change(entries, NOW, "Last 6 months") == Decimal("-50")


def test_unknown_granularity_is_rejected():
    with pytest.raises(ValueError):
        amounts.compute_percentage_change([], NOW, "fortnight")


# ----------------------------------------------------------------------
# chart series
# ----------------------------------------------------------------------
def test_day_series_covers_last_seven_days():
    entries = [_entry("today", 300, datetime(2025, 6, 18, 8, 0)), _entry("old", 50, datetime(2025, 6, 1))]

    series = amounts.chart_series(entries, NOW, "day")

    assert [point.period for point in series] == ["Thu", "Fri", "Sat", "Sun", "Mon", "Tue", "Wed"]
    assert [point.amount for point in series] == [0, 0, 0, 0, 0, 0, Decimal("300")]


def test_week_series_is_labelled_by_week_start():
    entries = [_entry("a", 120, datetime(2025, 6, 3)), _entry("b", 80, datetime(2025, 6, 22, 23, 59))]

    series = amounts.chart_series(entries, NOW, Granularity.WEEK)

    assert [point.period for point in series] == ["May 26", "Jun 2", "Jun 9", "Jun 16"]
    assert [point.amount for point in series] == [0, Decimal("120"), 0, Decimal("80")]


def test_month_and_year_series():
    entries = [_entry("a", 10, datetime(2025, 1, 31)), _entry("b", 20, datetime(2023, 12, 31))]

    months = amounts.chart_series(entries, NOW, "month")
    years = amounts.chart_series(entries, NOW, "year")

    assert [point.period for point in months] == ["Jan", "Feb", "Mar", "Apr", "May", "Jun"]
    assert months[0].amount == Decimal("10")
    assert [point.period for point in years] == ["2023", "2024", "2025"]
    assert [point.amount for point in years] == [Decimal("20"), 0, Decimal("10")]


def test_six_month_series_mirrors_breakdown():
    entries = [_entry("a", 10, datetime(2025, 7, 1))]

    series = amounts.chart_series(entries, NOW)
    breakdown = amounts.build_monthly_breakdown(entries, NOW)

    assert [(point.period, point.amount) for point in series] == [
        (month.label, month.total_amount) for month in breakdown
    ]


def test_timezone_shifts_calendar_buckets():
    now = datetime(2025, 7, 1, 2, 0, tzinfo=timezone.utc)
    entries = [_entry("late-june", 70, datetime(2025, 6, 30, 21, 0))]

    breakdown = amounts.build_monthly_breakdown(entries, now, tz="America/New_York")

    assert [month.label for month in breakdown] == ["Mar", "Apr", "May", "Jun", "Jul", "Aug"]
    assert breakdown[3].total_amount == Decimal("70")


# ----------------------------------------------------------------------
# y-axis
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    ("peak", "expected"),
    [
        (0, 1000),
        (800, 1000),
        (1000, 2000),
        (4900, 6000),
    ],
)
def test_y_axis_max(peak, expected):
    series = [ChartPoint(period="a", amount=Decimal("0")), ChartPoint(period="b", amount=Decimal(peak))]

    result = amounts.y_axis_max(series)

    assert result == expected
    assert result >= Decimal(peak) * Decimal("1.2")
    assert result % 1000 == 0


def test_chart_y_axis_max_for_entries():
    entries = [_entry("a", 800, datetime(2025, 6, 2))]

    assert amounts.chart_y_axis_max(entries, NOW, "month") == 1000
    assert amounts.chart_y_axis_max([], NOW, "day") == 1000


# ----------------------------------------------------------------------
# summary
# ----------------------------------------------------------------------
def test_summarize_is_idempotent():
    jobs = [_job("j1", title="Editorial for Vogue"), _job("j2")]
    payments = [
        _payment("p1", "j1", 500, paid=datetime(2025, 6, 3)),
        _payment("p2", "j2", 200, status="pending", due=datetime(2025, 6, 1)),
    ]

    first = amounts.summarize(jobs, payments, NOW, "month")
    second = amounts.summarize(jobs, payments, NOW, "month")

    assert first.model_dump() == second.model_dump()
    assert first.granularity == "month"
    assert first.buckets.total_income == Decimal("500")
    assert first.percentage_change == Decimal("100")
    assert len(first.chart) == 6
    assert first.chart_y_axis_max == 1000
    assert first.statistics.overdue_count == 1
    assert first.trailing_current_total == Decimal("500")


def test_change_handles_very_large_ratios():
    entries = [
        _entry("now", "1E+25", datetime(2025, 6, 3)),
        _entry("may", "0.01", datetime(2025, 5, 3)),
    ]

    change = amounts.compute_percentage_change(entries, NOW, "month")

    assert change == Decimal("99999999999999999999999999900")
    assert change.as_tuple().exponent == -2
