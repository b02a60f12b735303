from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from jobledger.core.schema import DashboardSummary, MonthlyBreakdown, StatusBucketTotals

BUCKET_LABELS = {
    "pending": "Pending",
    "invoiced": "Invoiced",
    "partially_paid": "Partially Paid",
    "received": "Received",
    "overdue": "Overdue",
    "cancelled": "Cancelled",
}


def _breakdown_frame(breakdown: Iterable[MonthlyBreakdown]) -> pd.DataFrame:
    records = []
    for month in breakdown:
        records.append(
            {
                "month": month.label,
                "period_start": month.period_start.date().isoformat(),
                "total_amount": month.total_amount,
                "job_count": month.job_count,
            }
        )
    return pd.DataFrame(records, columns=["month", "period_start", "total_amount", "job_count"])


def _buckets_frame(buckets: StatusBucketTotals) -> pd.DataFrame:
    data = buckets.model_dump()
    records = [{"status": label, "amount": data[key]} for key, label in BUCKET_LABELS.items()]
    return pd.DataFrame(records, columns=["status", "amount"])


def export_monthly_breakdown(path: Path, breakdown: Iterable[MonthlyBreakdown]) -> Path:
    df = _breakdown_frame(breakdown)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def export_status_buckets(path: Path, buckets: StatusBucketTotals) -> Path:
    df = _buckets_frame(buckets)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def export_earnings_workbook(path: Path, summary: DashboardSummary) -> Path:
    """Write breakdown, chart and status sheets into one ``.xlsx`` file."""

    chart = pd.DataFrame(
        [point.model_dump() for point in summary.chart],
        columns=["period", "amount"],
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        _breakdown_frame(summary.monthly_breakdown).to_excel(writer, sheet_name="Monthly", index=False)
        chart.to_excel(writer, sheet_name="Chart", index=False)
        _buckets_frame(summary.buckets).to_excel(writer, sheet_name="Statuses", index=False)
    return path
