import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook

sys.path.append(str(Path(__file__).resolve().parents[1]))

from jobledger.core.amounts import summarize
from jobledger.core.schema import JobRecord, PaymentRecord
from jobledger.exporters.earnings_report import (
    export_earnings_workbook,
    export_monthly_breakdown,
    export_status_buckets,
)

NOW = datetime(2025, 6, 18, 12, 0)


def _summary():
    jobs = [
        JobRecord(id="j1", title="Editorial for Vogue", created_at=datetime(2025, 1, 1)),
        JobRecord(id="j2", title="Catalog", created_at=datetime(2025, 1, 1)),
    ]
    payments = [
        PaymentRecord(id="p1", job_id="j1", amount=Decimal("450"), status="received",
                      due_date=datetime(2025, 5, 1), paid_date=datetime(2025, 5, 4)),
        PaymentRecord(id="p2", job_id="j2", amount=Decimal("120"), status="invoiced",
                      due_date=datetime(2025, 7, 1)),
    ]
    return summarize(jobs, payments, NOW, "month")


def test_export_monthly_breakdown_csv(tmp_path):
    summary = _summary()
    path = export_monthly_breakdown(tmp_path / "reports" / "monthly.csv", summary.monthly_breakdown)

    df = pd.read_csv(path)
    assert list(df.columns) == ["month", "period_start", "total_amount", "job_count"]
    assert df["month"].tolist() == ["Mar", "Apr", "May", "Jun", "Jul", "Aug"]
    may = df[df["month"] == "May"].iloc[0]
    assert may["period_start"] == "2025-05-01"
    assert may["total_amount"] == 450
    assert may["job_count"] == 1


def test_export_status_buckets_csv(tmp_path):
    summary = _summary()
    path = export_status_buckets(tmp_path / "buckets.csv", summary.buckets)

    df = pd.read_csv(path)
    amounts = dict(zip(df["status"], df["amount"]))
    assert list(amounts) == ["Pending", "Invoiced", "Partially Paid", "Received", "Overdue", "Cancelled"]
    assert amounts["Received"] == 450
    assert amounts["Invoiced"] == 120


def test_export_earnings_workbook(tmp_path):
    summary = _summary()
    path = export_earnings_workbook(tmp_path / "earnings.xlsx", summary)

    workbook = load_workbook(path)
    assert workbook.sheetnames == ["Monthly", "Chart", "Statuses"]
    chart_rows = list(workbook["Chart"].iter_rows(values_only=True))
    assert chart_rows[0] == ("period", "amount")
    assert [row[0] for row in chart_rows[1:]] == ["Jan", "Feb", "Mar", "Apr", "May", "Jun"]
