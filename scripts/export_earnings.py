#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from jobledger.application import parse_jobs, parse_payments, summarize_records
from jobledger.core.logging import setup_logging
from jobledger.core.schema import parse_timestamp
from jobledger.core.settings import get_settings
from jobledger.exporters.earnings_report import (
    export_earnings_workbook,
    export_monthly_breakdown,
    export_status_buckets,
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Export earnings reports from a jobs/payments JSON file")
    parser.add_argument("--input", required=True, help="ledger JSON with 'jobs' and 'payments' lists")
    parser.add_argument("--output-dir", required=True, help="directory for the generated reports")
    parser.add_argument("--now", default=None, help="reference timestamp (ISO-8601), defaults to the current time")
    parser.add_argument("--granularity", default="six_months", help="day, week, month, year or six_months")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level)

    payload = json.loads(Path(args.input).read_text(encoding="utf-8"))
    jobs = parse_jobs(payload.get("jobs") or [])
    payments = parse_payments(payload.get("payments") or [])
    now = parse_timestamp(args.now) or datetime.now(timezone.utc)

    summary = summarize_records(jobs, payments, now, args.granularity, settings)

    output_dir = Path(args.output_dir)
    export_monthly_breakdown(output_dir / "monthly_breakdown.csv", summary.monthly_breakdown)
    export_status_buckets(output_dir / "status_buckets.csv", summary.buckets)
    export_earnings_workbook(output_dir / "earnings.xlsx", summary)
    print(f"earnings reports written to {output_dir}")


if __name__ == "__main__":
    main()
