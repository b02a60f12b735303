#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from datetime import date, timedelta
from pathlib import Path


def _month_back(anchor: date, months: int) -> date:
    index = anchor.month - 1 - months
    return date(anchor.year + index // 12, index % 12 + 1, min(anchor.day, 28))


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample jobs/payments ledger JSON file")
    parser.add_argument("--output", required=True, help="output file path (.json)")
    parser.add_argument("--today", default=date.today().isoformat(), help="reference date, YYYY-MM-DD")
    parser.add_argument("--client", default="Vogue", help="client name used in job titles")
    args = parser.parse_args()

    today = date.fromisoformat(args.today)
    jobs: list[dict] = []
    payments: list[dict] = []

    statuses = ["received", "received", "invoiced", "pending", "partiallyPaid", "overdue"]
    for index, status in enumerate(statuses):
        job_id = f"job-{index + 1:03d}"
        shoot_day = _month_back(today, index)
        amount = 500 + 250 * index
        jobs.append(
            {
                "id": job_id,
                "title": f"Editorial shoot for {args.client}",
                "agency_id": "agency-001",
                "fixed_price": amount,
                "start_date": shoot_day.isoformat(),
                "notes": f"Client: {args.client}\nBooked by sample script",
                "created_at": shoot_day.isoformat(),
            }
        )
        payments.append(
            {
                "id": f"pay-{index + 1:03d}",
                "job_id": job_id,
                "amount": amount,
                "due_date": (shoot_day + timedelta(days=30)).isoformat(),
                "paid_date": (shoot_day + timedelta(days=14)).isoformat() if status == "received" else None,
                "status": status,
            }
        )

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps({"jobs": jobs, "payments": payments}, indent=2), encoding="utf-8")
    print(f"sample ledger written: {output}")


if __name__ == "__main__":
    main()
