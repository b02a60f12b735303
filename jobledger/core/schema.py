from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, PlainSerializer, computed_field, field_validator

PaymentStatus = Literal[
    "pending",
    "invoiced",
    "partiallyPaid",
    "received",
    "overdue",
    "cancelled",
]
PaymentType = Literal["milestone", "hourly", "fixed", "bonus"]

PAYMENT_STATUSES: tuple[str, ...] = (
    "pending",
    "invoiced",
    "partiallyPaid",
    "received",
    "overdue",
    "cancelled",
)
PAYMENT_TYPES: tuple[str, ...] = ("milestone", "hourly", "fixed", "bonus")
UNKNOWN_CLIENT = "Unknown Client"

# Exact in Python, plain JSON numbers on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

_STATUS_ALIASES = {
    "partially_paid": "partiallyPaid",
    "partially-paid": "partiallyPaid",
    "partially paid": "partiallyPaid",
}


def resolve_status(value: Any) -> str | None:
    """Canonical status for ``value``, or ``None`` when it is not recognised."""

    if value is None:
        return None
    raw = str(value).strip()
    if raw in PAYMENT_STATUSES:
        return raw
    lowered = raw.lower()
    if lowered in _STATUS_ALIASES:
        return _STATUS_ALIASES[lowered]
    for status in PAYMENT_STATUSES:
        if status.lower() == lowered:
            return status
    return None


def coerce_status(value: Any) -> str:
    """Map a stored status string onto a known status, defaulting to pending."""

    return resolve_status(value) or "pending"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse ISO-8601 timestamps or plain ``YYYY-MM-DD`` dates."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raw = str(value).strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        if len(raw) != 10:
            raise ValueError(f"unrecognised timestamp: {value!r}") from None
    try:
        return datetime.strptime(raw, "%Y-%m-%d")
    except ValueError:
        raise ValueError(f"unrecognised timestamp: {value!r}") from None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobRecord(BaseModel):
    id: str
    title: str
    agency_id: str | None = None
    fixed_price: Money | None = None
    hourly_rate: Money | None = None
    start_date: datetime | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("id", "agency_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        return str(value) if value is not None else None

    @field_validator("start_date", mode="before")
    @classmethod
    def _parse_start_date(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> datetime:
        try:
            parsed = parse_timestamp(value)
        except ValueError:
            parsed = None
        return parsed or _utcnow()


class PaymentRecord(BaseModel):
    id: str
    job_id: str
    amount: Money
    currency: str = "USD"
    due_date: datetime
    paid_date: datetime | None = None
    status: PaymentStatus = "pending"
    type: PaymentType = "milestone"
    invoice_number: str | None = None
    notes: str | None = None

    @field_validator("id", "job_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> str:
        return coerce_status(value)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str:
        raw = str(value).strip().lower() if value is not None else ""
        return raw if raw in PAYMENT_TYPES else "milestone"

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("paid_date", mode="before")
    @classmethod
    def _parse_paid_date(cls, value: Any) -> datetime | None:
        try:
            return parse_timestamp(value)
        except ValueError:
            return None


class StatusBucketTotals(BaseModel):
    """Payment amounts summed per status."""

    pending: Money = Decimal("0")
    invoiced: Money = Decimal("0")
    partially_paid: Money = Decimal("0")
    received: Money = Decimal("0")
    overdue: Money = Decimal("0")
    cancelled: Money = Decimal("0")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_income(self) -> Money:
        return self.received

    @computed_field  # type: ignore[prop-decorator]
    @property
    def upcoming(self) -> Money:
        return self.pending + self.invoiced + self.partially_paid

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> Money:
        return self.pending + self.invoiced + self.partially_paid + self.received + self.overdue + self.cancelled


class JobAmountEntry(BaseModel):
    job_id: str
    title: str
    amount: Money
    client_name: str = UNKNOWN_CLIENT
    date: datetime
    payment_status: str = "received"


class MonthlyBreakdown(BaseModel):
    label: str
    period_start: datetime
    total_amount: Money = Decimal("0")
    job_count: int = 0
    jobs: list[JobAmountEntry] = Field(default_factory=list)


class ChartPoint(BaseModel):
    period: str
    amount: Money = Decimal("0")


class PaymentStatistics(BaseModel):
    total_amount: Money = Decimal("0")
    received_amount: Money = Decimal("0")
    pending_amount: Money = Decimal("0")
    overdue_amount: Money = Decimal("0")
    total_count: int = 0
    received_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0


class DashboardSummary(BaseModel):
    generated_at: datetime
    granularity: str
    buckets: StatusBucketTotals
    monthly_breakdown: list[MonthlyBreakdown] = Field(default_factory=list)
    chart: list[ChartPoint] = Field(default_factory=list)
    chart_y_axis_max: Money = Decimal("1000")
    percentage_change: Money = Decimal("0")
    trailing_current_total: Money = Decimal("0")
    trailing_previous_total: Money = Decimal("0")
    statistics: PaymentStatistics = Field(default_factory=PaymentStatistics)
