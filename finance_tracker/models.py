"""Domain models used by the finance tracker.

The classes defined here are immutable data containers that know nothing
about persistence or transport concerns. Reports are built fresh from these
records on every request, so none of them carry mutable state.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import MAXYEAR, MINYEAR, date, datetime
from typing import Any, Optional

PAYMENT_METHODS = ("cash", "credit_card", "debit_card", "e_wallet", "bank_transfer", "other")

PAYMENT_METHOD_LABELS = {
    "cash": "Cash",
    "credit_card": "Credit Card",
    "debit_card": "Debit Card",
    "e_wallet": "E-Wallet",
    "bank_transfer": "Bank Transfer",
    "other": "Other",
}

RECURRING_FREQUENCIES = ("weekly", "monthly", "yearly")

NOTIFICATION_TYPES = ("report", "reminder", "alert")

DEFAULT_CATEGORY_COLOR = "#607D8B"
DEFAULT_CATEGORY_ICON = "more-horizontal"

UNCATEGORIZED_ID = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"

MONTH_NAMES = tuple(calendar.month_name)[1:]
MONTH_ABBREVIATIONS = tuple(calendar.month_abbr)[1:]


def payment_method_label(method: str) -> str:
    """Return the display label of a payment method, or the raw value."""

    return PAYMENT_METHOD_LABELS.get(method, method)


def month_name(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return ""


@dataclass(frozen=True, slots=True)
class Category:
    """Spending category an expense can reference."""

    id: str
    name: str
    icon: str = DEFAULT_CATEGORY_ICON
    color: str = DEFAULT_CATEGORY_COLOR
    created_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class Expense:
    """A single expense snapshot read from the transaction store.

    :attr:`category` holds the resolved :class:`Category` row. It is ``None``
    when :attr:`category_id` is empty or points at a category that no longer
    exists; reports bucket such expenses under "Uncategorized".
    """

    id: str
    item: str
    amount: float
    date: date
    category_id: Optional[str] = None
    category: Optional[Category] = None
    payment_method: str = "cash"
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None
    notes: Optional[str] = None
    receipt_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class Income:
    """A single income snapshot read from the transaction store."""

    id: str
    source: str
    amount: float
    date: date
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class Period:
    """A calendar month identified by ``(month, year)``."""

    month: int
    year: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {self.month}")
        if not MINYEAR <= self.year <= MAXYEAR:
            raise ValueError(f"year must be between {MINYEAR} and {MAXYEAR}, got {self.year}")

    @classmethod
    def containing(cls, day: date) -> "Period":
        return cls(day.month, day.year)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        """Last calendar day of the month; period bounds are inclusive."""

        return date(self.year, self.month, self.days_in_month)

    def shifted(self, months: int) -> "Period":
        """Return the period ``months`` whole months away, rolling the year."""

        index = self.year * 12 + (self.month - 1) + months
        return Period(index % 12 + 1, index // 12)

    def previous(self) -> "Period":
        return self.shifted(-1)

    def short_label(self, anchor_year: int) -> str:
        """Month abbreviation, suffixed with the year when it is not ``anchor_year``."""

        abbreviation = MONTH_ABBREVIATIONS[self.month - 1]
        if self.year != anchor_year:
            return f"{abbreviation} {self.year}"
        return abbreviation


@dataclass(frozen=True, slots=True)
class CategoryRollup:
    category_id: str
    category_name: str
    category_color: str
    category_icon: str
    total: float
    percentage: float
    count: int


@dataclass(frozen=True, slots=True)
class PaymentMethodRollup:
    method: str
    total: float
    percentage: float
    count: int


@dataclass(frozen=True, slots=True)
class Aggregation:
    """Rollups of a single period as produced by :func:`reporting.aggregate`."""

    total_expenses: float
    total_income: float
    by_category: list[CategoryRollup] = field(default_factory=list)
    by_payment_method: list[PaymentMethodRollup] = field(default_factory=list)
    biggest_expense: Optional[Expense] = None


@dataclass(frozen=True, slots=True)
class Comparison:
    """Derived rates and the month-over-month delta of a period."""

    savings: float
    savings_rate: float
    days_elapsed: int
    daily_average: float
    comparison_to_last_month: float


@dataclass(frozen=True, slots=True)
class MonthlyReport:
    month: int
    year: int
    total_expenses: float
    total_income: float
    savings: float
    savings_rate: float
    by_category: list[CategoryRollup]
    by_payment_method: list[PaymentMethodRollup]
    biggest_expense: Optional[Expense]
    daily_average: float
    comparison_to_last_month: float
    advice: list[str]


@dataclass(frozen=True, slots=True)
class TrendPoint:
    """One month of a trend series used for charting."""

    period_label: str
    month: int
    year: int
    period_start: date
    total_expenses: float
    total_income: float


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    title: str
    message: str
    type: str = "report"
    is_read: bool = False
    data: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class ReceiptData:
    """Best-effort fields guessed from recognised receipt text."""

    text: str
    amount: Optional[float] = None
    merchant: Optional[str] = None
    date: Optional[date] = None


__all__ = [
    "Aggregation",
    "Category",
    "CategoryRollup",
    "Comparison",
    "Expense",
    "Income",
    "MonthlyReport",
    "Notification",
    "PaymentMethodRollup",
    "Period",
    "ReceiptData",
    "TrendPoint",
    "month_name",
    "payment_method_label",
]
