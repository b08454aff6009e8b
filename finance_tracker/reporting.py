"""Monthly report aggregation and comparison.

The module is split into pure functions and one small service:

1. :func:`aggregate` turns a period's expenses and income into totals,
   category and payment-method rollups and the largest expense.
2. :func:`compare` derives savings, the savings rate, the daily average and
   the change against the previous month.
3. :class:`ReportService` fetches both periods from an injected
   :class:`~finance_tracker.store.TransactionStore` and combines the results
   with the advice rules into a :class:`~finance_tracker.models.MonthlyReport`.

Every ratio with a zero denominator resolves to ``0.0``. Empty periods are a
valid, fully-zeroed result rather than an error.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Hashable, Iterable, NamedTuple, Optional, Sequence

from .advice import generate_advice, savings_rate
from .models import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    UNCATEGORIZED_ID,
    UNCATEGORIZED_NAME,
    Aggregation,
    CategoryRollup,
    Comparison,
    Expense,
    Income,
    MonthlyReport,
    PaymentMethodRollup,
    Period,
)
from .store import TransactionStore

logger = logging.getLogger(__name__)


def aggregate(expenses: Sequence[Expense], income: Iterable[Income]) -> Aggregation:
    """Roll up one period of transactions.

    Args:
        expenses: Expenses dated inside the period, in store order.
        income: Income records dated inside the period.

    Returns:
        An :class:`Aggregation` whose rollups are sorted by total, largest
        first, with ties kept in input order.
    """

    total_expenses = sum((expense.amount for expense in expenses), 0.0)
    total_income = sum((record.amount for record in income), 0.0)

    by_category = [
        CategoryRollup(
            category_id=key,
            category_name=group.meta[0],
            category_color=group.meta[1],
            category_icon=group.meta[2],
            total=group.total,
            percentage=percentage_of(group.total, total_expenses),
            count=group.count,
        )
        for key, group in _group(expenses, _category_key)
    ]
    by_payment_method = [
        PaymentMethodRollup(
            method=key,
            total=group.total,
            percentage=percentage_of(group.total, total_expenses),
            count=group.count,
        )
        for key, group in _group(expenses, _payment_method_key)
    ]

    # max() keeps the first of equal amounts, so store order breaks ties.
    biggest_expense = max(expenses, key=lambda expense: expense.amount) if expenses else None

    return Aggregation(
        total_expenses=total_expenses,
        total_income=total_income,
        by_category=_sorted_by_total(by_category),
        by_payment_method=_sorted_by_total(by_payment_method),
        biggest_expense=biggest_expense,
    )


def compare(
    period: Period,
    total_expenses: float,
    total_income: float,
    last_month_total: float,
    today: date,
) -> Comparison:
    """Derive the rates and deltas shown next to a period's totals."""

    elapsed = days_elapsed(period, today)
    daily_average = total_expenses / elapsed if elapsed > 0 else 0.0
    if last_month_total > 0:
        change = (total_expenses - last_month_total) / last_month_total * 100
    else:
        change = 0.0

    return Comparison(
        savings=total_income - total_expenses,
        savings_rate=savings_rate(total_expenses, total_income),
        days_elapsed=elapsed,
        daily_average=daily_average,
        comparison_to_last_month=change,
    )


def days_elapsed(period: Period, today: date) -> int:
    """Days to average over: the full month, or up to today for the running month."""

    if Period.containing(today) == period:
        return today.day
    return period.days_in_month


def percentage_of(part: float, whole: float) -> float:
    if whole == 0:
        return 0.0
    return part / whole * 100


class ReportService:
    """Build monthly reports from a transaction store.

    Args:
        store: Query capability returning a period's expenses and income.
        clock: Callable returning today's date; decides whether a period is
            still running when computing the daily average.
    """

    def __init__(self, store: TransactionStore, clock: Callable[[], date] = date.today) -> None:
        self._store = store
        self._clock = clock

    def aggregate_period(self, period: Period) -> Aggregation:
        expenses = self._store.fetch_expenses(period.start, period.end)
        income = self._store.fetch_income(period.start, period.end)
        return aggregate(expenses, income)

    def expense_total(self, period: Period) -> float:
        expenses = self._store.fetch_expenses(period.start, period.end)
        return aggregate(expenses, ()).total_expenses

    def monthly_report(self, month: int, year: int) -> MonthlyReport:
        """Compute the full report for ``month``/``year``.

        Store failures propagate unchanged; no partial report is returned.
        """

        period = Period(month, year)
        current = self.aggregate_period(period)
        last_month_total = self.expense_total(period.previous())
        comparison = compare(
            period,
            current.total_expenses,
            current.total_income,
            last_month_total,
            self._clock(),
        )
        advice = generate_advice(
            current.total_expenses,
            current.total_income,
            current.by_category,
            last_month_total,
        )
        logger.info(
            "Built report for %04d-%02d: expenses=%.2f income=%.2f advice=%d",
            year,
            month,
            current.total_expenses,
            current.total_income,
            len(advice),
        )

        return MonthlyReport(
            month=month,
            year=year,
            total_expenses=current.total_expenses,
            total_income=current.total_income,
            savings=comparison.savings,
            savings_rate=comparison.savings_rate,
            by_category=current.by_category,
            by_payment_method=current.by_payment_method,
            biggest_expense=current.biggest_expense,
            daily_average=comparison.daily_average,
            comparison_to_last_month=comparison.comparison_to_last_month,
            advice=advice,
        )


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def _category_key(expense: Expense) -> tuple[str, tuple[str, str, str]]:
    category = expense.category
    if category is None or not category.id:
        return UNCATEGORIZED_ID, (UNCATEGORIZED_NAME, DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON)
    return category.id, (
        category.name or UNCATEGORIZED_NAME,
        category.color or DEFAULT_CATEGORY_COLOR,
        category.icon or DEFAULT_CATEGORY_ICON,
    )


def _payment_method_key(expense: Expense) -> tuple[str, None]:
    return expense.payment_method, None


class _Bucket(NamedTuple):
    meta: Optional[tuple[str, str, str]]
    total: float
    count: int


def _group(
    expenses: Iterable[Expense],
    key_for: Callable[[Expense], tuple[Hashable, Optional[tuple[str, str, str]]]],
) -> list[tuple[Hashable, _Bucket]]:
    """Sum and count expenses per key, in order of first appearance.

    The display metadata of a bucket is taken from its first expense.
    """

    buckets: dict[Hashable, _Bucket] = {}
    for expense in expenses:
        key, meta = key_for(expense)
        bucket = buckets.get(key)
        if bucket is None:
            buckets[key] = _Bucket(meta, expense.amount, 1)
        else:
            buckets[key] = bucket._replace(total=bucket.total + expense.amount, count=bucket.count + 1)
    return list(buckets.items())


def _sorted_by_total(rollups: list) -> list:
    # sorted() is stable with reverse=True, so equal totals keep input order.
    return sorted(rollups, key=lambda rollup: rollup.total, reverse=True)
