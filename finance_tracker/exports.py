"""CSV rendering of monthly reports."""
from __future__ import annotations

import pandas as pd

from .models import MonthlyReport, payment_method_label


def report_filename(report: MonthlyReport) -> str:
    return f"expense-report-{report.year:04d}-{report.month:02d}.csv"


def report_to_csv(report: MonthlyReport) -> str:
    """Render ``report`` as three CSV sections separated by blank lines.

    The sections hold the category breakdown, the payment-method breakdown and
    a two-column summary. Percentages carry one decimal and a ``%`` suffix.
    """

    categories = pd.DataFrame(
        {
            "Category": [rollup.category_name for rollup in report.by_category],
            "Amount": [rollup.total for rollup in report.by_category],
            "Percentage": [_percent(rollup.percentage) for rollup in report.by_category],
            "Count": [rollup.count for rollup in report.by_category],
        }
    )
    methods = pd.DataFrame(
        {
            "Payment Method": [payment_method_label(rollup.method) for rollup in report.by_payment_method],
            "Amount": [rollup.total for rollup in report.by_payment_method],
            "Percentage": [_percent(rollup.percentage) for rollup in report.by_payment_method],
            "Count": [rollup.count for rollup in report.by_payment_method],
        }
    )
    summary = pd.DataFrame(
        [
            ("Total Expenses", report.total_expenses),
            ("Total Income", report.total_income),
            ("Savings", report.savings),
            ("Savings Rate", _percent(report.savings_rate)),
            ("Daily Average", f"{report.daily_average:.2f}"),
        ],
        columns=["Summary", ""],
    )

    sections = [
        categories.to_csv(index=False, lineterminator="\n"),
        methods.to_csv(index=False, lineterminator="\n"),
        summary.to_csv(index=False, lineterminator="\n"),
    ]
    return "\n".join(sections)


def _percent(value: float) -> str:
    return f"{value:.1f}%"
