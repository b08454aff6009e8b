"""Rule-based budgeting advice for a monthly report."""
from __future__ import annotations

from typing import Sequence

from .models import CategoryRollup

OVERSPENDING = (
    "You are spending more than you earn this month. Consider reviewing your "
    "expenses and cutting non-essential spending."
)
LOW_SAVINGS_RATE = (
    "Your savings rate is below 10%. Financial experts recommend saving at "
    "least 20% of your income."
)
HIGH_SAVINGS_RATE = "Great job! You are saving more than 20% of your income this month."
SPENDING_INCREASE = "Your spending increased by {increase}% compared to last month. Review what changed."
SPENDING_DECREASE = "You spent less than last month. Keep up the good habit!"
CATEGORY_CONCENTRATION = (
    "{name} takes up {percentage}% of your spending. Consider setting a budget "
    "limit for this category."
)
FOOD_SHARE = (
    "Food expenses are over 30% of your total spending. Consider meal planning "
    "or cooking at home more often."
)
BALANCED = "Your spending looks balanced this month. Keep tracking your expenses consistently!"


def savings_rate(total_expenses: float, total_income: float) -> float:
    """Percentage of income left after expenses; 0 when there is no income."""

    if total_income <= 0:
        return 0.0
    return (total_income - total_expenses) / total_income * 100


def generate_advice(
    total_expenses: float,
    total_income: float,
    by_category: Sequence[CategoryRollup],
    last_month_total: float,
) -> list[str]:
    """Evaluate the advice rules in order and return every message that applies.

    ``by_category`` must already be sorted by total, largest first. The result
    is never empty: when no rule fires a single neutral message is returned.
    """

    advice: list[str] = []

    rate = savings_rate(total_expenses, total_income)
    if rate < 0:
        advice.append(OVERSPENDING)
    elif rate < 10:
        advice.append(LOW_SAVINGS_RATE)
    elif rate >= 20:
        advice.append(HIGH_SAVINGS_RATE)

    if last_month_total > 0 and total_expenses > last_month_total * 1.2:
        increase = (total_expenses - last_month_total) / last_month_total * 100
        advice.append(SPENDING_INCREASE.format(increase=_whole_percent(increase)))
    elif last_month_total > 0 and total_expenses < last_month_total * 0.8:
        advice.append(SPENDING_DECREASE)

    if by_category and by_category[0].percentage > 40:
        top = by_category[0]
        advice.append(
            CATEGORY_CONCENTRATION.format(name=top.category_name, percentage=_whole_percent(top.percentage))
        )

    food = next((rollup for rollup in by_category if "food" in rollup.category_name.lower()), None)
    if food is not None and food.percentage > 30:
        advice.append(FOOD_SHARE)

    if not advice:
        advice.append(BALANCED)
    return advice


def _whole_percent(value: float) -> int:
    # Halves round away from zero.
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
