"""Query capability the reporting core consumes from the transaction store."""
from __future__ import annotations

from datetime import date
from typing import Protocol

from .models import Expense, Income


class TransactionStore(Protocol):
    """Read-only view of expenses and income used by reports and trends.

    Both queries take an inclusive date range and return the complete result
    set for it. :meth:`fetch_expenses` orders by amount descending and resolves
    each expense's category. Failures propagate to the caller untouched.
    """

    def fetch_expenses(self, start_date: date, end_date: date) -> list[Expense]:
        ...

    def fetch_income(self, start_date: date, end_date: date) -> list[Income]:
        ...
