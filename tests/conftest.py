from datetime import date
from itertools import count
from pathlib import Path

import pytest

from finance_tracker.config import AppConfig
from finance_tracker.database import SQLiteRepository
from finance_tracker.models import Category, Expense, Income

FOOD = Category(id="cat-food", name="Food & Dining", icon="utensils", color="#FF7043")
TRANSPORT = Category(id="cat-transport", name="Transportation", icon="car", color="#42A5F5")
RENT = Category(id="cat-rent", name="Housing", icon="home", color="#8D6E63")

_ids = count(1)


def make_expense(amount, day=date(2024, 3, 10), category=FOOD, payment_method="cash", item="item"):
    return Expense(
        id=f"exp-{next(_ids)}",
        item=item,
        amount=amount,
        date=day,
        category_id=category.id if category else None,
        category=category,
        payment_method=payment_method,
    )


def make_income(amount, day=date(2024, 3, 1), source="Salary"):
    return Income(id=f"inc-{next(_ids)}", source=source, amount=amount, date=day)


def make_config(tmp_path: Path, **overrides) -> AppConfig:
    values = dict(
        project_root=tmp_path,
        database_file=tmp_path / "tracker.db",
        currency="MYR",
        currency_symbol="RM",
        cron_secret="s3cret",
        ocr_api_key=None,
        ocr_endpoint="https://ocr.invalid/parse/image",
        trend_window=6,
        trend_workers=6,
        log_level="INFO",
    )
    values.update(overrides)
    return AppConfig(**values)


class FakeStore:
    """In-memory transaction store filtering by inclusive date range."""

    def __init__(self, expenses=(), income=()):
        self.expenses = list(expenses)
        self.income = list(income)
        self.calls = []

    def fetch_expenses(self, start_date, end_date):
        self.calls.append(("expenses", start_date, end_date))
        rows = [expense for expense in self.expenses if start_date <= expense.date <= end_date]
        return sorted(rows, key=lambda expense: expense.amount, reverse=True)

    def fetch_income(self, start_date, end_date):
        self.calls.append(("income", start_date, end_date))
        return [record for record in self.income if start_date <= record.date <= end_date]


@pytest.fixture
def scenario_store():
    """Food 300 + Food 200 + Transport 100 against 600 income, and 400 spent the month before."""

    return FakeStore(
        expenses=[
            make_expense(300, date(2024, 3, 5), FOOD, "credit_card", "Groceries"),
            make_expense(200, date(2024, 3, 12), FOOD, "cash", "Dinner"),
            make_expense(100, date(2024, 3, 20), TRANSPORT, "e_wallet", "Train pass"),
            make_expense(400, date(2024, 2, 14), TRANSPORT, "cash", "Car service"),
        ],
        income=[make_income(600, date(2024, 3, 1))],
    )


@pytest.fixture
def repository(tmp_path):
    repo = SQLiteRepository(tmp_path / "tracker.db")
    repo.initialise_schema()
    yield repo
    repo.close()
