import sqlite3
from datetime import date

import pytest

from finance_tracker.database import DEFAULT_CATEGORIES, ExpenseFilter
from finance_tracker.reporting import ReportService


def add_expense(repository, amount, day, category_id=None, **extra):
    values = {"item": extra.pop("item", "thing"), "amount": amount, "date": day, "category_id": category_id}
    values.update(extra)
    return repository.create_expense(values)


def test_seed_default_categories_only_once(repository):
    assert repository.seed_default_categories() == len(DEFAULT_CATEGORIES)
    assert repository.seed_default_categories() == 0

    names = [category.name for category in repository.list_categories()]
    assert names == sorted(names)
    assert "Food & Dining" in names


def test_create_category_defaults(repository):
    category = repository.create_category("Pets")

    assert category.icon == "more-horizontal"
    assert category.color == "#607D8B"
    assert repository.get_category(category.id) == category


def test_fetch_expenses_is_inclusive_and_largest_first(repository):
    food = repository.create_category("Food", "utensils", "#FF7043")
    add_expense(repository, 5, date(2024, 2, 29), food.id)
    add_expense(repository, 20, date(2024, 3, 1), food.id, item="first day")
    add_expense(repository, 80, date(2024, 3, 31), None, item="last day")
    add_expense(repository, 50, date(2024, 4, 1), food.id)

    expenses = repository.fetch_expenses(date(2024, 3, 1), date(2024, 3, 31))

    assert [expense.item for expense in expenses] == ["last day", "first day"]
    assert expenses[0].category is None
    assert expenses[1].category == food


def test_dangling_category_reference_resolves_to_none(repository):
    add_expense(repository, 10, date(2024, 3, 3), "deleted-category")

    (expense,) = repository.fetch_expenses(date(2024, 3, 1), date(2024, 3, 31))

    assert expense.category_id == "deleted-category"
    assert expense.category is None


def test_list_expenses_filters(repository):
    food = repository.create_category("Food")
    add_expense(repository, 10, date(2024, 3, 1), food.id, item="Nasi Lemak", payment_method="cash")
    add_expense(repository, 20, date(2024, 3, 2), None, item="Grab ride", payment_method="e_wallet")
    add_expense(repository, 30, date(2024, 3, 3), food.id, item="Netflix", is_recurring=True,
                recurring_frequency="monthly", payment_method="credit_card")

    def items(**filters):
        return [expense.item for expense in repository.list_expenses(ExpenseFilter(**filters))]

    assert items() == ["Netflix", "Grab ride", "Nasi Lemak"]
    assert items(search="nasi") == ["Nasi Lemak"]
    assert items(category_id=food.id) == ["Netflix", "Nasi Lemak"]
    assert items(payment_method="e_wallet") == ["Grab ride"]
    assert items(is_recurring=True) == ["Netflix"]
    assert items(start_date=date(2024, 3, 2), end_date=date(2024, 3, 2)) == ["Grab ride"]
    assert items(limit=2) == ["Netflix", "Grab ride"]
    assert items(limit=2, offset=2) == ["Nasi Lemak"]


def test_update_and_delete_expense(repository):
    expense = add_expense(repository, 10, date(2024, 3, 1), item="Coffee")

    updated = repository.update_expense(
        expense.id,
        {"item": "Latte", "amount": 12.5, "date": date(2024, 3, 2), "payment_method": "debit_card"},
    )

    assert updated.item == "Latte"
    assert updated.amount == 12.5
    assert updated.payment_method == "debit_card"
    assert updated.created_at == expense.created_at
    assert repository.delete_expense(expense.id) is True
    assert repository.delete_expense(expense.id) is False
    assert repository.update_expense(expense.id, {"item": "x", "amount": 1, "date": date(2024, 3, 2)}) is None


def test_income_crud_and_range(repository):
    salary = repository.create_income({"source": "Salary", "amount": 4000, "date": date(2024, 3, 25)})
    repository.create_income({"source": "Bonus", "amount": 500, "date": date(2024, 4, 2)})

    assert [record.source for record in repository.fetch_income(date(2024, 3, 1), date(2024, 3, 31))] == ["Salary"]
    assert len(repository.list_income()) == 2

    updated = repository.update_income(salary.id, {"source": "Salary", "amount": 4200, "date": date(2024, 3, 25)})
    assert updated.amount == 4200
    assert repository.delete_income(salary.id) is True
    assert repository.get_income(salary.id) is None


def test_negative_amounts_are_rejected(repository):
    with pytest.raises(sqlite3.IntegrityError):
        add_expense(repository, -5, date(2024, 3, 1))


def test_notifications_round_trip(repository):
    first = repository.create_notification("February 2024 Monthly Report", "msg", "report", {"month": 2})
    second = repository.create_notification("Reminder", "log your spending", "reminder")

    listed = repository.list_notifications()

    assert [n.id for n in listed] == [second.id, first.id]
    assert listed[1].data == {"month": 2}
    assert listed[0].data is None
    assert repository.mark_notification_read(first.id) is True
    assert repository.mark_notification_read("missing") is False
    assert [n.is_read for n in repository.list_notifications()] == [False, True]


def test_repository_feeds_monthly_report(repository):
    food = repository.create_category("Food & Dining")
    transport = repository.create_category("Transportation")
    add_expense(repository, 300, date(2024, 3, 5), food.id)
    add_expense(repository, 200, date(2024, 3, 12), food.id)
    add_expense(repository, 100, date(2024, 3, 20), transport.id)
    add_expense(repository, 400, date(2024, 2, 14), transport.id)
    repository.create_income({"source": "Salary", "amount": 600, "date": date(2024, 3, 1)})

    report = ReportService(repository, clock=lambda: date(2024, 6, 1)).monthly_report(3, 2024)

    assert report.total_expenses == 600
    assert [(r.category_name, r.total, r.count) for r in report.by_category] == [
        ("Food & Dining", 500, 2),
        ("Transportation", 100, 1),
    ]
    assert report.comparison_to_last_month == pytest.approx(50)
    assert report.biggest_expense.amount == 300
