import sqlite3
import time
from datetime import date

import pytest

from finance_tracker.models import Period
from finance_tracker.trends import TrendBuilder

from conftest import FakeStore, make_expense, make_income


class SlowStore(FakeStore):
    """Answers older months more slowly so futures finish newest-first."""

    def fetch_income(self, start_date, end_date):
        age = (2024 * 12 + 3) - (start_date.year * 12 + start_date.month)
        time.sleep(0.03 * age)
        return super().fetch_income(start_date, end_date)


def test_six_points_in_chronological_order_despite_completion_order():
    store = SlowStore(
        expenses=[make_expense(10 * month, date(2023 if month > 3 else 2024, month, 2)) for month in (10, 11, 12, 1, 2, 3)],
        income=[make_income(1000, date(2024, 1, 1))],
    )

    points = TrendBuilder(store, window=6).build(3, 2024)

    assert len(points) == 6
    assert [p.period_start for p in points] == sorted(p.period_start for p in points)
    assert [(p.year, p.month) for p in points] == [
        (2023, 10), (2023, 11), (2023, 12), (2024, 1), (2024, 2), (2024, 3),
    ]
    assert [p.total_expenses for p in points] == [100, 110, 120, 10, 20, 30]
    assert [p.total_income for p in points] == [0, 0, 0, 1000, 0, 0]


def test_labels_carry_year_only_when_it_differs_from_anchor():
    points = TrendBuilder(FakeStore(), window=6).build(2, 2024)

    assert [p.period_label for p in points] == [
        "Sep 2023", "Oct 2023", "Nov 2023", "Dec 2023", "Jan", "Feb",
    ]


def test_window_periods_step_back_across_years():
    builder = TrendBuilder(FakeStore(), window=14)

    periods = builder.periods(Period(1, 2024))

    assert periods[0] == Period(12, 2022)
    assert periods[-1] == Period(1, 2024)
    assert len(periods) == 14


@pytest.mark.parametrize("month, year", [(1, 0), (3, 10000), (13, 2024)])
def test_period_rejects_dates_outside_the_calendar(month, year):
    with pytest.raises(ValueError):
        Period(month, year)


def test_window_reaching_before_year_one_is_rejected():
    with pytest.raises(ValueError):
        TrendBuilder(FakeStore()).build(3, 1)


def test_empty_months_still_produce_points():
    points = TrendBuilder(FakeStore(), window=3).build(5, 2024)

    assert [(p.period_label, p.total_expenses, p.total_income) for p in points] == [
        ("Mar", 0, 0), ("Apr", 0, 0), ("May", 0, 0),
    ]


def test_build_is_restartable():
    store = FakeStore(expenses=[make_expense(25, date(2024, 2, 2))])
    builder = TrendBuilder(store)

    assert builder.build(3, 2024) == builder.build(3, 2024)


@pytest.mark.parametrize("window", [0, -3])
def test_window_must_be_positive(window):
    with pytest.raises(ValueError):
        TrendBuilder(FakeStore(), window=window)


def test_fetch_failure_propagates_without_partial_series():
    class FlakyStore(FakeStore):
        def fetch_expenses(self, start_date, end_date):
            if start_date == date(2024, 1, 1):
                raise sqlite3.OperationalError("disk I/O error")
            return super().fetch_expenses(start_date, end_date)

    with pytest.raises(sqlite3.OperationalError):
        TrendBuilder(FlakyStore()).build(3, 2024)
