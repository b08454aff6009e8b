"""SQLite persistence layer for the finance tracker.

The repository provides a small, well-typed API that hides SQL details from
the rest of the code. It relies on the standard library :mod:`sqlite3`
module and doubles as the :class:`~finance_tracker.store.TransactionStore`
the reporting core reads from.
"""
from __future__ import annotations

import json
import sqlite3
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional
from uuid import uuid4

from .models import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    Category,
    Expense,
    Income,
    Notification,
)

DEFAULT_CATEGORIES = (
    ("Food & Dining", "utensils", "#FF7043"),
    ("Transportation", "car", "#42A5F5"),
    ("Shopping", "shopping-bag", "#AB47BC"),
    ("Bills & Utilities", "zap", "#FFA726"),
    ("Entertainment", "film", "#EC407A"),
    ("Health", "heart", "#EF5350"),
    ("Education", "book-open", "#5C6BC0"),
    ("Groceries", "shopping-cart", "#66BB6A"),
    ("Housing", "home", "#8D6E63"),
    ("Insurance", "shield", "#26A69A"),
    ("Investments", "trending-up", "#9CCC65"),
    ("Personal Care", "scissors", "#F06292"),
    ("Travel", "plane", "#29B6F6"),
    ("Gifts", "gift", "#FFCA28"),
    ("Other", DEFAULT_CATEGORY_ICON, DEFAULT_CATEGORY_COLOR),
)

_EXPENSE_SELECT = """
    SELECT
        e.*,
        c.id AS c_id,
        c.name AS c_name,
        c.icon AS c_icon,
        c.color AS c_color,
        c.created_at AS c_created_at
    FROM expenses AS e
    LEFT JOIN categories AS c ON c.id = e.category_id
"""


@dataclass(frozen=True)
class ExpenseFilter:
    """Optional filters accepted by :meth:`SQLiteRepository.list_expenses`."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_id: Optional[str] = None
    payment_method: Optional[str] = None
    is_recurring: Optional[bool] = None
    search: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


class SQLiteRepository:
    """Encapsulates all SQLite access for the application.

    The connection is shared between FastAPI's worker threads and the trend
    builder's thread pool, so every statement runs under one lock.
    """

    def __init__(self, database_path: Path | str) -> None:
        self._database_path = database_path
        self._connection = sqlite3.connect(
            database_path,
            detect_types=sqlite3.PARSE_DECLTYPES,
            check_same_thread=False,
        )
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.Lock()

    def close(self) -> None:
        """Close the underlying SQLite connection."""

        with self._lock:
            self._connection.close()

    # ------------------------------------------------------------------
    # Schema management
    # ------------------------------------------------------------------
    def initialise_schema(self) -> None:
        """Create all tables required by the application if they do not exist."""

        with self._lock:
            self._connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS categories (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    icon TEXT NOT NULL DEFAULT 'more-horizontal',
                    color TEXT NOT NULL DEFAULT '#607D8B',
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS expenses (
                    id TEXT PRIMARY KEY,
                    item TEXT NOT NULL,
                    amount REAL NOT NULL CHECK (amount >= 0),
                    category_id TEXT,
                    date TEXT NOT NULL,
                    payment_method TEXT NOT NULL DEFAULT 'cash',
                    is_recurring INTEGER NOT NULL DEFAULT 0,
                    recurring_frequency TEXT,
                    notes TEXT,
                    receipt_url TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS income (
                    id TEXT PRIMARY KEY,
                    source TEXT NOT NULL,
                    amount REAL NOT NULL CHECK (amount >= 0),
                    date TEXT NOT NULL,
                    is_recurring INTEGER NOT NULL DEFAULT 0,
                    recurring_frequency TEXT,
                    notes TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS notifications (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    message TEXT NOT NULL,
                    type TEXT NOT NULL DEFAULT 'report',
                    is_read INTEGER NOT NULL DEFAULT 0,
                    data TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);
                CREATE INDEX IF NOT EXISTS idx_income_date ON income(date);
                """
            )
            self._connection.commit()

    def seed_default_categories(self) -> int:
        """Insert the default categories when the table is empty.

        Returns the number of categories created.
        """

        with self._lock:
            row = self._connection.execute("SELECT COUNT(*) AS n FROM categories").fetchone()
            if row["n"]:
                return 0
            now = _now()
            self._connection.executemany(
                "INSERT INTO categories (id, name, icon, color, created_at) VALUES (?, ?, ?, ?, ?)",
                [(str(uuid4()), name, icon, color, now) for name, icon, color in DEFAULT_CATEGORIES],
            )
            self._connection.commit()
        return len(DEFAULT_CATEGORIES)

    # ------------------------------------------------------------------
    # Transaction store queries
    # ------------------------------------------------------------------
    def fetch_expenses(self, start_date: date, end_date: date) -> list[Expense]:
        """Return every expense dated inside the inclusive range, largest first."""

        rows = self._fetchall(
            _EXPENSE_SELECT + " WHERE e.date >= ? AND e.date <= ? ORDER BY e.amount DESC",
            (start_date.isoformat(), end_date.isoformat()),
        )
        return [_expense_from_row(row) for row in rows]

    def fetch_income(self, start_date: date, end_date: date) -> list[Income]:
        """Return every income record dated inside the inclusive range."""

        rows = self._fetchall(
            "SELECT * FROM income WHERE date >= ? AND date <= ? ORDER BY date DESC",
            (start_date.isoformat(), end_date.isoformat()),
        )
        return [_income_from_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    def list_categories(self) -> list[Category]:
        rows = self._fetchall("SELECT * FROM categories ORDER BY name")
        return [_category_from_row(row) for row in rows]

    def create_category(
        self,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        category_id = str(uuid4())
        self._execute(
            "INSERT INTO categories (id, name, icon, color, created_at) VALUES (?, ?, ?, ?, ?)",
            (category_id, name, icon or DEFAULT_CATEGORY_ICON, color or DEFAULT_CATEGORY_COLOR, _now()),
        )
        return self.get_category(category_id)

    def get_category(self, category_id: str) -> Optional[Category]:
        row = self._fetchone("SELECT * FROM categories WHERE id = ?", (category_id,))
        return _category_from_row(row) if row else None

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------
    def list_expenses(self, filters: ExpenseFilter = ExpenseFilter()) -> list[Expense]:
        """Return expenses matching ``filters``, newest first."""

        clauses: list[str] = []
        params: list[Any] = []
        if filters.start_date:
            clauses.append("e.date >= ?")
            params.append(filters.start_date.isoformat())
        if filters.end_date:
            clauses.append("e.date <= ?")
            params.append(filters.end_date.isoformat())
        if filters.category_id:
            clauses.append("e.category_id = ?")
            params.append(filters.category_id)
        if filters.payment_method:
            clauses.append("e.payment_method = ?")
            params.append(filters.payment_method)
        if filters.is_recurring:
            clauses.append("e.is_recurring = 1")
        if filters.search:
            clauses.append("LOWER(e.item) LIKE ?")
            params.append(f"%{filters.search.lower()}%")

        sql = _EXPENSE_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY e.date DESC, e.created_at DESC"
        if filters.limit is not None or filters.offset is not None:
            sql += " LIMIT ? OFFSET ?"
            params.append(filters.limit if filters.limit is not None else 50)
            params.append(filters.offset or 0)

        return [_expense_from_row(row) for row in self._fetchall(sql, params)]

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        row = self._fetchone(_EXPENSE_SELECT + " WHERE e.id = ?", (expense_id,))
        return _expense_from_row(row) if row else None

    def create_expense(self, values: Mapping[str, Any]) -> Expense:
        expense_id = str(uuid4())
        now = _now()
        self._execute(
            """
            INSERT INTO expenses (
                id, item, amount, category_id, date, payment_method, is_recurring,
                recurring_frequency, notes, receipt_url, created_at, updated_at
            ) VALUES (
                :id, :item, :amount, :category_id, :date, :payment_method, :is_recurring,
                :recurring_frequency, :notes, :receipt_url, :created_at, :updated_at
            )
            """,
            {**_expense_params(values), "id": expense_id, "created_at": now, "updated_at": now},
        )
        return self.get_expense(expense_id)

    def update_expense(self, expense_id: str, values: Mapping[str, Any]) -> Optional[Expense]:
        updated = self._execute(
            """
            UPDATE expenses SET
                item = :item,
                amount = :amount,
                category_id = :category_id,
                date = :date,
                payment_method = :payment_method,
                is_recurring = :is_recurring,
                recurring_frequency = :recurring_frequency,
                notes = :notes,
                receipt_url = :receipt_url,
                updated_at = :updated_at
            WHERE id = :id
            """,
            {**_expense_params(values), "id": expense_id, "updated_at": _now()},
        )
        if not updated:
            return None
        return self.get_expense(expense_id)

    def delete_expense(self, expense_id: str) -> bool:
        return bool(self._execute("DELETE FROM expenses WHERE id = ?", (expense_id,)))

    # ------------------------------------------------------------------
    # Income
    # ------------------------------------------------------------------
    def list_income(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> list[Income]:
        clauses: list[str] = []
        params: list[Any] = []
        if start_date:
            clauses.append("date >= ?")
            params.append(start_date.isoformat())
        if end_date:
            clauses.append("date <= ?")
            params.append(end_date.isoformat())
        sql = "SELECT * FROM income"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY date DESC, created_at DESC"
        return [_income_from_row(row) for row in self._fetchall(sql, params)]

    def get_income(self, income_id: str) -> Optional[Income]:
        row = self._fetchone("SELECT * FROM income WHERE id = ?", (income_id,))
        return _income_from_row(row) if row else None

    def create_income(self, values: Mapping[str, Any]) -> Income:
        income_id = str(uuid4())
        now = _now()
        self._execute(
            """
            INSERT INTO income (
                id, source, amount, date, is_recurring, recurring_frequency,
                notes, created_at, updated_at
            ) VALUES (
                :id, :source, :amount, :date, :is_recurring, :recurring_frequency,
                :notes, :created_at, :updated_at
            )
            """,
            {**_income_params(values), "id": income_id, "created_at": now, "updated_at": now},
        )
        return self.get_income(income_id)

    def update_income(self, income_id: str, values: Mapping[str, Any]) -> Optional[Income]:
        updated = self._execute(
            """
            UPDATE income SET
                source = :source,
                amount = :amount,
                date = :date,
                is_recurring = :is_recurring,
                recurring_frequency = :recurring_frequency,
                notes = :notes,
                updated_at = :updated_at
            WHERE id = :id
            """,
            {**_income_params(values), "id": income_id, "updated_at": _now()},
        )
        if not updated:
            return None
        return self.get_income(income_id)

    def delete_income(self, income_id: str) -> bool:
        return bool(self._execute("DELETE FROM income WHERE id = ?", (income_id,)))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def list_notifications(self, limit: int = 20) -> list[Notification]:
        rows = self._fetchall(
            "SELECT * FROM notifications ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (limit,),
        )
        return [_notification_from_row(row) for row in rows]

    def create_notification(
        self,
        title: str,
        message: str,
        type: str = "report",
        data: Optional[dict[str, Any]] = None,
    ) -> Notification:
        notification_id = str(uuid4())
        self._execute(
            """
            INSERT INTO notifications (id, title, message, type, is_read, data, created_at)
            VALUES (?, ?, ?, ?, 0, ?, ?)
            """,
            (
                notification_id,
                title,
                message,
                type,
                json.dumps(data, default=str) if data is not None else None,
                _now(),
            ),
        )
        row = self._fetchone("SELECT * FROM notifications WHERE id = ?", (notification_id,))
        return _notification_from_row(row)

    def mark_notification_read(self, notification_id: str) -> bool:
        return bool(
            self._execute("UPDATE notifications SET is_read = 1 WHERE id = ?", (notification_id,))
        )

    # ------------------------------------------------------------------
    # Low-level helpers
    # ------------------------------------------------------------------
    def _fetchall(self, sql: str, params: Iterable[Any] | Mapping[str, Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._connection.execute(sql, params).fetchall()

    def _fetchone(self, sql: str, params: Iterable[Any] | Mapping[str, Any] = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self._connection.execute(sql, params).fetchone()

    def _execute(self, sql: str, params: Iterable[Any] | Mapping[str, Any] = ()) -> int:
        """Run a write statement, commit, and return the affected row count."""

        with self._lock:
            cursor = self._connection.execute(sql, params)
            self._connection.commit()
            return cursor.rowcount


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _date_to_iso(value: Optional[date | str]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(str(value))


def _expense_params(values: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "item": values["item"],
        "amount": float(values["amount"]),
        "category_id": values.get("category_id") or None,
        "date": _date_to_iso(values["date"]),
        "payment_method": values.get("payment_method") or "cash",
        "is_recurring": int(bool(values.get("is_recurring"))),
        "recurring_frequency": values.get("recurring_frequency") or None,
        "notes": values.get("notes") or None,
        "receipt_url": values.get("receipt_url") or None,
    }


def _income_params(values: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "source": values["source"],
        "amount": float(values["amount"]),
        "date": _date_to_iso(values["date"]),
        "is_recurring": int(bool(values.get("is_recurring"))),
        "recurring_frequency": values.get("recurring_frequency") or None,
        "notes": values.get("notes") or None,
    }


def _category_from_row(row: sqlite3.Row) -> Category:
    return Category(
        id=row["id"],
        name=row["name"],
        icon=row["icon"],
        color=row["color"],
        created_at=_parse_datetime(row["created_at"]),
    )


def _expense_from_row(row: sqlite3.Row) -> Expense:
    category = None
    if row["c_id"] is not None:
        category = Category(
            id=row["c_id"],
            name=row["c_name"],
            icon=row["c_icon"],
            color=row["c_color"],
            created_at=_parse_datetime(row["c_created_at"]),
        )
    return Expense(
        id=row["id"],
        item=row["item"],
        amount=float(row["amount"]),
        date=_parse_date(row["date"]),
        category_id=row["category_id"],
        category=category,
        payment_method=row["payment_method"],
        is_recurring=bool(row["is_recurring"]),
        recurring_frequency=row["recurring_frequency"],
        notes=row["notes"],
        receipt_url=row["receipt_url"],
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def _income_from_row(row: sqlite3.Row) -> Income:
    return Income(
        id=row["id"],
        source=row["source"],
        amount=float(row["amount"]),
        date=_parse_date(row["date"]),
        is_recurring=bool(row["is_recurring"]),
        recurring_frequency=row["recurring_frequency"],
        notes=row["notes"],
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def _notification_from_row(row: sqlite3.Row) -> Notification:
    return Notification(
        id=row["id"],
        title=row["title"],
        message=row["message"],
        type=row["type"],
        is_read=bool(row["is_read"]),
        data=json.loads(row["data"]) if row["data"] else None,
        created_at=_parse_datetime(row["created_at"]),
    )
