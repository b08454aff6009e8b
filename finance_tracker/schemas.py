"""Request bodies accepted by the HTTP API."""
import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field

PaymentMethod = Literal["cash", "credit_card", "debit_card", "e_wallet", "bank_transfer", "other"]
RecurringFrequency = Literal["weekly", "monthly", "yearly"]


class CategoryIn(BaseModel):
    name: str = Field(min_length=1, max_length=60)
    icon: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class ExpenseIn(BaseModel):
    item: str = Field(min_length=1)
    amount: float = Field(ge=0)
    category_id: Optional[str] = None
    date: dt.date
    payment_method: PaymentMethod = "cash"
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    notes: Optional[str] = None
    receipt_url: Optional[str] = None


class IncomeIn(BaseModel):
    source: str = Field(min_length=1)
    amount: float = Field(ge=0)
    date: dt.date
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    notes: Optional[str] = None


class ReceiptTextIn(BaseModel):
    text: str
