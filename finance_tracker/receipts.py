"""Best-effort extraction of receipt fields from recognised text.

Scanned receipts are noisy, so every field is optional. The parser tries a
short list of patterns per field and keeps the first match.
"""
from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from dateutil import parser as date_parser

from .models import ReceiptData

DEFAULT_CURRENCY_TOKENS = ("rm", "myr")

_PRICE = r"(\d+[.,]\d{2})"
_DATE_PATTERNS = (
    re.compile(r"(?<!\d)(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})(?!\d)"),
    re.compile(r"(?<!\d)(\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2})(?!\d)"),
)
_LOOSE_PRICE = re.compile(r"\d+\.\d{2}")


class ReceiptParser:
    """Guess amount, merchant and date from receipt text.

    Args:
        currency_tokens: Lower-case currency markers that may precede the
            total, e.g. ``("rm", "myr")``.
    """

    def __init__(self, currency_tokens: Iterable[str] = DEFAULT_CURRENCY_TOKENS) -> None:
        tokens = "|".join(re.escape(token.lower()) for token in currency_tokens if token)
        currency = f"(?:{tokens})?" if tokens else ""
        self._amount_patterns = [
            re.compile(rf"total\s*:?\s*{currency}\s*{_PRICE}", re.IGNORECASE),
            re.compile(
                rf"(?:grand\s*total|amount\s*due|total\s*amount)\s*:?\s*{currency}\s*{_PRICE}",
                re.IGNORECASE,
            ),
        ]
        if tokens:
            self._amount_patterns.append(re.compile(rf"(?:{tokens})\s*{_PRICE}", re.IGNORECASE))

    def parse(self, text: str) -> ReceiptData:
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        return ReceiptData(
            text=text,
            amount=self._find_amount(text),
            merchant=_find_merchant(lines),
            date=_find_date(text),
        )

    def _find_amount(self, text: str) -> Optional[float]:
        for pattern in self._amount_patterns:
            match = pattern.search(text)
            if match:
                return _parse_decimal(match.group(1))

        # Fall back to the largest price-looking number on the receipt.
        prices = [value for value in (_parse_decimal(raw) for raw in _LOOSE_PRICE.findall(text)) if value]
        return max(prices) if prices else None


def extract_receipt_data(text: str, currency_tokens: Iterable[str] = DEFAULT_CURRENCY_TOKENS) -> ReceiptData:
    return ReceiptParser(currency_tokens).parse(text)


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def _find_merchant(lines: list[str]) -> Optional[str]:
    # The shop name is usually printed on one of the first lines.
    for line in lines[:3]:
        if 2 < len(line) < 60 and not line[0].isdigit():
            return line
    return None


def _find_date(text: str) -> Optional[date]:
    for pattern in _DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return _parse_date(match.group(1))
    return None


def _parse_decimal(value: object) -> Optional[float]:
    if value is None:
        return None
    stringified = str(value).strip()
    if not stringified:
        return None
    normalised = stringified.replace(" ", "").replace(",", ".")
    try:
        return float(Decimal(normalised))
    except (InvalidOperation, ValueError):
        return None


def _parse_date(value: str) -> Optional[date]:
    # Year-first tokens keep their order; otherwise assume day-first receipts.
    year_first = bool(re.match(r"\d{4}", value))
    try:
        parsed = date_parser.parse(value, dayfirst=not year_first, yearfirst=year_first)
        return parsed.date()
    except (ValueError, OverflowError):
        return None
