"""High-level application services orchestrating the finance tracker."""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from .config import AppConfig
from .database import SQLiteRepository
from .exports import report_filename, report_to_csv
from .models import MonthlyReport, Notification, Period, ReceiptData, TrendPoint, month_name
from .ocr import OcrService
from .receipts import ReceiptParser
from .reporting import ReportService
from .trends import TrendBuilder

logger = logging.getLogger(__name__)


class FinanceService:
    """Coordinates reporting, notifications, exports and receipt scanning."""

    def __init__(
        self,
        config: AppConfig,
        repository: SQLiteRepository,
        ocr_service: OcrService,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._config = config
        self._repository = repository
        self._ocr_service = ocr_service
        self._clock = clock
        self._reports = ReportService(repository, clock)
        self._trends = TrendBuilder(repository, config.trend_window, config.trend_workers)
        self._receipts = ReceiptParser(
            sorted({config.currency.lower(), config.currency_symbol.lower(), "rm", "myr"})
        )

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def monthly_report(self, month: Optional[int] = None, year: Optional[int] = None) -> MonthlyReport:
        period = self._resolve_period(month, year)
        return self._reports.monthly_report(period.month, period.year)

    def trend(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
        window: Optional[int] = None,
    ) -> list[TrendPoint]:
        period = self._resolve_period(month, year)
        builder = self._trends
        if window is not None and window != builder.window:
            builder = TrendBuilder(self._repository, window, self._config.trend_workers)
        return builder.build(period.month, period.year)

    def report_csv(self, month: Optional[int] = None, year: Optional[int] = None) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` for the requested month."""

        report = self.monthly_report(month, year)
        return report_filename(report), report_to_csv(report)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def publish_monthly_notification(self) -> tuple[MonthlyReport, Notification]:
        """Store a ``report`` notification summarising the previous month.

        Meant to run on the first day of each month from a scheduler.
        """

        period = Period.containing(self._clock()).previous()
        report = self._reports.monthly_report(period.month, period.year)
        symbol = self._config.currency_symbol
        title = f"{month_name(period.month)} {period.year} Monthly Report"
        outcome = "Saved" if report.savings >= 0 else "Overspent"
        message = (
            f"Total spending: {symbol} {report.total_expenses:.2f} | "
            f"Income: {symbol} {report.total_income:.2f} | "
            f"{outcome}: {symbol} {abs(report.savings):.2f}"
        )
        data: dict[str, Any] = {
            "month": period.month,
            "year": period.year,
            "total_expenses": report.total_expenses,
            "total_income": report.total_income,
            "savings": report.savings,
            "top_category": report.by_category[0].category_name if report.by_category else "N/A",
            "advice": report.advice[0] if report.advice else "",
        }
        notification = self._repository.create_notification(title, message, "report", data)
        logger.info("Published monthly notification %s (%s)", notification.id, title)
        return report, notification

    # ------------------------------------------------------------------
    # Receipts
    # ------------------------------------------------------------------
    def scan_receipt(self, image: bytes, filename: str) -> Optional[ReceiptData]:
        """Recognise ``image`` and extract its fields; ``None`` if OCR is unavailable."""

        text = self._ocr_service.recognise_text(image, filename)
        if text is None:
            return None
        return self._receipts.parse(text)

    def parse_receipt(self, text: str) -> ReceiptData:
        return self._receipts.parse(text)

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------
    def export_data(self) -> dict[str, Any]:
        return {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "expenses": self._repository.list_expenses(),
            "income": self._repository.list_income(),
            "categories": self._repository.list_categories(),
        }

    def _resolve_period(self, month: Optional[int], year: Optional[int]) -> Period:
        today = self._clock()
        return Period(month or today.month, year or today.year)
