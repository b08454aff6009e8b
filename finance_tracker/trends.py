"""Multi-month expense/income series for charting."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from .models import Period, TrendPoint
from .reporting import aggregate
from .store import TransactionStore

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 6


class TrendBuilder:
    """Aggregate a sliding window of calendar months ending at an anchor month.

    Each month is fetched and aggregated independently on a thread pool. The
    futures complete in any order, so the points are re-sorted by the first
    day of their month before they are returned.
    """

    def __init__(
        self,
        store: TransactionStore,
        window: int = DEFAULT_WINDOW,
        max_workers: Optional[int] = None,
    ) -> None:
        if window < 1:
            raise ValueError(f"window must be at least 1, got {window}")
        self._store = store
        self._window = window
        self._max_workers = max_workers or window

    @property
    def window(self) -> int:
        return self._window

    def periods(self, anchor: Period) -> list[Period]:
        """Months of the window, oldest first, ending with ``anchor``."""

        return [anchor.shifted(-offset) for offset in range(self._window - 1, -1, -1)]

    def build(self, month: int, year: int) -> list[TrendPoint]:
        """Return exactly :attr:`window` points in ascending chronological order.

        The first failing fetch is re-raised once all submitted jobs have
        finished, and no partial series is returned.
        """

        anchor = Period(month, year)
        periods = self.periods(anchor)
        logger.debug("Fetching %d trend months ending %04d-%02d", len(periods), year, month)

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [executor.submit(self._point, period, anchor.year) for period in periods]
            points = [future.result() for future in as_completed(futures)]

        return sorted(points, key=lambda point: point.period_start)

    def _point(self, period: Period, anchor_year: int) -> TrendPoint:
        expenses = self._store.fetch_expenses(period.start, period.end)
        income = self._store.fetch_income(period.start, period.end)
        rollup = aggregate(expenses, income)
        return TrendPoint(
            period_label=period.short_label(anchor_year),
            month=period.month,
            year=period.year,
            period_start=period.start,
            total_expenses=rollup.total_expenses,
            total_income=rollup.total_income,
        )
