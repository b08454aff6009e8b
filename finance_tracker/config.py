"""Application configuration utilities for the finance tracker.

This module centralises environment-driven configuration so the rest of the
code base does not need to read environment variables directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load any variables defined in a local .env file. The call is idempotent, so
# running it at import time keeps the API ergonomic.
load_dotenv()


@dataclass(frozen=True)
class AppConfig:
    """Strongly-typed container for runtime configuration.

    Attributes:
        project_root: Root directory of the project. Used to derive default
            paths so the app works out of the box after cloning the repo.
        database_file: Absolute path to the SQLite database holding expenses,
            income, categories and notifications.
        currency: ISO-like currency code shown next to report figures.
        currency_symbol: Short symbol used in notification messages.
        cron_secret: Shared secret expected in the ``Authorization`` header of
            the monthly cron call. ``None`` disables the endpoint.
        ocr_api_key: Optional API key for the OCR.space text recognition
            service used by receipt scanning.
        ocr_endpoint: Endpoint URL of the text recognition service.
        trend_window: Number of calendar months in a trend series.
        trend_workers: Size of the thread pool fetching trend months.
        log_level: Name of the root logging level.
    """

    project_root: Path
    database_file: Path
    currency: str
    currency_symbol: str
    cron_secret: Optional[str]
    ocr_api_key: Optional[str]
    ocr_endpoint: str
    trend_window: int
    trend_workers: int
    log_level: str


def load_config() -> AppConfig:
    """Create a new :class:`AppConfig` instance based on environment settings.

    Environment variables override the default values. Tests supply patched
    environments and call the function again to get a fresh instance.
    """

    project_root = Path(__file__).resolve().parent.parent
    database_file = Path(
        getenv_with_default(
            "FINANCE_TRACKER_DB_FILE",
            project_root / "finance_tracker.db",
        )
    )

    currency = getenv_with_default("FINANCE_TRACKER_CURRENCY", "MYR")
    currency_symbol = getenv_with_default("FINANCE_TRACKER_CURRENCY_SYMBOL", "RM")
    cron_secret = getenv_with_default("CRON_SECRET")
    ocr_api_key = getenv_with_default("OCR_SPACE_API_KEY")
    ocr_endpoint = getenv_with_default(
        "OCR_SPACE_ENDPOINT",
        "https://api.ocr.space/parse/image",
    )
    trend_window = int(getenv_with_default("FINANCE_TRACKER_TREND_WINDOW", "6"))
    trend_workers = int(getenv_with_default("FINANCE_TRACKER_TREND_WORKERS", "6"))
    log_level = getenv_with_default("FINANCE_TRACKER_LOG_LEVEL", "INFO").upper()

    # Ensure the directories exist so later code can safely create files.
    database_file.parent.mkdir(parents=True, exist_ok=True)

    return AppConfig(
        project_root=project_root,
        database_file=database_file,
        currency=currency,
        currency_symbol=currency_symbol,
        cron_secret=cron_secret or None,
        ocr_api_key=ocr_api_key or None,
        ocr_endpoint=ocr_endpoint,
        trend_window=trend_window,
        trend_workers=trend_workers,
        log_level=log_level,
    )


def getenv_with_default(name: str, default: Optional[Path | str] = None) -> Optional[str]:
    """Return the value of an environment variable or a sensible default.

    ``None`` values are propagated so callers can make explicit decisions about
    optional configuration values. Paths are converted to strings, keeping the
    return type uniform and easy to serialise.
    """

    from os import getenv

    value = getenv(name)
    if value is not None:
        return value
    if default is None:
        return None
    return str(default)
