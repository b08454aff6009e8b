"""FastAPI application exposing the finance tracker."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date
from typing import Annotated, Optional

import requests
from fastapi import Depends, FastAPI, File, Header, HTTPException, Query, Request, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import AppConfig, load_config
from .database import ExpenseFilter, SQLiteRepository
from .ocr import OcrService
from .schemas import CategoryIn, ExpenseIn, IncomeIn, PaymentMethod, ReceiptTextIn
from .services import FinanceService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Initialise shared services once and reuse them across requests."""

    config = load_config()
    repository = SQLiteRepository(config.database_file)
    repository.initialise_schema()
    seeded = repository.seed_default_categories()
    if seeded:
        logger.info("Seeded %d default categories", seeded)
    finance_service = FinanceService(config, repository, OcrService(config))

    app.state.config = config
    app.state.repository = repository
    app.state.finance = finance_service

    yield

    repository.close()


app = FastAPI(lifespan=lifespan, title="finance tracker", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(sqlite3.Error)
async def store_error_handler(_: Request, exc: sqlite3.Error) -> JSONResponse:
    logger.exception("Transaction store query failed", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


# Dependency injection ------------------------------------------------------

def get_config() -> AppConfig:
    config: AppConfig = app.state.config
    return config


def get_finance_service() -> FinanceService:
    service: FinanceService = app.state.finance
    return service


def get_repository() -> SQLiteRepository:
    repository: SQLiteRepository = app.state.repository
    return repository


MonthParam = Annotated[Optional[int], Query(ge=1, le=12)]
YearParam = Annotated[Optional[int], Query(ge=1900, le=9999)]


# Routes --------------------------------------------------------------------


@app.get("/health")
def health_check() -> dict[str, str]:
    """Return a basic heartbeat payload for monitoring purposes."""

    return {"status": "ok"}


@app.get("/categories")
def list_categories(repository: Annotated[SQLiteRepository, Depends(get_repository)]) -> list[dict[str, object]]:
    return [asdict(category) for category in repository.list_categories()]


@app.post("/categories", status_code=201)
def create_category(
    body: CategoryIn,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, object]:
    category = repository.create_category(body.name, body.icon, body.color)
    return asdict(category)


@app.get("/expenses")
def list_expenses(
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[str] = None,
    payment_method: Optional[PaymentMethod] = None,
    is_recurring: Optional[bool] = None,
    search: Optional[str] = None,
    limit: Annotated[Optional[int], Query(ge=1, le=1000)] = None,
    offset: Annotated[Optional[int], Query(ge=0)] = None,
) -> list[dict[str, object]]:
    filters = ExpenseFilter(
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        payment_method=payment_method,
        is_recurring=is_recurring,
        search=search,
        limit=limit,
        offset=offset,
    )
    return [asdict(expense) for expense in repository.list_expenses(filters)]


@app.post("/expenses", status_code=201)
def create_expense(
    body: ExpenseIn,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, object]:
    return asdict(repository.create_expense(body.model_dump()))


@app.put("/expenses/{expense_id}")
def update_expense(
    expense_id: str,
    body: ExpenseIn,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, object]:
    expense = repository.update_expense(expense_id, body.model_dump())
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return asdict(expense)


@app.delete("/expenses/{expense_id}")
def delete_expense(
    expense_id: str,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, bool]:
    if not repository.delete_expense(expense_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"success": True}


@app.get("/income")
def list_income(
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[dict[str, object]]:
    return [asdict(record) for record in repository.list_income(start_date, end_date)]


@app.post("/income", status_code=201)
def create_income(
    body: IncomeIn,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, object]:
    return asdict(repository.create_income(body.model_dump()))


@app.put("/income/{income_id}")
def update_income(
    income_id: str,
    body: IncomeIn,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, object]:
    record = repository.update_income(income_id, body.model_dump())
    if record is None:
        raise HTTPException(status_code=404, detail="Income not found")
    return asdict(record)


@app.delete("/income/{income_id}")
def delete_income(
    income_id: str,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, bool]:
    if not repository.delete_income(income_id):
        raise HTTPException(status_code=404, detail="Income not found")
    return {"success": True}


@app.get("/reports")
def monthly_report(
    finance_service: Annotated[FinanceService, Depends(get_finance_service)],
    month: MonthParam = None,
    year: YearParam = None,
) -> dict[str, object]:
    """Return the aggregated report, comparison and advice for one month."""

    return asdict(finance_service.monthly_report(month, year))


@app.get("/reports/trend")
def report_trend(
    finance_service: Annotated[FinanceService, Depends(get_finance_service)],
    month: MonthParam = None,
    year: YearParam = None,
    window: Annotated[Optional[int], Query(ge=1, le=24)] = None,
) -> dict[str, object]:
    points = finance_service.trend(month, year, window)
    return {"points": [asdict(point) for point in points], "count": len(points)}


@app.get("/reports/export.csv")
def export_report_csv(
    finance_service: Annotated[FinanceService, Depends(get_finance_service)],
    month: MonthParam = None,
    year: YearParam = None,
) -> Response:
    filename, content = finance_service.report_csv(month, year)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/notifications")
def list_notifications(
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> list[dict[str, object]]:
    return [asdict(notification) for notification in repository.list_notifications(20)]


@app.put("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, bool]:
    if not repository.mark_notification_read(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True}


@app.get("/cron/monthly-report")
def cron_monthly_report(
    config: Annotated[AppConfig, Depends(get_config)],
    finance_service: Annotated[FinanceService, Depends(get_finance_service)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict[str, object]:
    """Publish the previous month's report notification; called by a scheduler."""

    if not config.cron_secret or authorization != f"Bearer {config.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
    report, notification = finance_service.publish_monthly_notification()
    return {
        "success": True,
        "notification_id": notification.id,
        "month": report.month,
        "year": report.year,
        "total_expenses": report.total_expenses,
        "total_income": report.total_income,
    }


@app.post("/receipts/scan")
def scan_receipt(
    finance_service: Annotated[FinanceService, Depends(get_finance_service)],
    file: Annotated[UploadFile, File(description="Photo of the receipt")],
) -> dict[str, object]:
    try:
        receipt = finance_service.scan_receipt(file.file.read(), file.filename or "receipt.jpg")
    except requests.RequestException as exc:
        logger.warning("OCR request failed: %s", exc)
        raise HTTPException(status_code=503, detail="OCR service unavailable. Try again later.") from exc
    if receipt is None:
        raise HTTPException(status_code=503, detail="Receipt text unavailable. Check the OCR.space API key.")
    return asdict(receipt)


@app.post("/receipts/parse")
def parse_receipt(
    body: ReceiptTextIn,
    finance_service: Annotated[FinanceService, Depends(get_finance_service)],
) -> dict[str, object]:
    return asdict(finance_service.parse_receipt(body.text))


@app.get("/export")
def export_data(
    finance_service: Annotated[FinanceService, Depends(get_finance_service)],
) -> dict[str, object]:
    backup = finance_service.export_data()
    return {
        "exported_at": backup["exported_at"],
        "expenses": [asdict(expense) for expense in backup["expenses"]],
        "income": [asdict(record) for record in backup["income"]],
        "categories": [asdict(category) for category in backup["categories"]],
    }
