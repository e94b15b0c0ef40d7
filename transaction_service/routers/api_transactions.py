from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..core.errors import ServiceError
from ..core.months import resolve_month
from ..crud.transactions import paginate_transactions
from ..db.session import get_db, get_session_factory
from ..schemas.transaction import (
    BarChartResponse,
    CombinedReportResponse,
    PieChartResponse,
    SeedResponse,
    StatisticsResponse,
    TransactionOut,
    TransactionPage,
)
from ..services.reporting import (
    build_combined_report,
    compute_category_distribution,
    compute_price_ranges,
    compute_statistics,
)
from ..services.seeding import fetch_seed_records, store_seed_records

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/product_transaction", tags=["product_transaction"])

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
# Largest page or page size accepted; keeps OFFSET within a 64-bit integer.
MAX_PAGE_VALUE = 2**31 - 1


def _positive_int(value: str | None, default: int) -> int:
    """Parse a query value as an integer >= 1, falling back to ``default``.

    Oversized values are clamped to ``MAX_PAGE_VALUE``.
    """

    if value is None:
        return default
    try:
        number = int(value.strip())
    except ValueError:
        return default
    if number < 1:
        return default
    return min(number, MAX_PAGE_VALUE)


@router.get("/seed", response_model=SeedResponse)
async def api_seed(db: Session = Depends(get_db)):
    try:
        records = await fetch_seed_records()
        inserted = await run_in_threadpool(store_seed_records, db, records)
    except Exception as exc:
        logger.exception("Error seeding data")
        raise ServiceError("Error seeding data", detail=str(exc), key="message") from exc
    return SeedResponse(message="Data seeded successfully", inserted=inserted)


@router.get("/transactions", response_model=TransactionPage)
def api_list_transactions(
    month: str | None = Query(default=None),
    search: str | None = Query(default=None),
    page: str | None = Query(default=None),
    per_page: str | None = Query(default=None, alias="perPage"),
    db: Session = Depends(get_db),
):
    current_page = _positive_int(page, DEFAULT_PAGE)
    size = _positive_int(per_page, DEFAULT_PER_PAGE)
    try:
        rows, total_pages = paginate_transactions(
            db,
            resolve_month(month),
            search,
            page=current_page,
            per_page=size,
        )
        transactions = [TransactionOut.model_validate(row) for row in rows]
    except Exception as exc:
        logger.exception("Error fetching transactions")
        raise ServiceError("Error fetching transactions") from exc
    return TransactionPage(
        transactions=transactions,
        total_pages=total_pages,
        current_page=current_page,
    )


@router.get("/statistics", response_model=StatisticsResponse)
def api_statistics(month: str | None = Query(default=None), db: Session = Depends(get_db)):
    try:
        return compute_statistics(db, resolve_month(month))
    except Exception as exc:
        logger.exception("Error fetching statistics")
        raise ServiceError("Error fetching statistics") from exc


@router.get("/bar-chart", response_model=BarChartResponse)
def api_bar_chart(month: str | None = Query(default=None), db: Session = Depends(get_db)):
    try:
        return compute_price_ranges(db, resolve_month(month))
    except Exception as exc:
        logger.exception("Error fetching price range data")
        raise ServiceError("Error fetching price range data") from exc


@router.get("/pie-chart", response_model=PieChartResponse)
def api_pie_chart(month: str | None = Query(default=None), db: Session = Depends(get_db)):
    try:
        return compute_category_distribution(db, resolve_month(month))
    except Exception as exc:
        logger.exception("Error fetching category distribution data")
        raise ServiceError("Error fetching category distribution data") from exc


@router.get("/combined-report", response_model=CombinedReportResponse)
async def api_combined_report(
    month: str | None = Query(default=None),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    try:
        return await build_combined_report(session_factory, resolve_month(month))
    except Exception as exc:
        logger.exception("Error combining reports")
        raise ServiceError("Error combining reports") from exc
