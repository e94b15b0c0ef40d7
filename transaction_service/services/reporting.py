from __future__ import annotations

import asyncio
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, TypeVar

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from ..crud.transactions import month_filter
from ..models.transaction import Transaction
from ..schemas.transaction import (
    BarChartResponse,
    CategoryCount,
    CombinedReportResponse,
    PieChartResponse,
    PriceRangeBucket,
    StatisticsResponse,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

# Lower boundaries of the fixed-width price buckets; each bucket spans 100.
PRICE_BOUNDARIES = (0, 100, 200, 300, 400, 500, 600, 700, 800)
BUCKET_WIDTH = 100
OVERFLOW_BUCKET = "901-above"
_OVERFLOW_KEY = -1

T = TypeVar("T")


def _quantize_currency(value: object) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def compute_statistics(db: Session, month_number: int | None) -> StatisticsResponse:
    """Sale total plus sold/unsold counts for one calendar month."""

    in_month = month_filter(month_number)
    total_sales = db.execute(
        select(func.sum(Transaction.price)).where(in_month, Transaction.sold.is_(True))
    ).scalar()
    sold_count = db.execute(
        select(func.count(Transaction.id)).where(in_month, Transaction.sold.is_(True))
    ).scalar_one()
    unsold_count = db.execute(
        select(func.count(Transaction.id)).where(in_month, Transaction.sold.is_(False))
    ).scalar_one()
    return StatisticsResponse(
        total_sale_amount=float(_quantize_currency(total_sales)),
        total_sold_items=int(sold_count),
        total_unsold_items=int(unsold_count),
    )


def _bucket_label(lower: int) -> str:
    return f"{lower}-{lower + BUCKET_WIDTH}"


def compute_price_ranges(db: Session, month_number: int | None) -> BarChartResponse:
    """Histogram of prices for the month. All buckets are returned, empty ones with 0.

    Prices of 900 and above, negative prices and missing prices all land in
    the overflow bucket, so the counts always add up to the month total.
    """

    bucket_expr = case(
        *[
            (
                and_(Transaction.price >= lower, Transaction.price < lower + BUCKET_WIDTH),
                lower,
            )
            for lower in PRICE_BOUNDARIES
        ],
        else_=_OVERFLOW_KEY,
    )
    bucketed = select(bucket_expr.label("bucket")).where(month_filter(month_number)).subquery()
    rows = db.execute(
        select(bucketed.c.bucket, func.count()).group_by(bucketed.c.bucket)
    ).all()
    counts = {int(bucket): int(count) for bucket, count in rows}

    price_ranges = [
        PriceRangeBucket(bucket=lower, label=_bucket_label(lower), count=counts.get(lower, 0))
        for lower in PRICE_BOUNDARIES
    ]
    price_ranges.append(
        PriceRangeBucket(
            bucket=OVERFLOW_BUCKET,
            label=OVERFLOW_BUCKET,
            count=counts.get(_OVERFLOW_KEY, 0),
        )
    )
    return BarChartResponse(price_ranges=price_ranges)


def compute_category_distribution(db: Session, month_number: int | None) -> PieChartResponse:
    stmt = (
        select(Transaction.category, func.count(Transaction.id))
        .where(month_filter(month_number))
        .group_by(Transaction.category)
        .order_by(Transaction.category.asc().nulls_first())
    )
    categories = [
        CategoryCount(category=category, count=int(count))
        for category, count in db.execute(stmt).all()
    ]
    return PieChartResponse(categories=categories)


def _run_with_session(
    session_factory: Callable[[], Session],
    compute: Callable[[Session, int | None], T],
    month_number: int | None,
) -> T:
    db = session_factory()
    try:
        return compute(db, month_number)
    finally:
        db.close()


async def build_combined_report(
    session_factory: Callable[[], Session], month_number: int | None
) -> CombinedReportResponse:
    """Run the three month reports concurrently; any failure fails the whole report."""

    statistics, bar_chart, pie_chart = await asyncio.gather(
        asyncio.to_thread(_run_with_session, session_factory, compute_statistics, month_number),
        asyncio.to_thread(_run_with_session, session_factory, compute_price_ranges, month_number),
        asyncio.to_thread(
            _run_with_session, session_factory, compute_category_distribution, month_number
        ),
    )
    return CombinedReportResponse(
        statistics=statistics,
        bar_chart=bar_chart,
        pie_chart=pie_chart,
    )


__all__ = [
    "OVERFLOW_BUCKET",
    "PRICE_BOUNDARIES",
    "build_combined_report",
    "compute_category_distribution",
    "compute_price_ranges",
    "compute_statistics",
]
