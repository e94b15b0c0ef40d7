import asyncio
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DB_URL", "sqlite://")

from transaction_service.core.months import resolve_month
from transaction_service.crud.transactions import insert_transactions
from transaction_service.db.session import Base
from transaction_service.schemas.transaction import TransactionIn
from transaction_service.services import reporting
from transaction_service.services.reporting import (
    OVERFLOW_BUCKET,
    build_combined_report,
    compute_category_distribution,
    compute_price_ranges,
    compute_statistics,
)

# Ensure models are registered so metadata tables are created
from transaction_service.models import transaction as transaction_model  # noqa: F401
from tests.sample_data import MARCH_TOTAL, sample_transactions

MARCH = resolve_month("March")


@pytest.fixture()
def session_factory(tmp_path):
    # File-backed so worker threads each get their own connection
    engine = create_engine(
        f"sqlite:///{tmp_path / 'reporting.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        insert_transactions(session, sample_transactions())
        yield session
    finally:
        session.close()


def test_statistics_sums_sold_prices_for_month(db_session):
    stats = compute_statistics(db_session, MARCH)

    assert stats.total_sale_amount == pytest.approx(1119.98)
    assert stats.total_sold_items == 3
    assert stats.total_unsold_items == 2
    assert stats.total_sold_items + stats.total_unsold_items == MARCH_TOTAL


def test_statistics_for_empty_month_are_zero(db_session):
    stats = compute_statistics(db_session, resolve_month("January"))
    assert stats.model_dump(by_alias=True) == {
        "success": True,
        "totalSaleAmount": 0,
        "totalSoldItems": 0,
        "totalUnsoldItems": 0,
    }


def test_statistics_for_unknown_month_are_zero(db_session):
    stats = compute_statistics(db_session, resolve_month("not-a-month"))
    assert stats.total_sale_amount == 0
    assert stats.total_sold_items == 0
    assert stats.total_unsold_items == 0


def test_price_ranges_emit_every_bucket_in_order(db_session):
    chart = compute_price_ranges(db_session, MARCH)
    labels = [bucket.label for bucket in chart.price_ranges]
    assert labels == [
        "0-100",
        "100-200",
        "200-300",
        "300-400",
        "400-500",
        "500-600",
        "600-700",
        "700-800",
        "800-900",
        OVERFLOW_BUCKET,
    ]
    counts = {bucket.label: bucket.count for bucket in chart.price_ranges}
    assert counts["0-100"] == 2
    assert counts["100-200"] == 1
    assert counts["200-300"] == 0
    assert counts["300-400"] == 1  # 300 sits on a lower boundary
    assert counts[OVERFLOW_BUCKET] == 1
    assert sum(counts.values()) == MARCH_TOTAL


def test_price_ranges_use_lower_boundary_ids(db_session):
    payload = compute_price_ranges(db_session, MARCH).model_dump(by_alias=True)
    first, last = payload["priceRanges"][0], payload["priceRanges"][-1]
    assert first == {"_id": 0, "label": "0-100", "count": 2}
    assert last == {"_id": OVERFLOW_BUCKET, "label": OVERFLOW_BUCKET, "count": 1}


def test_price_ranges_put_out_of_range_prices_in_overflow(db_session):
    insert_transactions(
        db_session,
        [
            TransactionIn(title="Refund", price=-5, sold=False, date_of_sale="2023-03-02T00:00:00Z"),
            TransactionIn(title="Unpriced", price=None, sold=False, date_of_sale="2023-03-03T00:00:00Z"),
            TransactionIn(title="Edge", price=900, sold=True, date_of_sale="2023-03-04T00:00:00Z"),
            TransactionIn(title="Almost", price=899.99, sold=True, date_of_sale="2023-03-04T00:00:00Z"),
        ],
    )
    counts = {bucket.label: bucket.count for bucket in compute_price_ranges(db_session, MARCH).price_ranges}
    assert counts[OVERFLOW_BUCKET] == 4
    assert counts["800-900"] == 1
    assert sum(counts.values()) == MARCH_TOTAL + 4


def test_category_distribution_counts_each_category_once(db_session):
    chart = compute_category_distribution(db_session, MARCH)
    assert [(item.category, item.count) for item in chart.categories] == [
        ("electronics", 3),
        ("jewelery", 1),
        ("men's clothing", 1),
    ]
    assert sum(item.count for item in chart.categories) == MARCH_TOTAL


def test_category_distribution_serialises_category_as_id(db_session):
    payload = compute_category_distribution(db_session, resolve_month("July")).model_dump(by_alias=True)
    assert payload == {"success": True, "categories": [{"_id": "women's clothing", "count": 1}]}


def test_reports_are_repeatable(db_session):
    assert compute_statistics(db_session, MARCH) == compute_statistics(db_session, MARCH)
    assert compute_price_ranges(db_session, MARCH) == compute_price_ranges(db_session, MARCH)
    assert compute_category_distribution(db_session, MARCH) == compute_category_distribution(db_session, MARCH)


def test_combined_report_merges_all_three(session_factory, db_session):
    report = asyncio.run(build_combined_report(session_factory, MARCH))

    assert report.success is True
    assert report.statistics == compute_statistics(db_session, MARCH)
    assert report.bar_chart == compute_price_ranges(db_session, MARCH)
    assert report.pie_chart == compute_category_distribution(db_session, MARCH)

    payload = report.model_dump(by_alias=True)
    assert set(payload) == {"success", "statistics", "barChart", "pieChart"}
    assert payload["statistics"]["success"] is True
    assert payload["barChart"]["priceRanges"][0]["_id"] == 0


def test_combined_report_fails_when_any_part_fails(session_factory, db_session, monkeypatch):
    def broken(db, month_number):
        raise RuntimeError("aggregation failed")

    monkeypatch.setattr(reporting, "compute_price_ranges", broken)

    with pytest.raises(RuntimeError, match="aggregation failed"):
        asyncio.run(build_combined_report(session_factory, MARCH))
