"""Query helpers for the transaction table."""

from __future__ import annotations

import math
from typing import Iterable

from sqlalchemy import extract, false, func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from ..models.transaction import Transaction
from ..schemas.transaction import TransactionIn

LIKE_ESCAPE = "\\"


def month_filter(month_number: int | None) -> ColumnElement[bool]:
    """Match rows whose sale date falls in ``month_number`` of any year."""

    if month_number is None:
        return false()
    return extract("month", Transaction.date_of_sale) == month_number


def _escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _numeric_term(term: str) -> float | None:
    try:
        value = float(term)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def search_filter(search: str | None) -> ColumnElement[bool] | None:
    """Title/description substring match, or an exact price match for numbers."""

    term = (search or "").strip()
    if not term:
        return None
    pattern = f"%{_escape_like(term)}%"
    clauses = [
        Transaction.title.ilike(pattern, escape=LIKE_ESCAPE),
        Transaction.description.ilike(pattern, escape=LIKE_ESCAPE),
    ]
    price = _numeric_term(term)
    if price is not None:
        clauses.append(Transaction.price == price)
    return or_(*clauses)


def _listing_conditions(month_number: int | None, search: str | None) -> list[ColumnElement[bool]]:
    conditions = [month_filter(month_number)]
    matcher = search_filter(search)
    if matcher is not None:
        conditions.append(matcher)
    return conditions


def list_transactions(
    db: Session,
    month_number: int | None,
    search: str | None = None,
    limit: int = 10,
    offset: int = 0,
) -> list[Transaction]:
    stmt = (
        select(Transaction)
        .where(*_listing_conditions(month_number, search))
        .order_by(Transaction.id)
        .limit(limit)
        .offset(offset)
    )
    return list(db.execute(stmt).scalars().all())


def count_transactions(db: Session, month_number: int | None, search: str | None = None) -> int:
    stmt = select(func.count(Transaction.id)).where(*_listing_conditions(month_number, search))
    return int(db.execute(stmt).scalar_one())


def paginate_transactions(
    db: Session,
    month_number: int | None,
    search: str | None = None,
    page: int = 1,
    per_page: int = 10,
) -> tuple[list[Transaction], int]:
    """Return one page of matches and the total page count."""

    offset = (page - 1) * per_page
    rows = list_transactions(db, month_number, search, limit=per_page, offset=offset)
    total = count_transactions(db, month_number, search)
    return rows, math.ceil(total / per_page)


def insert_transactions(db: Session, records: Iterable[TransactionIn]) -> int:
    """Insert every record as a new row in a single commit. No deduplication."""

    rows = [Transaction(**record.model_dump()) for record in records]
    db.add_all(rows)
    db.commit()
    return len(rows)


__all__ = [
    "count_transactions",
    "insert_transactions",
    "list_transactions",
    "month_filter",
    "paginate_transactions",
    "search_filter",
]
