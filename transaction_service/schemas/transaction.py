"""Pydantic schemas describing transaction payloads and report envelopes.

Python attributes are snake_case; the JSON wire format is camelCase (for
example ``date_of_sale`` travels as ``dateOfSale``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionIn(CamelModel):
    """One record of the upstream seed fixture. Unknown keys (like ``id``) are dropped."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    price: Optional[float] = None
    description: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    sold: Optional[bool] = None
    date_of_sale: Optional[datetime] = None

    @field_validator("date_of_sale")
    @classmethod
    def to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)


class TransactionOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: Optional[str] = None
    price: Optional[float] = None
    description: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    sold: Optional[bool] = None
    date_of_sale: Optional[datetime] = None

    @field_validator("date_of_sale")
    @classmethod
    def mark_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=timezone.utc)


class SeedResponse(CamelModel):
    success: bool = True
    message: str
    inserted: int


class TransactionPage(CamelModel):
    success: bool = True
    transactions: list[TransactionOut] = Field(default_factory=list)
    total_pages: int
    current_page: int


class StatisticsResponse(CamelModel):
    success: bool = True
    total_sale_amount: float = 0
    total_sold_items: int = 0
    total_unsold_items: int = 0


class PriceRangeBucket(CamelModel):
    bucket: Union[int, str] = Field(alias="_id")
    label: str
    count: int = 0


class BarChartResponse(CamelModel):
    success: bool = True
    price_ranges: list[PriceRangeBucket] = Field(default_factory=list)


class CategoryCount(CamelModel):
    category: Optional[str] = Field(default=None, alias="_id")
    count: int = 0


class PieChartResponse(CamelModel):
    success: bool = True
    categories: list[CategoryCount] = Field(default_factory=list)


class CombinedReportResponse(CamelModel):
    success: bool = True
    statistics: StatisticsResponse
    bar_chart: BarChartResponse
    pie_chart: PieChartResponse
