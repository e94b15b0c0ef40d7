"""SQLAlchemy model for product sale transactions."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, Text

from ..db.session import Base


class Transaction(Base):
    """A single product listing together with its sale status and date."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    category = Column(Text, nullable=True, index=True)
    image = Column(Text, nullable=True)
    sold = Column(Boolean, nullable=True)
    # Stored as naive UTC
    date_of_sale = Column(DateTime, nullable=True, index=True)


__all__ = ["Transaction"]
