from __future__ import annotations

from sqlalchemy import String, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import TYPE_CHECKING
from campus_market.database import Base
from campus_market.core.datetime_utils import utc_now

if TYPE_CHECKING:
    from campus_market.models.category import Category


class Commission(Base):
    """Platform fee (percent) charged on sales in one category"""
    __tablename__ = "commissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    category_id: Mapped[int] = mapped_column(Integer, ForeignKey("categories.id"), unique=True, nullable=False)
    rate: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    category: Mapped["Category"] = relationship("Category", back_populates="commission")

    def __repr__(self):
        return f"<Commission(id={self.id}, category_id={self.category_id}, rate={self.rate})>"
