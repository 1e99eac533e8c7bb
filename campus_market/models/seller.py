from __future__ import annotations

from sqlalchemy import String, Integer, Float, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import TYPE_CHECKING
import enum
from campus_market.database import Base
from campus_market.core.datetime_utils import utc_now

if TYPE_CHECKING:
    from campus_market.models.user import User


class SellerStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class SellerProfile(Base):
    __tablename__ = "seller_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    store_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[SellerStatus] = mapped_column(
        Enum(SellerStatus), default=SellerStatus.PENDING, nullable=False, index=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Payout details, copied onto withdrawal requests
    payout_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payout_account_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payout_account_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payout_bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Kept in step with seller_reviews
    average_rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="seller_profile")

    def __repr__(self):
        return f"<SellerProfile(id={self.id}, store_name={self.store_name}, status={self.status})>"
