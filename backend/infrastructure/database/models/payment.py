"""
Payment ledger database model.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UTCDateTime


class PaymentRecord(Base, TimestampMixin):
    """One row per subscription purchase.

    Gateway order and payment ids are unique, so a verified checkout can pay
    for exactly one period.
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_seller_paid_at", "seller_id", "paid_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    seller_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("sellers.id", ondelete="CASCADE"),
        nullable=False,
    )

    plan: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)

    order_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    payment_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    paid_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
