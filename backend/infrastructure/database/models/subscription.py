"""
Subscription database model.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UTCDateTime


class SubscriptionRecord(Base, TimestampMixin):
    """One subscription per seller, holding a snapshot of the plan features."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_status_end_date", "status", "end_date"),
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
        unique=True,
    )

    plan: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="inactive", nullable=False)
    start_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    # Snapshot copied at activation; never re-read from the plan table
    features: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    plan_table_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    payment_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    queued_plans: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
