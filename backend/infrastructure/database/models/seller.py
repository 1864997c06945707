"""
Seller, badge and promotion database models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UTCDateTime


class PromotionKind(str, Enum):
    """Promotion slot types."""

    SPOTLIGHT = "spotlight"
    BOOST = "boost"


class SellerRecord(Base, TimestampMixin):
    """Seller profile with cached usage counters and statistics."""

    __tablename__ = "sellers"
    __table_args__ = (
        CheckConstraint("active_listings_count >= 0", name="ck_sellers_active_listings_nonneg"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    business_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Usage (kept in step with listing documents by the listing collaborator)
    active_listings_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Statistics
    total_sales: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_listings: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # Verification
    verification_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    verification_expires_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )

    badges: Mapped[list["SellerBadge"]] = relationship(
        back_populates="seller",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class SellerBadge(Base):
    """Badge held by a seller."""

    __tablename__ = "seller_badges"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    seller_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("sellers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    badge: Mapped[str] = mapped_column(String(50), nullable=False)
    awarded_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    seller: Mapped["SellerRecord"] = relationship(back_populates="badges")


class Promotion(Base, TimestampMixin):
    """A spotlight or boost applied to one listing."""

    __tablename__ = "promotions"
    __table_args__ = (
        Index("ix_promotions_seller_kind_start", "seller_id", "kind", "start_date"),
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
    listing_id: Mapped[str] = mapped_column(String(64), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    plan: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
