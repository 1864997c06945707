"""
SQLAlchemy implementations of the seller, subscription and payment repositories.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.seller import (
    AwardedBadge,
    BadgeType,
    Seller,
    SellerStatistics,
    SellerVerification,
)
from core.domain.subscription import (
    FeatureBundle,
    Payment,
    PaymentMethod,
    Plan,
    QueuedPlan,
    Subscription,
)
from core.exceptions import PaymentAlreadyUsedError, QuotaExceededError, SellerNotFoundError
from core.interfaces.repositories import (
    PaymentRepository,
    SellerRepository,
    SubscriptionRepository,
)
from core.plans import PLAN_TABLE_VERSION

from .models.payment import PaymentRecord
from .models.seller import Promotion, PromotionKind, SellerBadge, SellerRecord
from .models.subscription import SubscriptionRecord

logger = logging.getLogger(__name__)


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Start of the calendar month containing ``now`` and of the next one."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        next_start = start.replace(year=start.year + 1, month=1)
    else:
        next_start = start.replace(month=start.month + 1)
    return start, next_start


class SqlSellerRepository(SellerRepository):
    """Seller repository backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_seller(self, seller: Seller) -> Seller:
        stats = seller.statistics
        record = SellerRecord(
            id=seller.id,
            business_name=seller.business_name,
            active_listings_count=seller.active_listings_count,
            total_sales=stats.total_sales,
            total_listings=stats.total_listings,
            rating=stats.rating,
            verification_level=stats.verification_level.value if stats.verification_level else None,
            verification_expires_at=stats.verification_expires_at,
        )
        self.db.add(record)
        await self.db.flush()
        logger.info("Created seller %s", seller.id)
        return seller

    async def load_seller(self, seller_id: str, now: datetime | None = None) -> Seller | None:
        result = await self.db.execute(
            select(SellerRecord)
            .where(SellerRecord.id == seller_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            return None

        now = now or datetime.now(UTC)
        return Seller(
            id=record.id,
            business_name=record.business_name,
            active_listings_count=record.active_listings_count,
            spotlights_used_this_month=await self.count_spotlights_this_month(seller_id, now),
            boosts_used_this_month=await self.count_boosts_this_month(seller_id, now),
            statistics=SellerStatistics(
                total_sales=record.total_sales,
                total_listings=record.total_listings,
                rating=record.rating,
                verification_level=(
                    SellerVerification(record.verification_level)
                    if record.verification_level
                    else None
                ),
                verification_expires_at=record.verification_expires_at,
            ),
            badges=tuple(
                AwardedBadge(
                    badge=BadgeType(b.badge),
                    awarded_at=b.awarded_at,
                    expires_at=b.expires_at,
                )
                for b in record.badges
            ),
        )

    async def atomic_increment_active_listings(
        self, seller_id: str, delta: int, ceiling: int | None
    ) -> int:
        # Check and write in a single statement so concurrent callers cannot
        # both pass the ceiling check
        new_count = SellerRecord.active_listings_count + delta
        stmt = (
            update(SellerRecord)
            .where(SellerRecord.id == seller_id)
            .where(new_count >= 0)
        )
        if ceiling is not None:
            stmt = stmt.where(new_count <= ceiling)
        stmt = (
            stmt.values(active_listings_count=new_count)
            .returning(SellerRecord.active_listings_count)
            .execution_options(synchronize_session=False)
        )

        result = await self.db.execute(stmt)
        count = result.scalar_one_or_none()
        if count is not None:
            await self.db.flush()
            return int(count)

        exists = await self.db.execute(
            select(SellerRecord.id).where(SellerRecord.id == seller_id)
        )
        if exists.scalar_one_or_none() is None:
            raise SellerNotFoundError(seller_id)
        if delta < 0:
            raise QuotaExceededError(f"Seller {seller_id} has no active listings to release")
        raise QuotaExceededError(
            f"Seller {seller_id} has reached the listing limit of {ceiling}"
        )

    async def _count_promotions(self, seller_id: str, kind: PromotionKind, now: datetime) -> int:
        start, end = month_bounds(now)
        result = await self.db.execute(
            select(func.count())
            .select_from(Promotion)
            .where(
                Promotion.seller_id == seller_id,
                Promotion.kind == kind.value,
                Promotion.start_date >= start,
                Promotion.start_date < end,
            )
        )
        raw = result.scalar()
        return int(raw) if raw is not None else 0

    async def count_spotlights_this_month(self, seller_id: str, now: datetime) -> int:
        return await self._count_promotions(seller_id, PromotionKind.SPOTLIGHT, now)

    async def count_boosts_this_month(self, seller_id: str, now: datetime) -> int:
        return await self._count_promotions(seller_id, PromotionKind.BOOST, now)

    async def record_promotion(
        self,
        seller_id: str,
        listing_id: str,
        kind: str,
        start_date: datetime,
        end_date: datetime,
        plan: str | None,
    ) -> None:
        self.db.add(
            Promotion(
                seller_id=seller_id,
                listing_id=listing_id,
                kind=PromotionKind(kind).value,
                plan=plan,
                start_date=start_date,
                end_date=end_date,
            )
        )
        await self.db.flush()

    async def save_badges(self, seller_id: str, badges: tuple[AwardedBadge, ...]) -> None:
        await self.db.execute(delete(SellerBadge).where(SellerBadge.seller_id == seller_id))
        self.db.add_all(
            SellerBadge(
                seller_id=seller_id,
                badge=b.badge.value,
                awarded_at=b.awarded_at,
                expires_at=b.expires_at,
            )
            for b in badges
        )
        await self.db.flush()


def _queued_to_json(entry: QueuedPlan) -> dict:
    return {
        "plan": entry.plan.value,
        "start_date": entry.start_date.isoformat(),
        "end_date": entry.end_date.isoformat(),
        "features": entry.features.to_dict(),
        "payment_reference": entry.payment_reference,
    }


def _queued_from_json(data: dict) -> QueuedPlan:
    return QueuedPlan(
        plan=Plan(data["plan"]),
        start_date=datetime.fromisoformat(data["start_date"]),
        end_date=datetime.fromisoformat(data["end_date"]),
        features=FeatureBundle.from_dict(data.get("features", {})),
        payment_reference=data.get("payment_reference"),
    )


def _to_domain(record: SubscriptionRecord) -> Subscription:
    return Subscription(
        seller_id=record.seller_id,
        plan=Plan(record.plan) if record.plan else None,
        status=record.status,
        start_date=record.start_date,
        end_date=record.end_date,
        features=FeatureBundle.from_dict(record.features or {}),
        cancelled_at=record.cancelled_at,
        payment_reference=record.payment_reference,
        queued_plans=tuple(_queued_from_json(q) for q in record.queued_plans or []),
    )


class SqlSubscriptionRepository(SubscriptionRepository):
    """Subscription repository backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_record(self, seller_id: str) -> SubscriptionRecord | None:
        result = await self.db.execute(
            select(SubscriptionRecord)
            .where(SubscriptionRecord.seller_id == seller_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def load_subscription(self, seller_id: str) -> Subscription | None:
        record = await self._get_record(seller_id)
        return _to_domain(record) if record is not None else None

    async def save_subscription(self, subscription: Subscription) -> Subscription:
        record = await self._get_record(subscription.seller_id)
        if record is None:
            record = SubscriptionRecord(seller_id=subscription.seller_id)
            self.db.add(record)

        record.plan = subscription.plan.value if subscription.plan else None
        record.status = subscription.status.value
        record.start_date = subscription.start_date
        record.end_date = subscription.end_date
        record.cancelled_at = subscription.cancelled_at
        record.features = subscription.features.to_dict()
        record.plan_table_version = PLAN_TABLE_VERSION
        record.payment_reference = subscription.payment_reference
        record.queued_plans = [_queued_to_json(q) for q in subscription.queued_plans]

        await self.db.flush()
        return subscription

    async def list_lapsed(self, now: datetime, limit: int = 500) -> list[Subscription]:
        result = await self.db.execute(
            select(SubscriptionRecord)
            .where(
                SubscriptionRecord.status == "active",
                SubscriptionRecord.end_date <= now,
            )
            .order_by(SubscriptionRecord.end_date)
            .limit(limit)
        )
        return [_to_domain(r) for r in result.scalars().all()]


def _payment_to_domain(record: PaymentRecord) -> Payment:
    return Payment(
        id=record.id,
        seller_id=record.seller_id,
        plan=Plan(record.plan),
        amount=record.amount,
        currency=record.currency,
        method=PaymentMethod(record.method),
        paid_at=record.paid_at,
        order_id=record.order_id,
        payment_id=record.payment_id,
    )


class SqlPaymentRepository(PaymentRepository):
    """Payment ledger backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _already_used(self, payment: Payment) -> bool:
        conditions = []
        if payment.order_id:
            conditions.append(PaymentRecord.order_id == payment.order_id)
        if payment.payment_id:
            conditions.append(PaymentRecord.payment_id == payment.payment_id)
        if not conditions:
            return False
        result = await self.db.execute(select(PaymentRecord.id).where(or_(*conditions)).limit(1))
        return result.scalar_one_or_none() is not None

    async def record_payment(self, payment: Payment) -> Payment:
        reference = payment.payment_id or payment.order_id
        if await self._already_used(payment):
            raise PaymentAlreadyUsedError(f"Payment {reference} has already been used")

        record = PaymentRecord(
            seller_id=payment.seller_id,
            plan=payment.plan.value,
            amount=payment.amount,
            currency=payment.currency,
            method=payment.method.value,
            order_id=payment.order_id,
            payment_id=payment.payment_id,
            paid_at=payment.paid_at,
        )
        self.db.add(record)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # A concurrent request recorded the same ids first
            await self.db.rollback()
            raise PaymentAlreadyUsedError(f"Payment {reference} has already been used") from e
        return _payment_to_domain(record)

    async def list_payments(self, seller_id: str) -> list[Payment]:
        result = await self.db.execute(
            select(PaymentRecord)
            .where(PaymentRecord.seller_id == seller_id)
            .order_by(PaymentRecord.paid_at.desc())
        )
        return [_payment_to_domain(r) for r in result.scalars().all()]
