"""
Subscription service for seller plans, listing quotas and promotions.

Orchestrates the pure tier resolver with the seller/subscription
repositories, the payment ledger and the payment gateway. The resolver
decides; this service loads the snapshots it decides on, persists the
outcome and commits.
"""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from core import tier_resolver
from core.badges import (
    award_badges,
    compute_eligible_badges,
    current_badges,
    effective_verification_level,
)
from core.domain.seller import AwardedBadge, Seller
from core.domain.subscription import Payment, PaymentMethod, PaymentProof, Plan, Subscription
from core.exceptions import (
    PaymentNotVerifiedError,
    QuotaExceededError,
    SellerNotFoundError,
    SubscriptionInactiveError,
    SubscriptionNotFoundError,
)
from core.interfaces.repositories import (
    PaymentRepository,
    SellerRepository,
    SubscriptionRepository,
)
from core.interfaces.services import PaymentOrder, PaymentService
from core.plans import PLAN_CURRENCY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Promotion:
    """A spotlight or boost granted to a listing."""

    listing_id: str
    kind: str
    start_date: datetime
    end_date: datetime


class SubscriptionService:
    """
    Service for managing seller subscriptions and plan-gated actions.

    Every public method commits its own unit of work.
    """

    def __init__(
        self,
        db: AsyncSession,
        sellers: SellerRepository,
        subscriptions: SubscriptionRepository,
        ledger: PaymentRepository,
        payments: PaymentService | None = None,
    ):
        """
        Initialize subscription service.

        Args:
            db: Async database session shared by the repositories
            sellers: Seller repository
            subscriptions: Subscription repository
            ledger: Payment ledger; also refuses reused gateway ids
            payments: Payment gateway, required only for paid checkouts
        """
        self.db = db
        self.sellers = sellers
        self.subscriptions = subscriptions
        self.ledger = ledger
        self.payments = payments

    @staticmethod
    def _now(now: datetime | None) -> datetime:
        return now or datetime.now(UTC)

    async def _require_seller(self, seller_id: str, now: datetime) -> Seller:
        seller = await self.sellers.load_seller(seller_id, now)
        if seller is None:
            raise SellerNotFoundError(seller_id)
        return seller

    async def _load_current(self, seller_id: str, now: datetime) -> Subscription | None:
        # Stored rows lag until the sweep runs; decide on the expired view
        subscription = await self.subscriptions.load_subscription(seller_id)
        if subscription is None:
            return None
        return tier_resolver.expire_if_lapsed(subscription, now)

    async def _require_subscription(self, seller_id: str, now: datetime) -> Subscription:
        subscription = await self._load_current(seller_id, now)
        if subscription is None:
            raise SubscriptionNotFoundError(seller_id)
        return subscription

    def _require_payments(self) -> PaymentService:
        if self.payments is None:
            raise PaymentNotVerifiedError("No payment gateway is configured")
        return self.payments

    async def _record_payment(
        self,
        seller_id: str,
        plan: Plan,
        payment_proof: PaymentProof | None,
        now: datetime,
    ) -> Payment:
        if not tier_resolver.requires_payment(plan):
            payment = Payment(
                seller_id=seller_id,
                plan=plan,
                amount=0,
                currency=PLAN_CURRENCY,
                method=PaymentMethod.FREE,
                paid_at=now,
            )
        else:
            payment = Payment(
                seller_id=seller_id,
                plan=plan,
                amount=payment_proof.amount,
                currency=PLAN_CURRENCY,
                method=payment_proof.method,
                paid_at=now,
                order_id=payment_proof.order_id,
                payment_id=payment_proof.payment_id,
            )
        return await self.ledger.record_payment(payment)

    # ------------------------------------------------------------------
    # Seller onboarding
    # ------------------------------------------------------------------

    async def register_seller(self, seller: Seller) -> Subscription:
        """Create a seller along with its inactive, plan-less subscription."""
        await self.sellers.create_seller(seller)
        subscription = await self.subscriptions.save_subscription(
            tier_resolver.new_subscription(seller.id)
        )
        await self.db.commit()
        logger.info("Registered seller %s", seller.id, extra={"seller_id": seller.id})
        return subscription

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    async def get_subscription(self, seller_id: str, now: datetime | None = None) -> Subscription:
        """
        Get a seller's subscription as of ``now``.

        A lapsed period is reported as expired (or as the queued plan that
        follows it) even before the sweep has written that down.

        Raises:
            SubscriptionNotFoundError: If the seller has no subscription
        """
        return await self._require_subscription(seller_id, self._now(now))

    async def subscribe(
        self,
        seller_id: str,
        plan: Plan | str,
        payment_proof: PaymentProof | None = None,
        now: datetime | None = None,
    ) -> Subscription:
        """
        Activate a plan for a seller.

        Every activation, Free included, is written to the payment ledger.

        Raises:
            UnknownPlanError: If the plan is not recognised
            PaymentNotVerifiedError: If a paid plan lacks accepted proof
            PaymentAlreadyUsedError: If the proof already paid for a period
            SellerNotFoundError: If the seller does not exist
        """
        now = self._now(now)
        plan = tier_resolver.parse_plan(plan)
        seller = await self._require_seller(seller_id, now)
        current = await self._load_current(seller_id, now)

        subscription = tier_resolver.activate_subscription(
            seller, plan, payment_proof, now=now, current=current
        )
        await self._record_payment(seller_id, plan, payment_proof, now)
        await self.subscriptions.save_subscription(subscription)
        await self.db.commit()

        logger.info(
            "Activated plan %s for seller %s until %s",
            plan.value,
            seller_id,
            subscription.end_date.isoformat(),
            extra={"seller_id": seller_id, "plan": plan.value},
        )
        return subscription

    async def create_order(self, seller_id: str, plan: Plan | str) -> PaymentOrder | None:
        """
        Start checkout for a plan.

        Free plans are activated immediately and return None; paid plans
        return the gateway order the checkout widget needs.
        """
        plan = tier_resolver.parse_plan(plan)
        if not tier_resolver.requires_payment(plan):
            await self.subscribe(seller_id, plan)
            return None

        await self._require_seller(seller_id, self._now(None))
        order = await self._require_payments().create_order(
            seller_id, plan, tier_resolver.plan_price(plan)
        )
        logger.info(
            "Created order %s for seller %s",
            order.order_id,
            seller_id,
            extra={"seller_id": seller_id, "plan": plan.value},
        )
        return order

    async def verify_and_activate(
        self,
        seller_id: str,
        plan: Plan | str,
        order_id: str,
        payment_id: str,
        signature: str,
        queue: bool = False,
        now: datetime | None = None,
    ) -> Subscription:
        """
        Verify a checkout callback and activate (or queue) the paid plan.

        Raises:
            PaymentNotVerifiedError: If the signature does not check out or
                the order was not created for this plan and seller
            PaymentAlreadyUsedError: If the order or payment was used before
        """
        plan = tier_resolver.parse_plan(plan)
        proof = await self._require_payments().verify_payment(
            order_id, payment_id, signature, plan, seller_id
        )
        if not proof.accepted:
            raise PaymentNotVerifiedError("Payment could not be verified for this plan")
        if queue:
            return await self.queue_plan(seller_id, plan, proof, now=now)
        return await self.subscribe(seller_id, plan, proof, now=now)

    async def queue_plan(
        self,
        seller_id: str,
        plan: Plan | str,
        payment_proof: PaymentProof | None,
        now: datetime | None = None,
    ) -> Subscription:
        """
        Buy a plan to start when the current period ends.

        With no running period and nothing queued the plan starts now.
        """
        now = self._now(now)
        plan = tier_resolver.parse_plan(plan)
        current = await self._require_subscription(seller_id, now)
        subscription = tier_resolver.queue_plan(current, plan, payment_proof, now)
        await self._record_payment(seller_id, plan, payment_proof, now)
        await self.subscriptions.save_subscription(subscription)
        await self.db.commit()

        if len(subscription.queued_plans) > len(current.queued_plans):
            start = subscription.queued_plans[-1].start_date
        else:
            start = subscription.start_date
        logger.info(
            "Queued plan %s for seller %s starting %s",
            plan.value,
            seller_id,
            start.isoformat(),
            extra={"seller_id": seller_id, "plan": plan.value},
        )
        return subscription

    async def get_payment_history(self, seller_id: str) -> list[Payment]:
        """Ledger entries for a seller, newest first."""
        await self._require_seller(seller_id, self._now(None))
        return await self.ledger.list_payments(seller_id)

    async def cancel(self, seller_id: str, now: datetime | None = None) -> Subscription:
        """Cancel a subscription, returning the seller to the no-plan state."""
        now = self._now(now)
        subscription = await self._require_subscription(seller_id, now)
        previous = subscription.plan
        subscription = tier_resolver.cancel_subscription(subscription, now)
        await self.subscriptions.save_subscription(subscription)
        await self.db.commit()
        logger.info(
            "Cancelled %s subscription for seller %s",
            previous.value if previous else "no-plan",
            seller_id,
            extra={"seller_id": seller_id},
        )
        return subscription

    async def expire_lapsed_subscriptions(
        self, now: datetime | None = None, batch_size: int = 500
    ) -> int:
        """
        Persist the expiry transition for lapsed subscriptions.

        Safe to run repeatedly; reads already apply lazy expiry, so this
        sweep only brings stored status in line and promotes queued plans.

        Returns:
            Number of subscriptions whose stored state changed
        """
        now = self._now(now)
        changed = 0
        for subscription in await self.subscriptions.list_lapsed(now, limit=batch_size):
            updated = tier_resolver.expire_if_lapsed(subscription, now)
            if updated != subscription:
                await self.subscriptions.save_subscription(updated)
                changed += 1
        await self.db.commit()
        if changed:
            logger.info("Expiry sweep updated %d subscriptions", changed)
        return changed

    # ------------------------------------------------------------------
    # Listing quota
    # ------------------------------------------------------------------

    async def reserve_listing_slot(self, seller_id: str, now: datetime | None = None) -> int:
        """
        Claim one active-listing slot.

        The pre-check gives a precise error; the conditional increment is
        what actually guarantees the quota under concurrent requests.

        Returns:
            The seller's new active listing count

        Raises:
            SubscriptionInactiveError: If the seller has no active subscription
            QuotaExceededError: If the listing quota is used up
        """
        now = self._now(now)
        seller = await self._require_seller(seller_id, now)
        subscription = await self._load_current(seller_id, now)

        if not tier_resolver.is_active(subscription, now):
            raise SubscriptionInactiveError("An active subscription is required to list horses")
        if not tier_resolver.can_create_listing(seller, subscription, now):
            raise QuotaExceededError(
                f"Listing limit of {subscription.features.max_listings} reached"
            )

        count = await self.sellers.atomic_increment_active_listings(
            seller_id, 1, subscription.features.max_listings
        )
        await self.db.commit()
        logger.info(
            "Seller %s now has %d active listings",
            seller_id,
            count,
            extra={"seller_id": seller_id},
        )
        return count

    async def release_listing_slot(self, seller_id: str) -> int:
        """Give back one active-listing slot when a listing ends."""
        count = await self.sellers.atomic_increment_active_listings(seller_id, -1, None)
        await self.db.commit()
        return count

    async def check_listing_media(
        self, seller_id: str, photos: int, videos: int, now: datetime | None = None
    ) -> None:
        """Reject listing media beyond the plan's photo and video limits."""
        now = self._now(now)
        subscription = await self._require_subscription(seller_id, now)
        if not tier_resolver.is_active(subscription, now):
            raise SubscriptionInactiveError("An active subscription is required to list horses")
        tier_resolver.check_media_limits(subscription, photos, videos)

    # ------------------------------------------------------------------
    # Promotions
    # ------------------------------------------------------------------

    async def add_spotlight(
        self, seller_id: str, listing_id: str, now: datetime | None = None
    ) -> Promotion:
        """Spend one of this month's spotlights on a listing."""
        now = self._now(now)
        seller = await self._require_seller(seller_id, now)
        subscription = await self._load_current(seller_id, now)
        if not tier_resolver.can_add_spotlight(seller, subscription, now):
            raise QuotaExceededError("No spotlights left this month")

        promotion = Promotion(
            listing_id=listing_id,
            kind="spotlight",
            start_date=now,
            end_date=tier_resolver.spotlight_expires_at(subscription, now),
        )
        await self._record(seller_id, subscription, promotion)
        return promotion

    async def boost_listing(
        self, seller_id: str, listing_id: str, now: datetime | None = None
    ) -> Promotion:
        """Spend one of this month's boosts on a listing."""
        now = self._now(now)
        seller = await self._require_seller(seller_id, now)
        subscription = await self._load_current(seller_id, now)
        if not tier_resolver.can_boost_listing(seller, subscription, now):
            raise QuotaExceededError("No listing boosts left this month")

        promotion = Promotion(
            listing_id=listing_id,
            kind="boost",
            start_date=now,
            end_date=tier_resolver.boost_expires_at(subscription, now),
        )
        await self._record(seller_id, subscription, promotion)
        return promotion

    async def _record(self, seller_id: str, subscription: Subscription, promotion: Promotion) -> None:
        await self.sellers.record_promotion(
            seller_id,
            promotion.listing_id,
            promotion.kind,
            promotion.start_date,
            promotion.end_date,
            subscription.plan.value if subscription.plan else None,
        )
        await self.db.commit()
        logger.info(
            "Seller %s added %s to listing %s until %s",
            seller_id,
            promotion.kind,
            promotion.listing_id,
            promotion.end_date.isoformat(),
            extra={"seller_id": seller_id},
        )

    # ------------------------------------------------------------------
    # Badges
    # ------------------------------------------------------------------

    async def refresh_badges(
        self, seller_id: str, now: datetime | None = None
    ) -> tuple[AwardedBadge, ...]:
        """
        Re-evaluate badge eligibility and store newly earned badges.

        Returns:
            The seller's current (unexpired) badges
        """
        now = self._now(now)
        seller = await self._require_seller(seller_id, now)
        subscription = await self._load_current(seller_id, now)

        stats = replace(
            seller.statistics,
            verification_level=effective_verification_level(seller.statistics, now),
        )
        active = subscription if tier_resolver.is_active(subscription, now) else None
        eligible = compute_eligible_badges(stats, active)
        badges = award_badges(current_badges(seller.badges, now), eligible, now)

        await self.sellers.save_badges(seller_id, badges)
        await self.db.commit()
        logger.info(
            "Seller %s holds badges: %s",
            seller_id,
            ", ".join(b.badge.value for b in badges) or "none",
            extra={"seller_id": seller_id},
        )
        return current_badges(badges, now)

    async def get_current_badges(
        self, seller_id: str, now: datetime | None = None
    ) -> tuple[AwardedBadge, ...]:
        now = self._now(now)
        seller = await self._require_seller(seller_id, now)
        return current_badges(seller.badges, now)
