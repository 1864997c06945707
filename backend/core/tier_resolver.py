"""
Tier resolution and quota enforcement for seller subscriptions.

Every function here is pure: callers pass the seller, subscription and the
current time as snapshots and receive either a decision or a new
subscription value. Nothing is mutated and no I/O happens, so the functions
are safe to call concurrently.

``is_active`` is the sole authority on whether gated features are usable.
The stored ``status`` may lag behind ``end_date`` until the expiry sweep
runs, so read sites must never branch on ``status`` alone.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

from core.domain.seller import Seller
from core.domain.subscription import (
    EMPTY_FEATURES,
    FeatureBundle,
    PaymentProof,
    Plan,
    QueuedPlan,
    Subscription,
    SubscriptionStatus,
)
from core.exceptions import PaymentNotVerifiedError, QuotaExceededError, UnknownPlanError
from core.plans import (
    FREE_PLAN_DURATION_DAYS,
    PAID_PLAN_DURATION_DAYS,
    PLAN_FEATURES,
    PLAN_PRICES,
)


def parse_plan(value: object) -> Plan:
    """Return the Plan for an exact, case-sensitive plan label."""
    if isinstance(value, Plan):
        return value
    if isinstance(value, str):
        for plan in Plan:
            if plan.value == value:
                return plan
    raise UnknownPlanError(value)


def resolve_features(plan: Plan | str) -> FeatureBundle:
    """
    Get the canonical feature bundle for a plan.

    Args:
        plan: Plan value or its exact label

    Returns:
        The immutable FeatureBundle from the plan table

    Raises:
        UnknownPlanError: If the plan is not one of the four recognised plans
    """
    return PLAN_FEATURES[parse_plan(plan)]


def plan_duration_days(plan: Plan | str) -> int:
    """Length of one billing period in days."""
    if parse_plan(plan) is Plan.FREE:
        return FREE_PLAN_DURATION_DAYS
    return PAID_PLAN_DURATION_DAYS


def plan_price(plan: Plan | str) -> int:
    """Price of one billing period in paise."""
    return PLAN_PRICES[parse_plan(plan)]


def requires_payment(plan: Plan | str) -> bool:
    return plan_price(plan) > 0


def new_subscription(seller_id: str) -> Subscription:
    """Subscription created alongside a seller profile: inactive, no plan."""
    return Subscription(seller_id=seller_id)


def _check_payment(plan: Plan, payment_proof: PaymentProof | None, seller_id: str) -> None:
    if not requires_payment(plan):
        return
    if payment_proof is None or not payment_proof.accepted:
        raise PaymentNotVerifiedError(f"Payment for plan {plan.value!r} has not been verified")
    if payment_proof.plan is not plan:
        raise PaymentNotVerifiedError(
            f"Payment was made for plan {payment_proof.plan.value!r}, not {plan.value!r}"
        )
    if payment_proof.amount != plan_price(plan):
        raise PaymentNotVerifiedError(
            f"Payment amount mismatch: paid {payment_proof.amount}, "
            f"plan {plan.value!r} costs {plan_price(plan)}"
        )
    if payment_proof.seller_id != seller_id:
        raise PaymentNotVerifiedError("Payment was made for another seller")


def _payment_reference(payment_proof: PaymentProof | None) -> str | None:
    if payment_proof is None:
        return None
    return payment_proof.payment_id or payment_proof.order_id


def activate_subscription(
    seller: Seller,
    plan: Plan | str,
    payment_proof: PaymentProof | None,
    now: datetime | None = None,
    current: Subscription | None = None,
) -> Subscription:
    """
    Activate a plan for a seller.

    Free needs no payment; every other plan needs an accepted proof issued
    for the same plan, at its price, to the same seller. Re-activating the
    plan that is already active restarts the period from ``now`` (periods
    never stack). Activating a different plan replaces the subscription
    outright.

    Args:
        seller: Seller the subscription belongs to
        plan: Plan to activate
        payment_proof: Gateway proof of payment, None for Free
        now: Current time (timezone-aware), defaults to the wall clock
        current: The seller's existing subscription, if any

    Returns:
        New active Subscription with a snapshot of the plan's features

    Raises:
        UnknownPlanError: If the plan is not recognised
        PaymentNotVerifiedError: If a paid plan lacks accepted proof
    """
    plan = parse_plan(plan)
    _check_payment(plan, payment_proof, seller.id)
    if now is None:
        now = datetime.now(UTC)

    end_date = now + timedelta(days=plan_duration_days(plan))
    queued = current.queued_plans if current is not None else ()

    if current is not None and current.plan is plan and is_active(current, now):
        return replace(
            current,
            end_date=end_date,
            features=resolve_features(plan),
            payment_reference=_payment_reference(payment_proof) or current.payment_reference,
        )

    return _start_period(seller.id, plan, payment_proof, now, queued)


def _start_period(
    seller_id: str,
    plan: Plan,
    payment_proof: PaymentProof | None,
    now: datetime,
    queued: tuple[QueuedPlan, ...] = (),
) -> Subscription:
    return Subscription(
        seller_id=seller_id,
        plan=plan,
        status=SubscriptionStatus.ACTIVE,
        start_date=now,
        end_date=now + timedelta(days=plan_duration_days(plan)),
        features=resolve_features(plan),
        payment_reference=_payment_reference(payment_proof),
        queued_plans=queued,
    )


def queue_plan(
    subscription: Subscription,
    plan: Plan | str,
    payment_proof: PaymentProof | None,
    now: datetime,
) -> Subscription:
    """
    Buy a plan in advance so it starts when the current period ends.

    The queued period starts at the later of ``now`` and the end of the last
    active or queued period. With nothing running and nothing queued the
    plan starts right away instead.
    """
    plan = parse_plan(plan)
    _check_payment(plan, payment_proof, subscription.seller_id)

    running = is_active(subscription, now)
    if not running and not subscription.queued_plans:
        return _start_period(subscription.seller_id, plan, payment_proof, now)

    start = now
    if subscription.queued_plans:
        start = max(start, subscription.queued_plans[-1].end_date)
    elif running and subscription.end_date is not None:
        start = max(start, subscription.end_date)

    entry = QueuedPlan(
        plan=plan,
        start_date=start,
        end_date=start + timedelta(days=plan_duration_days(plan)),
        features=resolve_features(plan),
        payment_reference=_payment_reference(payment_proof),
    )
    return replace(subscription, queued_plans=subscription.queued_plans + (entry,))


def is_active(subscription: Subscription | None, now: datetime) -> bool:
    """True only for an active subscription whose end date is still ahead."""
    if subscription is None:
        return False
    return (
        subscription.status == SubscriptionStatus.ACTIVE
        and subscription.end_date is not None
        and now < subscription.end_date
    )


def effective_status(subscription: Subscription, now: datetime) -> SubscriptionStatus:
    """Status as callers should see it, with lazy expiry applied."""
    if subscription.status == SubscriptionStatus.ACTIVE and not is_active(subscription, now):
        return SubscriptionStatus.EXPIRED
    return subscription.status


def expire_if_lapsed(subscription: Subscription, now: datetime) -> Subscription:
    """
    Apply the expiry transition if the current period has ended.

    Promotes the first queued plan whose period covers ``now``, whether the
    subscription is active, expired or inactive; otherwise flips ``active``
    to ``expired``. Idempotent: returns the subscription unchanged when
    nothing applies.
    """
    if is_active(subscription, now):
        return subscription
    if subscription.status == SubscriptionStatus.CANCELLED:
        return subscription

    remaining = [q for q in subscription.queued_plans if q.end_date > now]
    if remaining and remaining[0].start_date <= now:
        nxt = remaining[0]
        return replace(
            subscription,
            plan=nxt.plan,
            status=SubscriptionStatus.ACTIVE,
            start_date=nxt.start_date,
            end_date=nxt.end_date,
            features=nxt.features,
            payment_reference=nxt.payment_reference,
            queued_plans=tuple(remaining[1:]),
        )

    if subscription.status == SubscriptionStatus.ACTIVE:
        return replace(subscription, status=SubscriptionStatus.EXPIRED)
    return subscription


def cancel_subscription(subscription: Subscription, now: datetime) -> Subscription:
    """Reset a subscription to the inactive, no-plan state."""
    return replace(
        subscription,
        plan=None,
        status=SubscriptionStatus.INACTIVE,
        start_date=None,
        end_date=None,
        features=EMPTY_FEATURES,
        cancelled_at=now,
        payment_reference=None,
        queued_plans=(),
    )


def can_create_listing(seller: Seller, subscription: Subscription | None, now: datetime) -> bool:
    """Whether the seller may publish one more listing. Fails closed."""
    if not is_active(subscription, now):
        return False
    return seller.active_listings_count < subscription.features.max_listings


def can_add_spotlight(seller: Seller, subscription: Subscription | None, now: datetime) -> bool:
    """Whether the seller has a spotlight left this month."""
    if not is_active(subscription, now):
        return False
    allowance = subscription.features.spotlights_per_month
    return allowance > 0 and seller.spotlights_used_this_month < allowance


def can_boost_listing(seller: Seller, subscription: Subscription | None, now: datetime) -> bool:
    """Whether the seller has a listing boost left this month."""
    if not is_active(subscription, now):
        return False
    features = subscription.features
    if features.boost_duration_days <= 0:
        return False
    return features.boosts_per_month > 0 and seller.boosts_used_this_month < features.boosts_per_month


def photo_limit_for(subscription: Subscription | None) -> int:
    return subscription.features.max_photos_per_listing if subscription else 0


def video_limit_for(subscription: Subscription | None) -> int:
    return subscription.features.max_videos_per_listing if subscription else 0


def check_media_limits(subscription: Subscription | None, photos: int, videos: int) -> None:
    """Reject a listing submission carrying more media than the plan allows."""
    photo_limit = photo_limit_for(subscription)
    video_limit = video_limit_for(subscription)
    if photos > photo_limit:
        raise QuotaExceededError(f"Plan allows {photo_limit} photos per listing, got {photos}")
    if videos > video_limit:
        raise QuotaExceededError(f"Plan allows {video_limit} videos per listing, got {videos}")


def listing_expires_at(subscription: Subscription, published_at: datetime) -> datetime:
    return published_at + timedelta(days=subscription.features.listing_duration_days)


def boost_expires_at(subscription: Subscription, started_at: datetime) -> datetime:
    return started_at + timedelta(days=subscription.features.boost_duration_days)


def spotlight_expires_at(subscription: Subscription, started_at: datetime) -> datetime:
    return started_at + timedelta(days=subscription.features.spotlight_duration_days)
