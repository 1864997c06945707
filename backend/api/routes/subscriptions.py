"""
Subscription and checkout API routes.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request, status

from api.dependencies import CurrentSellerId, SubscriptionServiceDep
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.subscription import (
    CreateOrderRequest,
    CreateOrderResponse,
    PaymentHistoryResponse,
    PaymentResponse,
    SubscribeRequest,
    SubscriptionResponse,
    VerifyPaymentRequest,
)
from core.domain.subscription import Subscription
from core.tier_resolver import is_active, parse_plan

logger = logging.getLogger(__name__)

router = APIRouter(tags=["subscription"])


def _to_response(subscription: Subscription) -> SubscriptionResponse:
    return SubscriptionResponse.from_domain(
        subscription, active=is_active(subscription, datetime.now(UTC))
    )


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(seller_id: CurrentSellerId, service: SubscriptionServiceDep):
    """Get the acting seller's subscription, with lapsed periods shown as expired."""
    return _to_response(await service.get_subscription(seller_id))


@router.post("/subscribe", response_model=SubscriptionResponse)
async def subscribe(
    body: SubscribeRequest,
    seller_id: CurrentSellerId,
    service: SubscriptionServiceDep,
):
    """
    Activate a plan directly.

    Only plans that need no payment can be activated here; paid plans go
    through create-order and verify-payment and are rejected with 402.
    """
    subscription = await service.subscribe(seller_id, body.plan)
    return _to_response(subscription)


@router.post("/subscribe/create-order", response_model=CreateOrderResponse)
@limiter.limit(get_rate_limit("create_order"))
async def create_order(
    request: Request,
    body: CreateOrderRequest,
    seller_id: CurrentSellerId,
    service: SubscriptionServiceDep,
):
    """
    Start checkout for a plan.

    The Free plan is activated on the spot and returned in ``subscription``.
    """
    plan = parse_plan(body.plan)
    order = await service.create_order(seller_id, plan)
    if order is None:
        subscription = await service.get_subscription(seller_id)
        return CreateOrderResponse(
            requires_payment=False,
            plan=plan.value,
            subscription=_to_response(subscription),
        )
    return CreateOrderResponse.from_order(order)


@router.post("/subscribe/verify-payment", response_model=SubscriptionResponse)
async def verify_payment(
    body: VerifyPaymentRequest,
    seller_id: CurrentSellerId,
    service: SubscriptionServiceDep,
):
    """Verify the checkout signature and activate (or queue) the paid plan."""
    subscription = await service.verify_and_activate(
        seller_id,
        body.plan,
        order_id=body.razorpay_order_id,
        payment_id=body.razorpay_payment_id,
        signature=body.razorpay_signature,
        queue=body.queue,
    )
    return _to_response(subscription)


@router.delete("/subscription", response_model=SubscriptionResponse, status_code=status.HTTP_200_OK)
async def cancel_subscription(seller_id: CurrentSellerId, service: SubscriptionServiceDep):
    """Cancel the subscription; the seller drops back to no plan."""
    return _to_response(await service.cancel(seller_id))


@router.get("/subscription/payments", response_model=PaymentHistoryResponse)
async def get_payment_history(seller_id: CurrentSellerId, service: SubscriptionServiceDep):
    """List the acting seller's purchases, newest first, Free activations included."""
    payments = await service.get_payment_history(seller_id)
    return PaymentHistoryResponse(payments=[PaymentResponse.from_domain(p) for p in payments])
