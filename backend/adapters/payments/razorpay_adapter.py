"""
Razorpay payment adapter for subscription purchases.

Creates orders through the Razorpay Orders API and verifies the checkout
signature Razorpay hands back to the browser
(HMAC-SHA256 of ``"{order_id}|{payment_id}"`` keyed with the key secret).
A verified checkout becomes a PaymentProof the tier resolver accepts.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from core.domain.subscription import PaymentMethod, PaymentProof, Plan
from core.interfaces.services import PaymentOrder, PaymentService
from core.plans import PLAN_CURRENCY, PLAN_PRICES
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


# Custom Exceptions
class RazorpayError(Exception):
    """Base exception for Razorpay adapter errors."""

    pass


class RazorpayAPIError(RazorpayError):
    """Raised when the Razorpay API returns an error."""

    pass


class RazorpayAuthError(RazorpayError):
    """Raised when API credentials are missing or rejected."""

    pass


class RazorpaySignatureError(RazorpayError):
    """Raised when a checkout signature cannot be checked."""

    pass


@dataclass
class RazorpayOrder:
    """Razorpay order information."""

    id: str
    amount: int
    currency: str
    receipt: str
    status: str
    notes: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "RazorpayOrder":
        """Create order from API response data."""
        created = data.get("created_at")
        return cls(
            id=data.get("id", ""),
            amount=int(data.get("amount", 0)),
            currency=data.get("currency", PLAN_CURRENCY),
            receipt=data.get("receipt", ""),
            status=data.get("status", ""),
            notes=data.get("notes") or {},
            created_at=datetime.fromtimestamp(created, UTC) if created else datetime.now(UTC),
        )


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Signature Razorpay produces for a successful checkout."""
    body = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def order_mismatch(order: RazorpayOrder, plan: Plan, seller_id: str) -> str | None:
    """Why ``order`` cannot pay for ``plan`` on behalf of ``seller_id``, or None."""
    if order.notes.get("plan") != plan.value:
        return f"order was created for plan {order.notes.get('plan')!r}, not {plan.value!r}"
    if order.notes.get("seller_id") != seller_id:
        return "order was created for another seller"
    if order.currency != PLAN_CURRENCY or order.amount != PLAN_PRICES[plan]:
        return f"Payment amount mismatch: order is {order.amount} {order.currency}"
    return None


class RazorpayAdapter(PaymentService):
    """
    Razorpay API adapter.

    Provides order creation for paid plans and checkout signature
    verification.
    """

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        api_base: str | None = None,
        test_mode: bool | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize Razorpay adapter.

        Args:
            key_id: Razorpay key id (defaults to settings)
            key_secret: Razorpay key secret (defaults to settings)
            api_base: API base URL (defaults to settings)
            test_mode: Accept any signature (defaults to settings)
            timeout: HTTP timeout in seconds (defaults to settings)
        """
        self.key_id = key_id or settings.razorpay_key_id
        self.key_secret = key_secret or settings.razorpay_key_secret
        self.api_base = (api_base or settings.razorpay_api_base).rstrip("/")
        self.test_mode = settings.payment_test_mode if test_mode is None else test_mode
        self.timeout = timeout or settings.razorpay_timeout

        if not self.key_id or not self.key_secret:
            logger.warning(
                "Razorpay credentials not configured. Set razorpay_key_id and razorpay_key_secret."
            )

    def _get_auth(self) -> tuple[str, str]:
        if not self.key_id or not self.key_secret:
            raise RazorpayAuthError(
                "Razorpay credentials not configured. Set razorpay_key_id and razorpay_key_secret."
            )
        return self.key_id, self.key_secret

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Make HTTP request to the Razorpay API.

        Raises:
            RazorpayAuthError: If credentials are missing or rejected
            RazorpayAPIError: If the request fails
        """
        url = f"{self.api_base}/{endpoint}"
        auth = self._get_auth()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                logger.info("Making %s request to %s", method, endpoint)
                response = await client.request(method, url, auth=auth, json=data)
                response.raise_for_status()
                if not response.content:
                    return {}
                return response.json()
        except httpx.HTTPStatusError as e:
            error_detail = str(e)
            try:
                error = e.response.json().get("error", {})
                error_detail = error.get("description") or error_detail
            except ValueError:
                pass
            logger.error("Razorpay API error: %s", error_detail)
            if e.response.status_code == 401:
                raise RazorpayAuthError(f"Razorpay rejected credentials: {error_detail}") from e
            raise RazorpayAPIError(f"API request failed: {error_detail}") from e
        except httpx.RequestError as e:
            logger.error("HTTP request error: %s", e)
            raise RazorpayAPIError(f"Request failed: {e}") from e

    async def create_order(self, seller_id: str, plan: Plan, amount: int) -> PaymentOrder:
        """
        Create an order for one billing period of ``plan``.

        Args:
            seller_id: Seller buying the plan
            plan: Plan being bought
            amount: Price in paise

        Returns:
            PaymentOrder carrying the Razorpay order id and public key id
        """
        receipt = f"sub_{seller_id}_{int(datetime.now(UTC).timestamp())}"[:40]
        response = await self._make_request(
            "POST",
            "orders",
            data={
                "amount": amount,
                "currency": PLAN_CURRENCY,
                "receipt": receipt,
                "notes": {"plan": plan.value, "seller_id": seller_id},
            },
        )
        order = RazorpayOrder.from_api_response(response)
        logger.info("Created Razorpay order %s for seller %s (%s)", order.id, seller_id, plan.value)
        return PaymentOrder(
            order_id=order.id,
            amount=order.amount,
            currency=order.currency,
            plan=plan,
            key_id=self.key_id,
        )

    async def fetch_order(self, order_id: str) -> RazorpayOrder:
        """Get order information by ID."""
        response = await self._make_request("GET", f"orders/{order_id}")
        return RazorpayOrder.from_api_response(response)

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Verify a checkout signature.

        Raises:
            RazorpaySignatureError: If no key secret is configured
        """
        if self.test_mode:
            logger.warning("Payment test mode: skipping signature check for order %s", order_id)
            return True
        if not self.key_secret:
            raise RazorpaySignatureError("Razorpay key secret not configured")
        if not order_id or not payment_id or not signature:
            return False
        expected = compute_signature(order_id, payment_id, self.key_secret)
        return hmac.compare_digest(expected, signature)

    async def verify_payment(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        plan: Plan,
        seller_id: str,
    ) -> PaymentProof:
        """
        Turn a checkout callback into a PaymentProof.

        The signature only shows that the order was paid, so the order is
        fetched back and must have been created for this plan, price and
        seller. The proof carries the order's amount, not a caller's claim.
        """
        rejected = PaymentProof(
            accepted=False,
            plan=plan,
            order_id=order_id,
            payment_id=payment_id,
            seller_id=seller_id,
        )
        if not self.verify_signature(order_id, payment_id, signature):
            logger.warning("Rejected payment %s for order %s: bad signature", payment_id, order_id)
            return rejected

        order = await self.fetch_order(order_id)
        problem = order_mismatch(order, plan, seller_id)
        if problem:
            logger.warning("Rejected payment %s for order %s: %s", payment_id, order_id, problem)
            return rejected

        return PaymentProof(
            accepted=True,
            plan=plan,
            order_id=order_id,
            payment_id=payment_id,
            amount=order.amount,
            seller_id=seller_id,
            method=PaymentMethod.TEST if self.test_mode else PaymentMethod.RAZORPAY,
        )


def create_razorpay_adapter(
    key_id: str | None = None,
    key_secret: str | None = None,
) -> RazorpayAdapter:
    """
    Create a Razorpay adapter instance.

    Args:
        key_id: Razorpay key id (defaults to settings)
        key_secret: Razorpay key secret (defaults to settings)

    Returns:
        RazorpayAdapter instance
    """
    return RazorpayAdapter(key_id=key_id, key_secret=key_secret)
