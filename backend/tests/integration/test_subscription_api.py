"""
Integration tests for plan, subscription, listing and badge API routes.

Tests the endpoints including:
- Plan catalogue
- Subscribe / create-order / verify-payment flow and payment history
- Cancellation
- Listing slot and promotion quotas
- Error translation and the expiry sweep trigger
"""

from unittest.mock import patch

import pytest
from fastapi import status
from httpx import AsyncClient


async def paid_checkout(
    client: AsyncClient,
    headers: dict,
    sign,
    plan: str,
    payment_id: str | None = None,
    queue: bool = False,
):
    """Create an order for ``plan`` and post the widget's signed callback."""
    order = await client.post(
        "/api/v1/subscribe/create-order", json={"plan": plan}, headers=headers
    )
    order_id = order.json()["order_id"]
    payment_id = payment_id or f"pay_{order_id}"
    return await client.post(
        "/api/v1/subscribe/verify-payment",
        json={
            "plan": plan,
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": sign(order_id, payment_id),
            "queue": queue,
        },
        headers=headers,
    )


class TestPlansEndpoint:
    """Tests for GET /plans."""

    @pytest.mark.asyncio
    async def test_lists_all_four_plans(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/plans")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [p["id"] for p in data["plans"]] == ["Free", "Trot", "Gallop", "Royal Stallion"]
        assert data["version"] == 1

        royal = data["plans"][3]
        assert royal["price"] == 999900
        assert royal["currency"] == "INR"
        assert royal["duration_days"] == 30
        assert royal["features"]["max_listings"] == 50
        assert royal["features"]["badges"] == ["Royal Stallion Seller"]


class TestSubscriptionEndpoints:
    """Tests for the subscription lifecycle endpoints."""

    @pytest.mark.asyncio
    async def test_requires_seller_header(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/subscription")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_unknown_seller_is_404(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/subscription", headers={"X-Seller-ID": "nobody"}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "subscription_not_found"

    @pytest.mark.asyncio
    async def test_new_seller_has_no_plan(self, async_client: AsyncClient, seller_headers):
        response = await async_client.get("/api/v1/subscription", headers=seller_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["plan"] is None
        assert data["status"] == "inactive"
        assert data["is_active"] is False
        assert data["features"]["max_listings"] == 0

    @pytest.mark.asyncio
    async def test_subscribe_free(self, async_client: AsyncClient, seller_headers):
        response = await async_client.post(
            "/api/v1/subscribe", json={"plan": "Free"}, headers=seller_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["plan"] == "Free"
        assert data["status"] == "active"
        assert data["is_active"] is True
        assert data["features"]["max_listings"] == 1

    @pytest.mark.asyncio
    async def test_subscribe_paid_plan_needs_payment(
        self, async_client: AsyncClient, seller_headers
    ):
        response = await async_client.post(
            "/api/v1/subscribe", json={"plan": "Gallop"}, headers=seller_headers
        )

        assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED
        assert response.json()["code"] == "payment_not_verified"

    @pytest.mark.asyncio
    async def test_subscribe_unknown_plan(self, async_client: AsyncClient, seller_headers):
        response = await async_client.post(
            "/api/v1/subscribe", json={"plan": "gallop"}, headers=seller_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "unknown_plan"

    @pytest.mark.asyncio
    async def test_cancel(self, async_client: AsyncClient, seller_headers):
        await async_client.post("/api/v1/subscribe", json={"plan": "Free"}, headers=seller_headers)

        response = await async_client.delete("/api/v1/subscription", headers=seller_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["plan"] is None
        assert data["status"] == "inactive"
        assert data["cancelled_at"] is not None


class TestCheckoutFlow:
    """Tests for create-order and verify-payment."""

    @pytest.mark.asyncio
    async def test_create_order_for_paid_plan(
        self, async_client: AsyncClient, seller_headers, payments
    ):
        response = await async_client.post(
            "/api/v1/subscribe/create-order", json={"plan": "Gallop"}, headers=seller_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["requires_payment"] is True
        assert data["order_id"] == "order_1"
        assert data["amount"] == 499900
        assert data["key_id"] == payments.key_id

    @pytest.mark.asyncio
    async def test_create_order_for_free_activates(self, async_client: AsyncClient, seller_headers):
        response = await async_client.post(
            "/api/v1/subscribe/create-order", json={"plan": "Free"}, headers=seller_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["requires_payment"] is False
        assert data["subscription"]["plan"] == "Free"

    @pytest.mark.asyncio
    async def test_verify_payment_activates(
        self, async_client: AsyncClient, seller_headers, sign
    ):
        order = await async_client.post(
            "/api/v1/subscribe/create-order",
            json={"plan": "Royal Stallion"},
            headers=seller_headers,
        )
        order_id = order.json()["order_id"]

        response = await async_client.post(
            "/api/v1/subscribe/verify-payment",
            json={
                "plan": "Royal Stallion",
                "razorpay_order_id": order_id,
                "razorpay_payment_id": "pay_abc",
                "razorpay_signature": sign(order_id, "pay_abc"),
            },
            headers=seller_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["plan"] == "Royal Stallion"
        assert data["is_active"] is True
        assert data["features"]["virtual_tours"] is True

    @pytest.mark.asyncio
    async def test_verify_payment_bad_signature(self, async_client: AsyncClient, seller_headers):
        response = await async_client.post(
            "/api/v1/subscribe/verify-payment",
            json={
                "plan": "Trot",
                "razorpay_order_id": "order_1",
                "razorpay_payment_id": "pay_abc",
                "razorpay_signature": "forged",
            },
            headers=seller_headers,
        )

        assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED

        current = await async_client.get("/api/v1/subscription", headers=seller_headers)
        assert current.json()["plan"] is None

    @pytest.mark.asyncio
    @pytest.mark.asyncio
    async def test_verify_payment_can_queue(
        self, async_client: AsyncClient, seller_headers, sign
    ):
        await paid_checkout(async_client, seller_headers, sign, "Trot")
        response = await paid_checkout(async_client, seller_headers, sign, "Gallop", queue=True)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["plan"] == "Trot"
        assert [q["plan"] for q in data["queued_plans"]] == ["Gallop"]

    @pytest.mark.asyncio
    async def test_queue_without_running_plan_activates(
        self, async_client: AsyncClient, seller_headers, sign
    ):
        response = await paid_checkout(async_client, seller_headers, sign, "Gallop", queue=True)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["plan"] == "Gallop"
        assert data["is_active"] is True
        assert data["queued_plans"] == []

    @pytest.mark.asyncio
    async def test_trot_order_cannot_pay_for_royal_stallion(
        self, async_client: AsyncClient, seller_headers, sign
    ):
        order = await async_client.post(
            "/api/v1/subscribe/create-order", json={"plan": "Trot"}, headers=seller_headers
        )
        order_id = order.json()["order_id"]

        response = await async_client.post(
            "/api/v1/subscribe/verify-payment",
            json={
                "plan": "Royal Stallion",
                "razorpay_order_id": order_id,
                "razorpay_payment_id": "pay_cheap",
                "razorpay_signature": sign(order_id, "pay_cheap"),
            },
            headers=seller_headers,
        )

        assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED
        current = await async_client.get("/api/v1/subscription", headers=seller_headers)
        assert current.json()["plan"] is None

    @pytest.mark.asyncio
    async def test_replayed_payment_is_409(self, async_client: AsyncClient, seller_headers, sign):
        order = await async_client.post(
            "/api/v1/subscribe/create-order", json={"plan": "Gallop"}, headers=seller_headers
        )
        callback = {
            "plan": "Gallop",
            "razorpay_order_id": order.json()["order_id"],
            "razorpay_payment_id": "pay_once",
            "razorpay_signature": sign(order.json()["order_id"], "pay_once"),
        }

        first = await async_client.post(
            "/api/v1/subscribe/verify-payment", json=callback, headers=seller_headers
        )
        replay = await async_client.post(
            "/api/v1/subscribe/verify-payment",
            json={**callback, "queue": True},
            headers=seller_headers,
        )

        assert first.status_code == status.HTTP_200_OK
        assert replay.status_code == status.HTTP_409_CONFLICT
        assert replay.json()["code"] == "payment_already_used"
        current = await async_client.get("/api/v1/subscription", headers=seller_headers)
        assert current.json()["queued_plans"] == []

    @pytest.mark.asyncio
    async def test_payment_history(self, async_client: AsyncClient, seller_headers, sign):
        await async_client.post("/api/v1/subscribe", json={"plan": "Free"}, headers=seller_headers)
        await paid_checkout(async_client, seller_headers, sign, "Trot", payment_id="pay_trot")

        response = await async_client.get("/api/v1/subscription/payments", headers=seller_headers)

        assert response.status_code == status.HTTP_200_OK
        payments = response.json()["payments"]
        assert {(p["plan"], p["amount"], p["method"]) for p in payments} == {
            ("Free", 0, "free"),
            ("Trot", 199900, "razorpay"),
        }
        trot = next(p for p in payments if p["plan"] == "Trot")
        assert trot["payment_id"] == "pay_trot"
        assert trot["currency"] == "INR"

    @pytest.mark.asyncio
    async def test_payment_history_requires_seller(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/subscription/payments")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_create_order_is_rate_limited(self, async_client: AsyncClient, seller_headers):
        codes = []
        for _ in range(6):
            response = await async_client.post(
                "/api/v1/subscribe/create-order", json={"plan": "Trot"}, headers=seller_headers
            )
            codes.append(response.status_code)

        assert codes[:5] == [status.HTTP_200_OK] * 5
        assert codes[5] == status.HTTP_429_TOO_MANY_REQUESTS

    @pytest.mark.asyncio
    async def test_rate_limit_ignores_client_chosen_headers(
        self, async_client: AsyncClient, seller_headers
    ):
        for _ in range(5):
            await async_client.post(
                "/api/v1/subscribe/create-order", json={"plan": "Trot"}, headers=seller_headers
            )

        response = await async_client.post(
            "/api/v1/subscribe/create-order",
            json={"plan": "Trot"},
            headers={"X-Seller-ID": "someone-else", "X-Forwarded-For": "203.0.113.77"},
        )
        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS

    @pytest.mark.asyncio
    async def test_gateway_failure_is_502(self, async_client: AsyncClient, seller_headers, payments):
        from adapters.payments import RazorpayAPIError

        with patch.object(payments, "create_order", side_effect=RazorpayAPIError("boom")):
            response = await async_client.post(
                "/api/v1/subscribe/create-order", json={"plan": "Trot"}, headers=seller_headers
            )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["code"] == "payment_gateway_error"


class TestListingEndpoints:
    """Tests for listing slots and promotions."""

    @pytest.mark.asyncio
    async def test_slot_requires_active_plan(self, async_client: AsyncClient, seller_headers):
        response = await async_client.post("/api/v1/listings/slots", headers=seller_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "subscription_inactive"

    @pytest.mark.asyncio
    async def test_free_plan_slot_quota(self, async_client: AsyncClient, seller_headers):
        await async_client.post("/api/v1/subscribe", json={"plan": "Free"}, headers=seller_headers)

        first = await async_client.post("/api/v1/listings/slots", headers=seller_headers)
        assert first.status_code == status.HTTP_200_OK
        assert first.json() == {"active_listings_count": 1, "max_listings": 1}

        second = await async_client.post("/api/v1/listings/slots", headers=seller_headers)
        assert second.status_code == status.HTTP_403_FORBIDDEN
        assert second.json()["code"] == "quota_exceeded"

        released = await async_client.delete("/api/v1/listings/slots", headers=seller_headers)
        assert released.json()["active_listings_count"] == 0

    @pytest.mark.asyncio
    async def test_media_check(self, async_client: AsyncClient, seller_headers):
        await async_client.post("/api/v1/subscribe", json={"plan": "Free"}, headers=seller_headers)

        ok = await async_client.post(
            "/api/v1/listings/media-check", json={"photos": 1}, headers=seller_headers
        )
        assert ok.status_code == status.HTTP_200_OK
        assert ok.json()["max_photos_per_listing"] == 1

        too_many = await async_client.post(
            "/api/v1/listings/media-check", json={"photos": 1, "videos": 1}, headers=seller_headers
        )
        assert too_many.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_spotlight_needs_plan_allowance(
        self, async_client: AsyncClient, seller_headers
    ):
        await async_client.post("/api/v1/subscribe", json={"plan": "Free"}, headers=seller_headers)

        response = await async_client.post(
            "/api/v1/listings/spotlight", json={"listing_id": "horse-1"}, headers=seller_headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_boost_on_gallop(self, async_client: AsyncClient, seller_headers, sign):
        await paid_checkout(async_client, seller_headers, sign, "Gallop")

        response = await async_client.post(
            "/api/v1/listings/boost", json={"listing_id": "horse-1"}, headers=seller_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["kind"] == "boost"


class TestBadgeEndpoints:
    @pytest.mark.asyncio
    async def test_refresh_badges(self, async_client: AsyncClient, top_seller):
        headers = {"X-Seller-ID": top_seller.id}

        response = await async_client.post("/api/v1/badges/refresh", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert [b["badge"] for b in response.json()["badges"]] == ["Top Seller"]

        current = await async_client.get("/api/v1/badges", headers=headers)
        assert [b["badge"] for b in current.json()["badges"]] == ["Top Seller"]


class TestAdminSweep:
    @pytest.mark.asyncio
    async def test_sweep_runs(self, async_client: AsyncClient):
        with patch("api.dependencies.settings") as mock_settings:
            mock_settings.admin_api_key = None
            response = await async_client.post("/api/v1/admin/subscriptions/expire")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["updated"] == 0

    @pytest.mark.asyncio
    async def test_sweep_requires_admin_key_when_configured(self, async_client: AsyncClient):
        with patch("api.dependencies.settings") as mock_settings:
            mock_settings.admin_api_key = "s3cret"
            denied = await async_client.post("/api/v1/admin/subscriptions/expire")
            allowed = await async_client.post(
                "/api/v1/admin/subscriptions/expire", headers={"X-Admin-Key": "s3cret"}
            )

        assert denied.status_code == status.HTTP_403_FORBIDDEN
        assert allowed.status_code == status.HTTP_200_OK


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_health_db_counts_subscriptions(self, async_client: AsyncClient, seller):
        response = await async_client.get("/api/v1/health/db")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["database"] == "connected"
        assert data["subscriptions"] == 1

    @pytest.mark.asyncio
    async def test_valid_request_id_is_echoed(self, async_client: AsyncClient):
        request_id = "5b0c3a2e-1f4d-4c8a-9e61-7d2b8f0a4c13"
        response = await async_client.get(
            "/api/v1/health/live", headers={"X-Request-ID": request_id}
        )
        assert response.headers["X-Request-ID"] == request_id

    @pytest.mark.asyncio
    async def test_malformed_request_id_is_replaced(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/health/live", headers={"X-Request-ID": "not-a-uuid"}
        )
        assert response.headers["X-Request-ID"] != "not-a-uuid"
