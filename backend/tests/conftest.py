"""
Pytest configuration and shared fixtures for backend tests.
"""

import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from datetime import UTC, datetime
from typing import AsyncGenerator
from uuid import uuid4

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from adapters.payments import (
    RazorpayAdapter,
    RazorpayAPIError,
    RazorpayOrder,
    compute_signature,
)
from core.domain.seller import Seller, SellerStatistics
from core.domain.subscription import Plan
from core.interfaces.services import PaymentOrder
from infrastructure.database.connection import get_db
from infrastructure.database.models import Base
from infrastructure.database.repositories import (
    SqlPaymentRepository,
    SqlSellerRepository,
    SqlSubscriptionRepository,
)
from services.subscription_service import SubscriptionService


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_KEY_ID = "rzp_test_key123"
TEST_KEY_SECRET = "test_key_secret"


class FakePaymentService(RazorpayAdapter):
    """Razorpay adapter with real signature and order checks and no network calls."""

    def __init__(self):
        super().__init__(key_id=TEST_KEY_ID, key_secret=TEST_KEY_SECRET, test_mode=False)
        self.orders: list[PaymentOrder] = []
        self.gateway_orders: dict[str, RazorpayOrder] = {}

    async def create_order(self, seller_id: str, plan: Plan, amount: int) -> PaymentOrder:
        order = PaymentOrder(
            order_id=f"order_{len(self.orders) + 1}",
            amount=amount,
            currency="INR",
            plan=plan,
            key_id=self.key_id,
        )
        self.orders.append(order)
        self.gateway_orders[order.order_id] = RazorpayOrder(
            id=order.order_id,
            amount=amount,
            currency="INR",
            receipt=f"sub_{seller_id}",
            status="paid",
            notes={"plan": plan.value, "seller_id": seller_id},
            created_at=datetime.now(UTC),
        )
        return order

    async def fetch_order(self, order_id: str) -> RazorpayOrder:
        if order_id not in self.gateway_orders:
            raise RazorpayAPIError(f"API request failed: order {order_id} does not exist")
        return self.gateway_orders[order_id]


@pytest.fixture
def sign():
    """Produce the signature the checkout widget would hand back for the test key."""

    def _sign(order_id: str, payment_id: str) -> str:
        return compute_signature(order_id, payment_id, TEST_KEY_SECRET)

    return _sign


@pytest.fixture
def now() -> datetime:
    """Fixed point in time, mid-month so monthly windows are unambiguous."""
    return datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def payments() -> FakePaymentService:
    return FakePaymentService()


@pytest.fixture
def service(db_session: AsyncSession, payments: FakePaymentService) -> SubscriptionService:
    """Subscription service wired to the test session."""
    return SubscriptionService(
        db=db_session,
        sellers=SqlSellerRepository(db_session),
        subscriptions=SqlSubscriptionRepository(db_session),
        ledger=SqlPaymentRepository(db_session),
        payments=payments,
    )


@pytest.fixture
def checkout(service: SubscriptionService, sign):
    """Run create-order for a plan and return what the checkout widget hands back."""

    async def _checkout(seller_id: str, plan: Plan) -> tuple[str, str, str]:
        order = await service.create_order(seller_id, plan)
        payment_id = f"pay_{uuid4().hex[:14]}"
        return order.order_id, payment_id, sign(order.order_id, payment_id)

    return _checkout


@pytest.fixture
async def seller(service: SubscriptionService) -> Seller:
    """A registered seller with no plan yet."""
    seller = Seller(id=str(uuid4()), business_name="Willow Creek Stables")
    await service.register_seller(seller)
    return seller


@pytest.fixture
async def top_seller(service: SubscriptionService) -> Seller:
    """A registered seller whose statistics qualify for every badge rule."""
    seller = Seller(
        id=str(uuid4()),
        business_name="Royal Meadows",
        statistics=SellerStatistics(
            total_sales=12,
            total_listings=20,
            rating=4.8,
        ),
    )
    await service.register_seller(seller)
    return seller


@pytest.fixture
def seller_headers(seller: Seller) -> dict:
    return {"X-Seller-ID": seller.id}


@pytest.fixture
async def async_client(
    db_session: AsyncSession, payments: FakePaymentService
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from api.dependencies import get_payment_service
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_service] = lambda: payments

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
