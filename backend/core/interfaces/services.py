"""Service interfaces for external integrations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..domain.subscription import PaymentProof, Plan


@dataclass
class PaymentOrder:
    """Order created with the payment gateway, handed to the checkout widget."""

    order_id: str
    amount: int
    currency: str
    plan: Plan
    key_id: str | None = None


class PaymentService(ABC):
    """Abstract service for payment processing."""

    @abstractmethod
    async def create_order(self, seller_id: str, plan: Plan, amount: int) -> PaymentOrder:
        """Create a gateway order for one period of ``plan``."""
        ...

    @abstractmethod
    async def verify_payment(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        plan: Plan,
        seller_id: str,
    ) -> PaymentProof:
        """
        Check a checkout callback and return proof of payment.

        The proof is accepted only when the signature checks out and the
        gateway order was created for ``plan`` at its price for ``seller_id``.
        """
        ...
