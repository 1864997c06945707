"""Domain errors raised by the subscription engine.

Each error carries the HTTP status the API layer answers with, so the
translation lives in one place (see ``main.gallopmart_error_handler``).
"""


class GallopMartError(Exception):
    """Base exception for subscription engine errors."""

    status_code = 400
    code = "gallopmart_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownPlanError(GallopMartError):
    """Raised when a plan string matches none of the recognised plans."""

    status_code = 400
    code = "unknown_plan"

    def __init__(self, plan: object):
        super().__init__(f"Unknown subscription plan: {plan!r}")
        self.plan = plan


class SubscriptionNotFoundError(GallopMartError):
    """Raised when a seller has no subscription record."""

    status_code = 404
    code = "subscription_not_found"

    def __init__(self, seller_id: str):
        super().__init__(f"No subscription found for seller {seller_id}")
        self.seller_id = seller_id


class SellerNotFoundError(GallopMartError):
    """Raised when a seller id is unknown."""

    status_code = 404
    code = "seller_not_found"

    def __init__(self, seller_id: str):
        super().__init__(f"Seller {seller_id} not found")
        self.seller_id = seller_id


class PaymentNotVerifiedError(GallopMartError):
    """Raised when a paid plan is activated without accepted payment proof."""

    status_code = 402
    code = "payment_not_verified"


class QuotaExceededError(GallopMartError):
    """Raised by the service layer when a plan quota would be exceeded."""

    status_code = 403
    code = "quota_exceeded"


class SubscriptionInactiveError(GallopMartError):
    """Raised when a gated action needs an active subscription."""

    status_code = 403
    code = "subscription_inactive"


class PaymentAlreadyUsedError(GallopMartError):
    """Raised when a gateway order or payment has already paid for a period."""

    status_code = 409
    code = "payment_already_used"
