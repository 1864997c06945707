"""Payment adapters for subscription purchases."""

from .razorpay_adapter import (
    RazorpayAdapter,
    RazorpayAPIError,
    RazorpayAuthError,
    RazorpayError,
    RazorpayOrder,
    RazorpaySignatureError,
    compute_signature,
    order_mismatch,
    create_razorpay_adapter,
)

__all__ = [
    "RazorpayAdapter",
    "RazorpayOrder",
    "RazorpayError",
    "RazorpayAPIError",
    "RazorpayAuthError",
    "RazorpaySignatureError",
    "compute_signature",
    "order_mismatch",
    "create_razorpay_adapter",
]
