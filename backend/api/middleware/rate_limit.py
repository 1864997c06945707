"""
Rate limiting with slowapi.

Requests are limited per connecting address. ``X-Seller-ID`` is supplied by
the caller, so it never picks the bucket. Forwarding headers are read only
when ``settings.trust_forwarded_headers`` says a proxy in front of the
service sets them. Storage comes from ``settings.rate_limit_storage_uri``;
``memory://`` is per process.
"""

import ipaddress
import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

RATE_LIMITS = {
    "create_order": settings.create_order_rate_limit,
    "default": settings.rate_limit_default,
}


def _ip(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def client_ip(request: Request) -> str:
    """Address the request is limited by.

    Behind a trusted proxy the last ``X-Forwarded-For`` hop is the one the
    proxy appended; earlier hops are whatever the client sent.
    """
    if settings.trust_forwarded_headers:
        forwarded = request.headers.get("x-forwarded-for", "")
        ip = _ip(forwarded.split(",")[-1]) or _ip(request.headers.get("x-real-ip"))
        if ip:
            return ip
    return get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    return f"ip:{client_ip(request)}"


if settings.rate_limit_storage_uri.startswith("memory://") and settings.is_production:
    logger.warning("Rate limiter using in-memory storage; limits are per process")

limiter = Limiter(
    key_func=rate_limit_key,
    storage_uri=settings.rate_limit_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """Limit string (``"count/period"``) for *endpoint*, or the default."""
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
