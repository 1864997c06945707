"""Unit tests for rate limit keys."""

from unittest.mock import patch

from starlette.requests import Request

from api.middleware.rate_limit import client_ip, get_rate_limit, rate_limit_key
from infrastructure.config.settings import settings


def make_request(headers: dict[str, str], client_host: str = "10.0.0.7") -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/api/v1/subscribe/create-order",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
            "client": (client_host, 4321),
        }
    )


class TestRateLimitKey:
    def test_keyed_on_connection_address(self):
        request = make_request({}, client_host="198.51.100.4")
        assert rate_limit_key(request) == "ip:198.51.100.4"

    def test_seller_header_does_not_pick_the_bucket(self):
        first = make_request({"X-Seller-ID": "seller-1"}, client_host="198.51.100.4")
        second = make_request({"X-Seller-ID": "seller-2"}, client_host="198.51.100.4")
        assert rate_limit_key(first) == rate_limit_key(second) == "ip:198.51.100.4"

    def test_forwarded_headers_ignored_by_default(self):
        request = make_request(
            {"X-Forwarded-For": "203.0.113.9", "X-Real-IP": "203.0.113.10"},
            client_host="198.51.100.4",
        )
        assert client_ip(request) == "198.51.100.4"


class TestTrustedProxy:
    def test_uses_hop_added_by_proxy(self):
        request = make_request({"X-Forwarded-For": "203.0.113.9, 198.51.100.23"})
        with patch.object(settings, "trust_forwarded_headers", True):
            assert client_ip(request) == "198.51.100.23"

    def test_falls_back_to_real_ip_header(self):
        request = make_request({"X-Real-IP": "198.51.100.23"})
        with patch.object(settings, "trust_forwarded_headers", True):
            assert client_ip(request) == "198.51.100.23"

    def test_malformed_header_falls_back_to_connection(self):
        request = make_request({"X-Forwarded-For": "not-an-ip"}, client_host="10.0.0.7")
        with patch.object(settings, "trust_forwarded_headers", True):
            assert client_ip(request) == "10.0.0.7"


def test_unknown_endpoint_uses_default_limit():
    assert get_rate_limit("no-such-endpoint") == get_rate_limit("default")
