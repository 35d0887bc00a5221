"""Tests for caller IP resolution."""

from consentry.config import ConsentOptions, IPAddressOptions
from consentry.utils.ip import get_ip_address


class TestGetIpAddress:
    def test_testing_uses_loopback(self, make_request):
        request = make_request(headers={"x-forwarded-for": "203.0.113.5"})

        assert get_ip_address(request, ConsentOptions(testing=True)) == "127.0.0.1"

    def test_tracking_disabled(self, make_request):
        options = ConsentOptions(testing=True, ip_address=IPAddressOptions(disable_ip_tracking=True))

        assert get_ip_address(make_request(), options) is None

    def test_first_forwarded_entry(self, make_request):
        request = make_request(headers={"x-forwarded-for": "203.0.113.5, 10.0.0.1"})

        assert get_ip_address(request, ConsentOptions()) == "203.0.113.5"

    def test_default_header_order(self, make_request):
        request = make_request(headers={"x-real-ip": "198.51.100.2", "x-client-ip": "198.51.100.1"})

        assert get_ip_address(request, ConsentOptions()) == "198.51.100.1"

    def test_configured_headers(self, make_request):
        options = ConsentOptions(ip_address=IPAddressOptions(ip_address_headers=["x-custom-ip"]))
        request = make_request(headers={"x-custom-ip": "192.0.2.9", "x-forwarded-for": "203.0.113.5"})

        assert get_ip_address(request, options) == "192.0.2.9"

    def test_falls_back_to_client(self, make_request):
        assert get_ip_address(make_request(), ConsentOptions()) == "10.0.0.1"

    def test_no_client(self, make_request):
        assert get_ip_address(make_request(client=None), ConsentOptions()) is None
