"""Tests for URL helpers and header helpers."""

from starlette.datastructures import Headers

from consentry.utils.headers import clone_headers, merge_headers
from consentry.utils.url import get_host, get_origin, resolve_base_path


class TestUrl:
    def test_get_origin(self):
        assert get_origin("https://app.example.com:8443/path?q=1") == "https://app.example.com:8443"
        assert get_origin("/relative") is None

    def test_get_host(self):
        assert get_host("https://app.example.com/x") == "app.example.com"
        assert get_host("/relative") is None

    def test_resolve_base_path(self):
        assert resolve_base_path(None) == "/api/consentry"
        assert resolve_base_path(None, "consent/") == "/consent"
        assert resolve_base_path("https://api.example.com/v1/consent", "/ignored") == "/v1/consent"
        assert resolve_base_path("https://api.example.com", "/custom") == "/custom"
        assert resolve_base_path("https://api.example.com/", "/") == "/api/consentry"


class TestHeaders:
    def test_clone_is_independent(self):
        original = Headers({"x-a": "1"})

        cloned = clone_headers(original)
        cloned["x-a"] = "2"

        assert original["x-a"] == "1"

    def test_clone_none(self):
        assert len(clone_headers(None)) == 0

    def test_merge_later_wins(self):
        target = clone_headers({"X-A": "1", "X-B": "1"})

        merge_headers(target, {"x-a": "2"})

        assert target["x-a"] == "2"
        assert target["x-b"] == "1"

    def test_merge_pairs(self):
        target = merge_headers(clone_headers(), [("X-C", "3")])

        assert target["x-c"] == "3"
