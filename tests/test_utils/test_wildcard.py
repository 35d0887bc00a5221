"""Tests for wildcard matching."""

import pytest

from consentry.utils.wildcard import match_path, wildcard_match


class TestWildcardMatch:
    @pytest.mark.parametrize(
        "pattern,value,expected",
        [
            ("*.example.com", "app.example.com", True),
            ("*.example.com", "a.b.example.com", False),
            ("**.example.com", "a.b.example.com", True),
            ("app?.example.com", "app1.example.com", True),
            ("app?.example.com", "app.example.com", False),
            ("example.com", "example.com", True),
            ("example.com", "exampleXcom", False),
        ],
    )
    def test_host_patterns(self, pattern, value, expected):
        assert wildcard_match(pattern, value) is expected


class TestMatchPath:
    @pytest.mark.parametrize("pattern", ["*", "/*", "**", "/**"])
    def test_match_all(self, pattern):
        assert match_path(pattern, "/consent/set") is True

    def test_single_segment(self):
        assert match_path("/consent/*", "/consent/set") is True
        assert match_path("/consent/*", "/consent/set/extra") is False

    def test_deep(self):
        assert match_path("/consent/**", "/consent/set/extra") is True

    def test_trailing_slash_ignored(self):
        assert match_path("/status/", "/status") is True
