"""Tests for app.services.urls."""

import pytest

from app.services.urls import (
    dedup_key,
    in_scope,
    is_base_domain,
    registrable_domain,
    strip_fragment,
    strip_query,
)


class TestNormalisation:
    def test_strip_fragment(self):
        assert strip_fragment("https://example.com/page?a=1#top") == "https://example.com/page?a=1"

    def test_strip_query(self):
        assert strip_query("https://example.com/page?a=1#top") == "https://example.com/page"

    def test_dedup_key_ignores_case_trailing_slash_and_fragment(self):
        assert dedup_key("HTTPS://Example.com/Docs/#intro") == dedup_key("https://example.com/Docs")

    def test_dedup_key_keeps_query_by_default(self):
        assert dedup_key("https://example.com/p?id=1") != dedup_key("https://example.com/p?id=2")

    def test_dedup_key_can_ignore_query(self):
        assert dedup_key("https://example.com/p?id=1", True) == dedup_key("https://example.com/p?id=2", True)

    def test_root_path(self):
        assert dedup_key("https://example.com") == dedup_key("https://example.com/")


class TestDomains:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://example.com/x", "example.com"),
            ("https://docs.example.co.uk/x", "example.co.uk"),
            ("https://www.example.org", "example.org"),
        ],
    )
    def test_registrable_domain(self, url, expected):
        assert registrable_domain(url) == expected

    def test_in_scope_with_subdomains(self):
        assert in_scope("https://docs.example.com/a", "https://example.com") is True
        assert in_scope("https://example.org/a", "https://example.com") is False

    def test_in_scope_exact_host(self):
        assert in_scope("https://www.example.com/a", "https://example.com", include_subdomains=False) is True
        assert in_scope("https://docs.example.com/a", "https://example.com", include_subdomains=False) is False

    def test_in_scope_rejects_non_http(self):
        assert in_scope("mailto:hi@example.com", "https://example.com") is False

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://example.com", True),
            ("https://www.example.com/", True),
            ("https://example.com/blog", False),
            ("https://docs.example.com", False),
        ],
    )
    def test_is_base_domain(self, url, expected):
        assert is_base_domain(url) is expected
