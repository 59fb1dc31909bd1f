"""
Tests for utility functions
"""
import pytest

from utils import (
    normalize_url, validate_url, get_host, normalize_domain, host_matches_domain,
    clean_text, to_camel, camelize_keys, clamp
)


class TestUrlHelpers:
    """Tests for URL handling"""

    def test_normalize_url_adds_https(self):
        assert normalize_url("example.com") == "https://example.com"
        assert normalize_url("  example.com/path ") == "https://example.com/path"

    def test_normalize_url_keeps_scheme(self):
        assert normalize_url("http://example.com") == "http://example.com"

    def test_normalize_empty_url(self):
        assert normalize_url("") == ""
        assert normalize_url(None) == ""

    def test_validate_url(self):
        assert validate_url("https://example.com") is True
        assert validate_url("ftp://example.com") is False
        assert validate_url("not a url") is False

    def test_get_host(self):
        assert get_host("https://Sub.Example.com:8080/path") == "sub.example.com"
        assert get_host("relative/path") == ""

    def test_normalize_domain(self):
        assert normalize_domain("https://www.example.com/page") == "example.com"
        assert normalize_domain("www.example.com") == "example.com"
        assert normalize_domain("Example.com") == "example.com"

    @pytest.mark.parametrize("host, domain, expected", [
        ("example.com", "example.com", True),
        ("www.example.com", "example.com", True),
        ("blog.example.com", "example.com", True),
        ("example.com", "www.example.com", True),
        ("notexample.com", "example.com", False),
        ("example.com.evil.net", "example.com", False),
        ("", "example.com", False),
    ])
    def test_host_matches_domain(self, host, domain, expected):
        assert host_matches_domain(host, domain) is expected


class TestTextHelpers:
    """Tests for text and key helpers"""

    def test_clean_text(self):
        assert clean_text("  Hello\n\n   world\t ") == "Hello world"
        assert clean_text(None) == ""

    def test_to_camel(self):
        assert to_camel("meta_description") == "metaDescription"
        assert to_camel("id") == "id"
        assert to_camel("load_time_ms") == "loadTimeMs"

    def test_camelize_keys_is_shallow(self):
        data = camelize_keys({"website_id": 1, "issues": [{"some_key": 1}]})
        assert data == {"websiteId": 1, "issues": [{"some_key": 1}]}

    def test_clamp(self):
        assert clamp(150, 0, 100) == 100
        assert clamp(-5, 0, 100) == 0
        assert clamp(42, 0, 100) == 42

