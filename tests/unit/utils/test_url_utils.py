"""
tests/unit/utils/test_url_utils.py

Unit tests for URL pattern normalization and placeholder resolution.
"""

import pytest

from unsurf.utils.url_utils import (
    extract_domain,
    normalize_url_pattern,
    path_param_names,
    resolve_path_pattern,
)


class TestNormalizeUrlPattern:
    """Tests for normalize_url_pattern."""

    def test_numeric_segment(self) -> None:
        """A numeric id becomes :id."""
        assert normalize_url_pattern("https://api.example.com/users/42") == "https://api.example.com/users/:id"

    def test_uuid_segment(self) -> None:
        """A UUID becomes :id."""
        url = "https://api.example.com/orders/550e8400-e29b-41d4-a716-446655440000"
        assert normalize_url_pattern(url) == "https://api.example.com/orders/:id"

    def test_base64_segment(self) -> None:
        """A base64 token of 16+ chars becomes :id."""
        url = "https://api.example.com/tokens/dGhpcyBpcyBhIHRva2Vu"
        assert normalize_url_pattern(url) == "https://api.example.com/tokens/:id"

    def test_hex_segment(self) -> None:
        """A hex token of 8+ chars becomes :id."""
        assert normalize_url_pattern("https://api.example.com/commits/deadbeef") == "https://api.example.com/commits/:id"

    def test_literal_segments_preserved(self) -> None:
        """Short literal segments are kept as-is."""
        assert normalize_url_pattern("https://api.example.com/v2/search") == "https://api.example.com/v2/search"

    def test_short_hex_is_literal(self) -> None:
        """Hex-looking segments under 8 chars are not volatile."""
        assert normalize_url_pattern("https://api.example.com/abc123") == "https://api.example.com/abc123"

    def test_multiple_volatile_segments(self) -> None:
        """Each volatile segment is replaced independently."""
        url = "https://api.example.com/users/42/posts/7"
        assert normalize_url_pattern(url) == "https://api.example.com/users/:id/posts/:id"

    def test_query_and_fragment_dropped(self) -> None:
        """Query string and fragment are not part of the pattern."""
        url = "https://api.example.com/users/42?expand=1#top"
        assert normalize_url_pattern(url) == "https://api.example.com/users/:id"

    def test_empty_path_becomes_root(self) -> None:
        """A bare origin normalizes to origin + '/'."""
        assert normalize_url_pattern("https://api.example.com") == "https://api.example.com/"

    def test_default_port_dropped_custom_port_kept(self) -> None:
        """Default ports are dropped; others are kept."""
        assert normalize_url_pattern("https://api.example.com:443/a") == "https://api.example.com/a"
        assert normalize_url_pattern("http://localhost:8080/a/1") == "http://localhost:8080/a/:id"

    def test_trailing_slash_kept(self) -> None:
        """A trailing slash survives normalization."""
        assert normalize_url_pattern("https://api.example.com/users/") == "https://api.example.com/users/"

    @pytest.mark.parametrize("url", [
        "https://api.example.com/users/42",
        "https://api.example.com/v2/items/deadbeefcafe/reviews",
        "https://api.example.com/",
    ])
    def test_idempotent(self, url: str) -> None:
        """Normalizing a pattern again leaves it unchanged."""
        once = normalize_url_pattern(url)
        assert normalize_url_pattern(once) == once

    def test_relative_url_rejected(self) -> None:
        """URLs without a scheme and host raise ValueError."""
        with pytest.raises(ValueError):
            normalize_url_pattern("/users/42")


class TestExtractDomain:
    """Tests for extract_domain."""

    def test_hostname(self) -> None:
        """The hostname is returned without port or path."""
        assert extract_domain("https://Shop.Example.com:8443/cart") == "shop.example.com"

    def test_missing_host(self) -> None:
        """A URL without a host raises ValueError."""
        with pytest.raises(ValueError):
            extract_domain("not a url")


class TestResolvePathPattern:
    """Tests for resolve_path_pattern and path_param_names."""

    def test_substitutes_matching_keys(self) -> None:
        """Placeholders with matching data keys are replaced."""
        assert resolve_path_pattern("https://a.com/users/:id", {"id": 7}) == "https://a.com/users/7"

    def test_unmatched_left_literal(self) -> None:
        """Placeholders without a value are left in place."""
        assert resolve_path_pattern("https://a.com/users/:id", {"name": "x"}) == "https://a.com/users/:id"

    def test_none_data(self) -> None:
        """No data leaves the pattern untouched."""
        assert resolve_path_pattern("https://a.com/users/:id", None) == "https://a.com/users/:id"

    def test_port_is_not_a_placeholder(self) -> None:
        """Numeric ports never match the placeholder syntax."""
        assert resolve_path_pattern("http://localhost:8080/x/:id", {"id": 1}) == "http://localhost:8080/x/1"

    def test_param_names(self) -> None:
        """Placeholder names are listed in order of appearance."""
        assert path_param_names("https://a.com/:org/repos/:id") == ["org", "id"]
