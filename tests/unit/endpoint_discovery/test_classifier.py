"""
tests/unit/endpoint_discovery/test_classifier.py

Unit tests for API request classification and endpoint grouping.
"""

from collections.abc import Callable

import pytest

from unsurf.data_models.endpoint import HTTPMethod
from unsurf.data_models.network_event import NetworkEvent
from unsurf.endpoint_discovery.classifier import group_by_endpoint, is_api_request


class TestIsApiRequest:
    """Tests for is_api_request."""

    @pytest.mark.parametrize("resource_type", ["xhr", "fetch", "XHR", "Fetch"])
    def test_programmatic_requests(self, resource_type: str) -> None:
        """fetch and XHR are API calls regardless of case."""
        assert is_api_request(resource_type, "https://api.example.com/users")

    @pytest.mark.parametrize("resource_type", ["document", "image", "script", "stylesheet", ""])
    def test_other_resource_types(self, resource_type: str) -> None:
        """Everything else is not an API call."""
        assert not is_api_request(resource_type, "https://api.example.com/users")

    @pytest.mark.parametrize("url", [
        "https://cdn.example.com/logo.PNG",
        "https://cdn.example.com/app.js",
        "https://cdn.example.com/fonts/inter.woff2",
        "https://cdn.example.com/site.css?v=3",
    ])
    def test_static_assets_rejected(self, url: str) -> None:
        """Fetches of static assets are not API calls."""
        assert not is_api_request("fetch", url)

    def test_json_file_allowed(self) -> None:
        """JSON documents fetched programmatically count as API calls."""
        assert is_api_request("fetch", "https://example.com/data/config.json")


class TestGroupByEndpoint:
    """Tests for group_by_endpoint."""

    def test_numeric_ids_share_one_group(self, make_event: Callable[..., NetworkEvent]) -> None:
        """Numerically different trailing segments group into one endpoint."""
        groups = group_by_endpoint([
            make_event(url="https://api.example.com/users/1"),
            make_event(url="https://api.example.com/users/2"),
        ])
        assert list(groups) == ["GET https://api.example.com/users/:id"]
        assert len(groups["GET https://api.example.com/users/:id"].events) == 2

    def test_methods_are_separate_groups(self, make_event: Callable[..., NetworkEvent]) -> None:
        """The same pattern with different methods yields separate groups."""
        groups = group_by_endpoint([
            make_event(method="GET"),
            make_event(method="post"),
        ])
        assert [g.method for g in groups.values()] == [HTTPMethod.GET, HTTPMethod.POST]

    def test_first_seen_order(self, make_event: Callable[..., NetworkEvent]) -> None:
        """Groups keep the order in which their keys were first seen."""
        groups = group_by_endpoint([
            make_event(url="https://api.example.com/b"),
            make_event(url="https://api.example.com/a"),
            make_event(url="https://api.example.com/b"),
        ])
        assert [g.pattern for g in groups.values()] == [
            "https://api.example.com/b",
            "https://api.example.com/a",
        ]

    def test_skips_non_api_and_bad_entries(self, make_event: Callable[..., NetworkEvent]) -> None:
        """Non-API events, unknown methods and malformed URLs are skipped silently."""
        groups = group_by_endpoint([
            make_event(resource_type="image", url="https://api.example.com/a.png"),
            make_event(method="BREW"),
            make_event(url="not-a-url"),
            make_event(url="https://api.example.com/ok"),
        ])
        assert list(groups) == ["GET https://api.example.com/ok"]

    def test_custom_predicate(self, make_event: Callable[..., NetworkEvent]) -> None:
        """A custom predicate replaces the default filter."""
        groups = group_by_endpoint(
            [make_event(resource_type="document")],
            predicate=lambda resource_type, url: True,
        )
        assert len(groups) == 1

    def test_group_key(self, make_event: Callable[..., NetworkEvent]) -> None:
        """EndpointGroup.key is 'METHOD pattern'."""
        group = next(iter(group_by_endpoint([make_event()]).values()))
        assert group.key == "GET https://api.example.com/users"
