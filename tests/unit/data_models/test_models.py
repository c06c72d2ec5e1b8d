"""
tests/unit/data_models/test_models.py

Unit tests for data model helpers: ids, body decoding and endpoint merging.
"""

import re
from datetime import datetime, timezone

import pytest

from unsurf.data_models.endpoint import CapturedEndpoint, HTTPMethod
from unsurf.data_models.ids import generate_id, utc_now
from unsurf.data_models.network_event import NetworkEvent
from unsurf.endpoint_discovery.schema_inferrer import SchemaInferrer


class TestIds:
    """Tests for generate_id and utc_now."""

    def test_format(self) -> None:
        """IDs are prefix_base36time_8chars."""
        assert re.fullmatch(r"ep_[0-9a-z]+_[0-9a-z]{8}", generate_id("ep"))

    def test_unique(self) -> None:
        """Consecutive IDs differ."""
        assert len({generate_id("run") for _ in range(100)}) == 100

    def test_utc_now_is_aware(self) -> None:
        """Timestamps carry the UTC timezone."""
        assert utc_now().tzinfo == timezone.utc


class TestNetworkEventBodies:
    """Tests for best-effort JSON body decoding."""

    def _event(self, body: object) -> NetworkEvent:
        return NetworkEvent(request_id="1", url="https://a.com", method="GET", resource_type="fetch", response_body=body)

    @pytest.mark.parametrize("body, expected", [
        ('{"a": 1}', (True, {"a": 1})),
        (b"[1, 2]", (True, [1, 2])),
        ({"already": "decoded"}, (True, {"already": "decoded"})),
        ("<html></html>", (False, None)),
        ("   ", (False, None)),
        (None, (False, None)),
    ])
    def test_decoding(self, body: object, expected: tuple[bool, object]) -> None:
        """JSON text, bytes and decoded values are samples; everything else is not."""
        assert self._event(body).json_response_body() == expected


class TestCapturedEndpointMerge:
    """Tests for CapturedEndpoint.merged_with."""

    def test_merge(self) -> None:
        """Counts add, schemas merge, and the seen window widens."""
        early = datetime(2024, 1, 1, tzinfo=timezone.utc)
        late = datetime(2024, 6, 1, tzinfo=timezone.utc)
        a = CapturedEndpoint(
            site_id="s", method=HTTPMethod.GET, path_pattern="https://a.com/x",
            response_schema={"type": "integer"}, sample_count=2, first_seen_at=late, last_seen_at=late,
        )
        b = CapturedEndpoint(
            site_id="s", method=HTTPMethod.GET, path_pattern="https://a.com/x",
            request_schema={"type": "string"}, response_schema={"type": "number"},
            sample_count=3, first_seen_at=early, last_seen_at=early,
        )

        merged = a.merged_with(b, SchemaInferrer())

        assert merged.id == a.id
        assert merged.sample_count == 5
        assert merged.response_schema == {"type": "number"}
        assert merged.request_schema == {"type": "string"}
        assert merged.first_seen_at == early
        assert merged.last_seen_at == late

    def test_identity_mismatch(self) -> None:
        """Endpoints with different identities cannot be merged."""
        a = CapturedEndpoint(site_id="s", method=HTTPMethod.GET, path_pattern="https://a.com/x")
        b = CapturedEndpoint(site_id="s", method=HTTPMethod.POST, path_pattern="https://a.com/x")
        with pytest.raises(ValueError):
            a.merged_with(b, SchemaInferrer())
