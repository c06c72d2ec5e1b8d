"""
unsurf/data_models/endpoint.py

CapturedEndpoint: a deduplicated (method, normalized pattern) API surface
with inferred request/response schemas.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from unsurf.data_models.ids import generate_id, utc_now

if TYPE_CHECKING:
    from unsurf.endpoint_discovery.schema_inferrer import AbstractSchemaInferrer


class HTTPMethod(StrEnum):
    """Supported HTTP methods."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


# Methods whose replay carries a JSON body
BODY_METHODS = frozenset({HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH})


class CapturedEndpoint(BaseModel):
    """
    A persisted API endpoint discovered from live traffic.

    Identity is (site_id, method, path_pattern); it never changes after
    creation. Repeat observations increment sample_count and merge schemas.
    """
    id: str = Field(default_factory=lambda: generate_id("ep"))
    site_id: str
    method: HTTPMethod
    path_pattern: str = Field(description="Normalized URL pattern, e.g. https://api.example.com/users/:id")
    request_schema: dict[str, Any] | None = Field(default=None)
    response_schema: dict[str, Any] | None = Field(default=None)
    sample_count: int = Field(default=0)
    first_seen_at: datetime = Field(default_factory=utc_now)
    last_seen_at: datetime = Field(default_factory=utc_now)

    @property
    def identity(self) -> tuple[str, str, str]:
        """Uniqueness key."""
        return (self.site_id, self.method.value, self.path_pattern)

    def merged_with(
        self,
        other: CapturedEndpoint,
        inferrer: AbstractSchemaInferrer,
    ) -> CapturedEndpoint:
        """
        Reconcile a new observation of the same endpoint into this one.

        Keeps this endpoint's id; sample counts add, schemas are merged
        (a missing schema on either side yields the other).
        """
        if other.identity != self.identity:
            raise ValueError(f"Cannot merge {other.identity} into {self.identity}")

        return self.model_copy(update={
            "request_schema": _merge_optional(self.request_schema, other.request_schema, inferrer),
            "response_schema": _merge_optional(self.response_schema, other.response_schema, inferrer),
            "sample_count": self.sample_count + other.sample_count,
            "first_seen_at": min(self.first_seen_at, other.first_seen_at),
            "last_seen_at": max(self.last_seen_at, other.last_seen_at),
        })


def _merge_optional(
    a: dict[str, Any] | None,
    b: dict[str, Any] | None,
    inferrer: AbstractSchemaInferrer,
) -> dict[str, Any] | None:
    if a is None:
        return b
    if b is None:
        return a
    return inferrer.merge(a, b)
