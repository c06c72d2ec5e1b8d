"""
unsurf/data_models/network_event.py

One captured HTTP exchange, as produced by the browser collaborator.
"""

import json
from typing import Any

from pydantic import BaseModel, Field


class NetworkEvent(BaseModel):
    """A single request/response pair observed during a browsing session."""
    request_id: str = Field(description="Browser-assigned request ID")
    url: str = Field(description="Full request URL")
    method: str = Field(description="HTTP method as reported by the browser")
    resource_type: str = Field(description="Resource kind, e.g. 'fetch', 'xhr', 'image', 'script'")
    request_headers: dict[str, str] = Field(default_factory=dict)
    request_body: Any = Field(default=None, description="Raw request body (text or decoded JSON)")
    response_status: int = Field(default=0)
    response_body: Any = Field(default=None, description="Raw response body (text or decoded JSON)")
    response_headers: dict[str, str] = Field(default_factory=dict)
    timestamp: float = Field(default=0.0, description="Unix time the request was sent")

    def json_request_body(self) -> tuple[bool, Any]:
        """Decoded request body as (ok, value); ok is False when there is no JSON body."""
        return _decode_json(self.request_body)

    def json_response_body(self) -> tuple[bool, Any]:
        """Decoded response body as (ok, value); ok is False when there is no JSON body."""
        return _decode_json(self.response_body)


def _decode_json(body: Any) -> tuple[bool, Any]:
    if body is None:
        return False, None
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return False, None
    if isinstance(body, str):
        if not body.strip():
            return False, None
        try:
            return True, json.loads(body)
        except json.JSONDecodeError:
            return False, None
    if isinstance(body, (dict, list, int, float, bool)):
        return True, body
    return False, None
