"""
unsurf/endpoint_discovery/openapi_generator.py

OpenAPI 3.1 contract generation from captured endpoints.

Path keys are the endpoints' normalized patterns with ":name" placeholders
rewritten to "{name}". Patterns are absolute URLs, so path keys are too;
reading a contract back (see paths_to_endpoint_patterns) reverses the
rewrite and resolves server-relative keys against the first server.

Each distinct placeholder name gets one path parameter. The normalizer
names every volatile segment ":id", so "/users/:id/posts/:id" declares a
single "id" parameter rather than one per segment, since OpenAPI requires
(name, in) to be unique within an operation.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlsplit

from unsurf.data_models.endpoint import BODY_METHODS, CapturedEndpoint, HTTPMethod
from unsurf.utils.logger import get_logger
from unsurf.utils.url_utils import PATH_PARAM_RE, path_param_names

logger = get_logger(name=__name__)

OPENAPI_VERSION = "3.1.0"
JSON_MEDIA_TYPE = "application/json"

_BRACE_PARAM_RE = re.compile(r"\{([a-zA-Z_][a-zA-Z0-9_]*)\}")


def to_openapi_path(pattern: str) -> tuple[str, list[str]]:
    """
    Rewrite ":name" placeholders to "{name}".

    Args:
        pattern: Normalized endpoint pattern.

    Returns:
        (rewritten path, placeholder names in left-to-right order).
    """
    return PATH_PARAM_RE.sub(r"{\1}", pattern), path_param_names(pattern)


def paths_to_endpoint_patterns(spec: Any) -> list[tuple[HTTPMethod, str]]:
    """
    Read (method, pattern) pairs back out of an OpenAPI document.

    "{name}" becomes ":name"; keys that are not absolute URLs are joined to
    the origin of the first server entry. Unknown methods are skipped and
    pairs that resolve to the same route are returned once.

    Raises:
        ValueError: If the document or its paths object is not a mapping.
    """
    if not isinstance(spec, dict):
        raise ValueError(f"OpenAPI document must be an object, got {type(spec).__name__}")
    paths = spec.get("paths") or {}
    if not isinstance(paths, dict):
        raise ValueError(f"OpenAPI paths must be an object, got {type(paths).__name__}")

    servers = spec.get("servers")
    first_server = servers[0] if isinstance(servers, list) and servers else None
    server_url = first_server.get("url") if isinstance(first_server, dict) else None
    server = urlsplit(server_url if isinstance(server_url, str) else "")
    origin = f"{server.scheme}://{server.netloc}" if server.scheme and server.netloc else ""

    pairs: dict[tuple[HTTPMethod, str], None] = {}
    for path_key, operations in paths.items():
        if not isinstance(path_key, str) or not isinstance(operations, dict):
            continue
        pattern = _BRACE_PARAM_RE.sub(r":\1", path_key)
        if not urlsplit(pattern).scheme and origin:
            pattern = origin + (pattern if pattern.startswith("/") else "/" + pattern)
        for method in operations:
            try:
                pairs[(HTTPMethod(str(method).upper()), pattern)] = None
            except ValueError:
                continue  # parameters, summary, servers, etc.
    return list(pairs)


class AbstractOpenApiGenerator(ABC):
    """
    Interface for contract generation.
    """

    @abstractmethod
    def generate(self, base_url: str, endpoints: Sequence[CapturedEndpoint]) -> dict[str, Any]:
        """
        Build an OpenAPI document for a set of endpoints.

        Args:
            base_url: URL the discovery started from; becomes the server entry.
            endpoints: Captured endpoints.

        Returns:
            OpenAPI document as a JSON-serializable dict.
        """
        ...


class OpenApiGenerator(AbstractOpenApiGenerator):
    """
    Builds OpenAPI 3.1 documents with inferred request/response schemas.
    """

    def generate(self, base_url: str, endpoints: Sequence[CapturedEndpoint]) -> dict[str, Any]:
        paths: dict[str, dict[str, Any]] = {}

        for endpoint in endpoints:
            path, param_names = to_openapi_path(endpoint.path_pattern)
            operations = paths.setdefault(path, {})
            method_key = endpoint.method.value.lower()
            if method_key in operations:
                logger.warning("Duplicate endpoint %s %s, keeping the first", endpoint.method, path)
                continue
            operations[method_key] = self._build_operation(endpoint, param_names)

        logger.info("Generated OpenAPI document with %d paths for %s", len(paths), base_url)
        return {
            "openapi": OPENAPI_VERSION,
            "info": {"title": f"API for {base_url}", "version": "1.0.0"},
            "servers": [{"url": base_url}],
            "paths": paths,
        }

    def _build_operation(self, endpoint: CapturedEndpoint, param_names: list[str]) -> dict[str, Any]:
        operation: dict[str, Any] = {}

        parameters = [
            {"name": name, "in": "path", "required": True, "schema": {"type": "string"}}
            for name in dict.fromkeys(param_names)
        ]
        if parameters:
            operation["parameters"] = parameters

        if endpoint.method in BODY_METHODS and endpoint.request_schema is not None:
            operation["requestBody"] = {
                "required": True,
                "content": {JSON_MEDIA_TYPE: {"schema": endpoint.request_schema}},
            }

        operation["responses"] = {
            "200": {
                "description": "Successful response",
                "content": {JSON_MEDIA_TYPE: {"schema": endpoint.response_schema or {}}},
            }
        }
        return operation
