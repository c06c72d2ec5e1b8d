"""
unsurf/endpoint_discovery/__init__.py

Endpoint discovery module - deterministic analysis of captured network
traffic into deduplicated endpoints, inferred JSON schemas, and an
OpenAPI contract.
"""

from unsurf.endpoint_discovery.classifier import EndpointGroup, group_by_endpoint, is_api_request
from unsurf.endpoint_discovery.openapi_generator import AbstractOpenApiGenerator, OpenApiGenerator
from unsurf.endpoint_discovery.schema_inferrer import (
    AbstractSchemaInferrer,
    SchemaInferrer,
    infer_schema,
    merge_schemas,
)

__all__ = [
    "AbstractOpenApiGenerator",
    "AbstractSchemaInferrer",
    "EndpointGroup",
    "group_by_endpoint",
    "infer_schema",
    "is_api_request",
    "merge_schemas",
    "OpenApiGenerator",
    "SchemaInferrer",
]
