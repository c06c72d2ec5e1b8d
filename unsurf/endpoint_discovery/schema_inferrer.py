"""
unsurf/endpoint_discovery/schema_inferrer.py

JSON Schema inference from sample values.

Contains:
- infer_schema: Infer one schema accepting every sample
- merge_schemas: Merge two schemas into one accepting both
- AbstractSchemaInferrer / SchemaInferrer: injectable wrappers used by the tools

Schemas are plain dicts using the keys type, properties, required, items,
format and anyOf. Object "required" lists are derived per sample and
intersected when samples are merged, so a key missing (or null) in any
sample ends up optional.
"""

import json
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

JsonSchema = dict[str, Any]

# String format detectors, checked in order; first match wins
_STRING_FORMATS: list[tuple[str, re.Pattern[str]]] = [
    ("date-time", re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}")),
    ("date", re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")),
    ("email", re.compile(r"^[^@]+@[^@]+\.[^@]+$")),
    ("uri", re.compile(r"^https?://")),
    ("uuid", re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)),
]


# Inference _______________________________________________________________________________________

def _infer_string(value: str) -> JsonSchema:
    schema: JsonSchema = {"type": "string"}
    for fmt, pattern in _STRING_FORMATS:
        if pattern.match(value):
            schema["format"] = fmt
            break
    return schema


def _infer_array(values: list[Any]) -> JsonSchema:
    if not values:
        return {"type": "array", "items": {}}

    item_schema = _infer_value(values[0])
    for value in values[1:]:
        item_schema = merge_schemas(item_schema, _infer_value(value))
    return {"type": "array", "items": item_schema}


def _infer_object(obj: dict[str, Any]) -> JsonSchema:
    properties: dict[str, JsonSchema] = {}
    required: list[str] = []

    for key, value in obj.items():
        properties[key] = _infer_value(value)
        if value is not None:
            required.append(key)

    schema: JsonSchema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _infer_value(value: Any) -> JsonSchema:
    """Schema of a single decoded JSON value."""
    if value is None:
        return {"type": "null"}
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, int):
        return {"type": "integer"}
    if isinstance(value, float):
        return {"type": "integer"} if value.is_integer() else {"type": "number"}
    if isinstance(value, str):
        return _infer_string(value)
    if isinstance(value, (list, tuple)):
        return _infer_array(list(value))
    if isinstance(value, dict):
        return _infer_object(value)
    # anything that is not JSON carries no type information
    return {}


def infer_schema(samples: Iterable[Any]) -> JsonSchema:
    """
    Infer a JSON Schema that accepts every sample.

    Args:
        samples: Decoded JSON values.

    Returns:
        The left-fold merge of every per-sample schema; {} for no samples.
    """
    schema: JsonSchema | None = None
    for sample in samples:
        sample_schema = _infer_value(sample)
        schema = sample_schema if schema is None else merge_schemas(schema, sample_schema)
    return schema if schema is not None else {}


# Merging _________________________________________________________________________________________

def _merge_objects(a: JsonSchema, b: JsonSchema) -> JsonSchema:
    props_a: dict[str, JsonSchema] = a.get("properties") or {}
    props_b: dict[str, JsonSchema] = b.get("properties") or {}
    required_a = set(a.get("required") or [])
    required_b = set(b.get("required") or [])

    properties: dict[str, JsonSchema] = {}
    required: list[str] = []
    for key in [*props_a, *(k for k in props_b if k not in props_a)]:
        if key in props_a and key in props_b:
            properties[key] = merge_schemas(props_a[key], props_b[key])
            if key in required_a and key in required_b:
                required.append(key)
        else:
            # present on one side only: kept, never required
            properties[key] = props_a[key] if key in props_a else props_b[key]

    schema: JsonSchema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _merge_arrays(a: JsonSchema, b: JsonSchema) -> JsonSchema:
    return {"type": "array", "items": merge_schemas(a.get("items") or {}, b.get("items") or {})}


def _merge_strings(a: JsonSchema, b: JsonSchema) -> JsonSchema:
    fmt = a.get("format")
    if fmt and fmt == b.get("format"):
        return {"type": "string", "format": fmt}
    return {"type": "string"}


def _schema_key(schema: JsonSchema) -> str:
    return json.dumps(schema, sort_keys=True)


def _merge_any_of(a: JsonSchema, b: JsonSchema) -> JsonSchema:
    candidates = [*(a.get("anyOf") or [a]), *(b.get("anyOf") or [b])]

    seen: set[str] = set()
    merged: list[JsonSchema] = []
    for candidate in candidates:
        key = _schema_key(candidate)
        if key not in seen:
            seen.add(key)
            merged.append(candidate)

    return merged[0] if len(merged) == 1 else {"anyOf": merged}


def merge_schemas(a: JsonSchema, b: JsonSchema) -> JsonSchema:
    """
    Merge two schemas into one accepting values of both.

    Args:
        a: First schema.
        b: Second schema.

    Returns:
        The merged schema. An empty schema on either side yields the other;
        integer and number collapse to number; other type mismatches become
        a flattened, deduplicated anyOf.
    """
    if not a:
        return b
    if not b:
        return a

    type_a = a.get("type")
    type_b = b.get("type")

    if type_a is not None and type_a == type_b:
        match type_a:
            case "object":
                return _merge_objects(a, b)
            case "array":
                return _merge_arrays(a, b)
            case "string":
                return _merge_strings(a, b)
            case "integer" | "number":
                return {"type": type_a}
            case _:
                return a

    if {type_a, type_b} == {"integer", "number"}:
        return {"type": "number"}

    return _merge_any_of(a, b)


# Injectable wrappers _____________________________________________________________________________

class AbstractSchemaInferrer(ABC):
    """
    Interface for schema inference used by discovery and persistence.
    """

    @abstractmethod
    def infer(self, samples: Iterable[Any]) -> JsonSchema:
        """Infer a JSON Schema from one or more sample values."""
        ...

    @abstractmethod
    def merge(self, a: JsonSchema, b: JsonSchema) -> JsonSchema:
        """Merge two JSON Schemas into one that accepts both."""
        ...


class SchemaInferrer(AbstractSchemaInferrer):
    """
    Default structural inferrer.
    """

    def infer(self, samples: Iterable[Any]) -> JsonSchema:
        return infer_schema(samples)

    def merge(self, a: JsonSchema, b: JsonSchema) -> JsonSchema:
        return merge_schemas(a, b)
