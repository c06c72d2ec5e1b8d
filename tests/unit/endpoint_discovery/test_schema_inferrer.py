"""
tests/unit/endpoint_discovery/test_schema_inferrer.py

Unit tests for JSON Schema inference and merging.
"""

from unsurf.endpoint_discovery.schema_inferrer import SchemaInferrer, infer_schema, merge_schemas


class TestInferSchema:
    """Tests for infer_schema."""

    def test_no_samples(self) -> None:
        """No samples yields the empty schema."""
        assert infer_schema([]) == {}

    def test_primitives(self) -> None:
        """Primitive values map to their JSON types."""
        assert infer_schema([None]) == {"type": "null"}
        assert infer_schema([True]) == {"type": "boolean"}
        assert infer_schema([3]) == {"type": "integer"}
        assert infer_schema([3.5]) == {"type": "number"}
        assert infer_schema([3.0]) == {"type": "integer"}
        assert infer_schema(["plain"]) == {"type": "string"}

    def test_string_formats(self) -> None:
        """Recognized string shapes carry a format."""
        assert infer_schema(["2024-01-15T10:30:00Z"])["format"] == "date-time"
        assert infer_schema(["2024-01-15"])["format"] == "date"
        assert infer_schema(["a@b.com"])["format"] == "email"
        assert infer_schema(["https://example.com/x"])["format"] == "uri"
        assert infer_schema(["550e8400-e29b-41d4-a716-446655440000"])["format"] == "uuid"

    def test_object_required_in_key_order(self) -> None:
        """Every non-null key of a single sample is required, in key order."""
        schema = infer_schema([{"id": 1, "name": "A", "email": "a@b.com"}])
        assert schema["type"] == "object"
        assert schema["required"] == ["id", "name", "email"]
        assert schema["properties"]["email"] == {"type": "string", "format": "email"}

    def test_null_values_not_required(self) -> None:
        """Keys with a null value are present but optional."""
        schema = infer_schema([{"id": 1, "deleted_at": None}])
        assert schema["required"] == ["id"]
        assert schema["properties"]["deleted_at"] == {"type": "null"}

    def test_missing_key_becomes_optional(self) -> None:
        """A key absent from one sample stays in properties but is not required."""
        schema = infer_schema([
            {"id": 1, "name": "A", "email": "a@b.com"},
            {"id": 2, "name": "B"},
        ])
        assert schema["required"] == ["id", "name"]
        assert "email" in schema["properties"]

    def test_array_items_merged(self) -> None:
        """Array item schemas are merged across elements."""
        schema = infer_schema([[{"id": 1, "name": "Alice"}, {"id": 2}]])
        assert schema["type"] == "array"
        assert schema["items"]["required"] == ["id"]

    def test_empty_array(self) -> None:
        """An empty array has unconstrained items."""
        assert infer_schema([[]]) == {"type": "array", "items": {}}


class TestMergeSchemas:
    """Tests for merge_schemas."""

    def test_empty_is_identity(self) -> None:
        """Merging with {} on either side returns the other schema."""
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        assert merge_schemas(schema, {}) == schema
        assert merge_schemas({}, schema) == schema

    def test_integer_and_number(self) -> None:
        """integer and number collapse to number."""
        assert merge_schemas({"type": "integer"}, {"type": "number"}) == {"type": "number"}
        assert merge_schemas({"type": "number"}, {"type": "integer"}) == {"type": "number"}

    def test_required_intersection(self) -> None:
        """A property stays required only when required on both sides."""
        a = {"type": "object", "properties": {"x": {"type": "string"}, "y": {"type": "integer"}}, "required": ["x", "y"]}
        b = {"type": "object", "properties": {"x": {"type": "string"}, "z": {"type": "boolean"}}, "required": ["x", "z"]}
        merged = merge_schemas(a, b)
        assert merged["required"] == ["x"]
        assert list(merged["properties"]) == ["x", "y", "z"]

    def test_no_common_required_drops_key(self) -> None:
        """An empty required intersection omits 'required'."""
        a = {"type": "object", "properties": {"x": {"type": "string"}}, "required": ["x"]}
        b = {"type": "object", "properties": {"y": {"type": "string"}}, "required": ["y"]}
        assert "required" not in merge_schemas(a, b)

    def test_mismatched_formats_dropped(self) -> None:
        """Strings with different formats merge to a plain string."""
        merged = merge_schemas({"type": "string", "format": "email"}, {"type": "string", "format": "uri"})
        assert merged == {"type": "string"}

    def test_type_mismatch_any_of(self) -> None:
        """Unrelated types become anyOf."""
        merged = merge_schemas({"type": "string"}, {"type": "null"})
        assert merged == {"anyOf": [{"type": "string"}, {"type": "null"}]}

    def test_any_of_flattened_and_deduplicated(self) -> None:
        """Merging into an anyOf flattens and skips duplicates."""
        any_of = {"anyOf": [{"type": "string"}, {"type": "null"}]}
        assert merge_schemas(any_of, {"type": "null"}) == any_of
        merged = merge_schemas(any_of, {"type": "boolean"})
        assert merged == {"anyOf": [{"type": "string"}, {"type": "null"}, {"type": "boolean"}]}

    def test_any_of_survives_merge_with_empty(self) -> None:
        """An anyOf schema has no type but is not empty."""
        any_of = {"anyOf": [{"type": "string"}, {"type": "null"}]}
        assert merge_schemas(any_of, {}) == any_of


class TestSchemaInferrer:
    """Tests for the injectable wrapper."""

    def test_delegates(self) -> None:
        """SchemaInferrer uses the module-level functions."""
        inferrer = SchemaInferrer()
        assert inferrer.infer([1]) == {"type": "integer"}
        assert inferrer.merge({"type": "integer"}, {"type": "number"}) == {"type": "number"}
