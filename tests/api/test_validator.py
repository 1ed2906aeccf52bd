#!/usr/bin/env python3
"""
Tests for request validation and error normalization.
"""

import pytest

from mock_api.exceptions import MalformedRequestError
from mock_api.validation import (
    RequestValidator, prepare_schema, parse_json_body,
    create_error_response, deduplicate_errors,
)


@pytest.fixture
def schema(widget_spec):
    """Create-widget request schema."""
    return widget_spec["endpoints"][1]["requestSchema"]


class TestPrepareSchema:
    """Test readOnly handling in required lists."""

    def test_read_only_dropped_from_required(self, schema):
        prepared = prepare_schema(schema)
        assert prepared["required"] == ["name"]

    def test_input_not_modified(self, schema):
        prepare_schema(schema)
        assert schema["required"] == ["id", "name"]

    def test_nested_objects_and_items(self):
        schema = {
            "type": "object",
            "properties": {
                "owner": {
                    "type": "object",
                    "required": ["id", "label"],
                    "properties": {"id": {"readOnly": True}, "label": {}},
                },
                "lines": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["id"],
                        "properties": {"id": {"readOnly": True}},
                    },
                },
            },
        }
        prepared = prepare_schema(schema)
        assert prepared["properties"]["owner"]["required"] == ["label"]
        assert prepared["properties"]["lines"]["items"]["required"] == []

    def test_composition_branches(self):
        schema = {
            "allOf": [
                {"type": "object", "required": ["id", "a"],
                 "properties": {"id": {"readOnly": True}, "a": {}}},
            ],
            "oneOf": [
                {"required": ["createdAt"], "properties": {"createdAt": {"readOnly": True}}},
            ],
        }
        prepared = prepare_schema(schema)
        assert prepared["allOf"][0]["required"] == ["a"]
        assert prepared["oneOf"][0]["required"] == []

    def test_non_dict_passthrough(self):
        assert prepare_schema(True) is True


class TestRequestValidator:
    """Test validation results."""

    @pytest.fixture(autouse=True)
    def setup(self, schema):
        self.validator = RequestValidator()
        self.schema = schema

    def validate(self, data, key="widgets-create"):
        return self.validator.validate(data, self.schema, key)

    def test_valid_without_read_only_fields(self):
        result = self.validate({"name": "Gear"})
        assert result.valid is True
        assert result.errors == []

    def test_no_schema_accepts_anything(self):
        assert self.validator.validate({"x": 1}, None, "k").valid is True

    def test_missing_required(self):
        result = self.validate({})
        assert result.valid is False
        assert result.errors == [{"field": "name", "message": "is required"}]

    def test_type_mismatch_includes_value(self):
        result = self.validate({"name": 42})
        assert result.errors == [{"field": "name", "message": "must be string", "value": 42}]

    def test_enum_message(self):
        result = self.validate({"name": "G", "status": "archived"})
        assert result.errors == [{
            "field": "status",
            "message": "must be one of: active, inactive",
            "value": "archived",
        }]

    def test_additional_property(self):
        result = self.validate({"name": "G", "color": "red"})
        assert result.errors == [{"field": "color", "message": "is not allowed (additional property)"}]

    def test_nested_field_path(self):
        result = self.validate({"name": "G", "dimensions": {"width": "wide"}})
        assert result.errors[0]["field"] == "dimensions.width"
        assert result.errors[0]["message"] == "must be number"

    def test_array_item_path(self):
        result = self.validate({"name": "G", "tags": ["ok", 3]})
        assert result.errors[0]["field"] == "tags.1"

    def test_long_values_omitted(self):
        result = self.validate({"name": "G", "price": "x" * 200})
        assert "value" not in result.errors[0]

    def test_format_violation(self):
        schema = {"type": "object", "properties": {"dob": {"type": "string", "format": "date-time"}}}
        result = self.validator.validate({"dob": "not-a-date"}, schema, "persons-create")
        assert result.valid is False
        assert result.errors == [{
            "field": "dob",
            "message": 'must match format "date-time"',
            "value": "not-a-date",
        }]

    def test_valid_date_time(self):
        schema = {"type": "object", "properties": {"dob": {"type": "string", "format": "date-time"}}}
        assert self.validator.validate({"dob": "2024-01-01T00:00:00Z"}, schema, "persons-create").valid is True

    def test_sensitive_values_omitted(self):
        schema = {"type": "object", "properties": {"password": {"type": "string"}}}
        result = self.validator.validate({"password": 12345}, schema, "users-create")
        assert result.errors == [{"field": "password", "message": "must be string"}]

    def test_validators_cached_per_key(self):
        first = self.validator.get_validator("widgets-create", self.schema)
        assert self.validator.get_validator("widgets-create", self.schema) is first
        self.validator.clear()
        assert self.validator.get_validator("widgets-create", self.schema) is not first


class TestErrorHelpers:
    """Test body parsing and error payloads."""

    def test_parse_json_body(self):
        assert parse_json_body(b'{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("raw,message", [
        (b"{not json", "Invalid JSON in request body"),
        (b"[1, 2]", "Request body must be a JSON object"),
        (b"", "Request body must be a JSON object"),
        (b"42", "Request body must be a JSON object"),
    ])
    def test_malformed_bodies(self, raw, message):
        with pytest.raises(MalformedRequestError) as exc_info:
            parse_json_body(raw)
        assert exc_info.value.message == message
        assert exc_info.value.status_code == 400

    def test_error_responses(self):
        errors = [{"field": "a", "message": "is required"}]
        assert create_error_response(errors)["code"] == "VALIDATION_ERROR"
        bad = create_error_response(errors, 400)
        assert bad["code"] == "BAD_REQUEST"
        assert bad["details"] == errors

    def test_deduplicate(self):
        errors = [
            {"field": "a", "message": "is required"},
            {"field": "a", "message": "is required"},
            {"field": "b", "message": "must be string", "value": 1},
            {"field": "b", "message": "must be string", "value": 2},
        ]
        assert deduplicate_errors(errors) == [errors[0], errors[2], errors[3]]
