"""
Request validation against JSON Schema.

Validators are compiled once per (resource, operation) key. Violations are
normalized into `{field, message, value?}` entries and deduplicated.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.validators import validator_for

from ..exceptions import MalformedRequestError

logger = logging.getLogger(__name__)

COMPOSITION_KEYWORDS = ("allOf", "anyOf", "oneOf")
SENSITIVE_FIELD_MARKERS = ("password", "token")
MAX_VALUE_LENGTH = 100


@dataclass
class ValidationResult:
    valid: bool
    errors: List[Dict[str, Any]] = field(default_factory=list)


def prepare_schema(schema: Any) -> Any:
    """
    Prepare a schema for request validation.

    Server-assigned (readOnly) properties are dropped from every `required`
    list, including nested objects, array items and allOf/anyOf/oneOf
    branches. The input is not modified.
    """
    if not isinstance(schema, dict):
        return schema

    prepared = dict(schema)

    properties = prepared.get("properties")
    if isinstance(properties, dict):
        properties = {
            name: prepare_schema(prop) for name, prop in properties.items()
        }
        prepared["properties"] = properties

        required = prepared.get("required")
        if isinstance(required, list):
            prepared["required"] = [
                name for name in required
                if not (isinstance(properties.get(name), dict) and properties[name].get("readOnly"))
            ]

    if isinstance(prepared.get("items"), dict):
        prepared["items"] = prepare_schema(prepared["items"])

    for keyword in COMPOSITION_KEYWORDS:
        if isinstance(prepared.get(keyword), list):
            prepared[keyword] = [prepare_schema(s) for s in prepared[keyword]]

    return prepared


def parse_json_body(raw: Any) -> Dict[str, Any]:
    """
    Decode a request body that must be a JSON object.

    Raises:
        MalformedRequestError: If the body is empty, not JSON, or not an object
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRequestError(
                "Invalid JSON in request body",
                [{"field": "body", "message": str(e)}],
            ) from e

    if isinstance(raw, str):
        if not raw.strip():
            raise MalformedRequestError(
                "Request body must be a JSON object",
                [{"field": "body", "message": "must be object"}],
            )
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MalformedRequestError(
                "Invalid JSON in request body",
                [{"field": "body", "message": str(e)}],
            ) from e

    if not isinstance(raw, dict):
        raise MalformedRequestError(
            "Request body must be a JSON object",
            [{"field": "body", "message": "must be object"}],
        )
    return raw


def create_error_response(errors: List[Dict[str, Any]], status_code: int = 422) -> Dict[str, Any]:
    """Error body for a 400 or 422 response."""
    if status_code == 400:
        return {
            "code": "BAD_REQUEST",
            "message": "The request is malformed or contains invalid parameters",
            "details": errors,
        }
    return {
        "code": "VALIDATION_ERROR",
        "message": "The request contains invalid data",
        "details": errors,
    }


def _field_path(path) -> str:
    return ".".join(str(p) for p in path)


def _join(base: str, name: str) -> str:
    return f"{base}.{name}" if base else name


def _additional_properties(instance: Dict[str, Any], schema: Dict[str, Any]) -> List[str]:
    properties = schema.get("properties") or {}
    patterns = schema.get("patternProperties") or {}
    return [
        name for name in instance
        if name not in properties and not any(re.search(p, name) for p in patterns)
    ]


def _include_value(field_name: str, value: Any) -> bool:
    lowered = field_name.lower()
    if any(marker in lowered for marker in SENSITIVE_FIELD_MARKERS):
        return False
    try:
        return len(json.dumps(value)) < MAX_VALUE_LENGTH
    except (TypeError, ValueError):
        return False


def normalize_error(error) -> List[Dict[str, Any]]:
    """
    Convert one jsonschema error into response entries.

    A single `required` or `additionalProperties` violation can name
    several properties, so this returns a list.
    """
    base = _field_path(error.absolute_path)
    keyword = error.validator

    if keyword == "additionalProperties" and isinstance(error.instance, dict):
        extras = _additional_properties(error.instance, error.schema)
        if extras:
            return [
                {"field": _join(base, name), "message": "is not allowed (additional property)"}
                for name in extras
            ]
        return [{"field": base or "body", "message": "must not have additional properties"}]

    if keyword == "required" and isinstance(error.instance, dict):
        missing = [name for name in error.validator_value if name not in error.instance]
        return [{"field": _join(base, name), "message": "is required"} for name in missing]

    if keyword == "enum":
        allowed = ", ".join(str(v) for v in error.validator_value)
        message = f"must be one of: {allowed}"
    elif keyword == "type":
        expected = error.validator_value
        if isinstance(expected, list):
            expected = ",".join(expected)
        message = f"must be {expected}"
    elif keyword == "format":
        message = f'must match format "{error.validator_value}"'
    else:
        message = error.message or "validation error"

    entry = {"field": base or "body", "message": message}
    if _include_value(entry["field"], error.instance):
        entry["value"] = error.instance
    return [entry]


def deduplicate_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop repeated (field, message, value) entries, keeping first occurrences."""
    unique = []
    seen = set()
    for error in errors:
        key: Tuple[Any, ...] = (error.get("field"), error.get("message"))
        if "value" in error:
            key += (json.dumps(error["value"], sort_keys=True, default=str),)
        if key not in seen:
            seen.add(key)
            unique.append(error)
    return unique


class RequestValidator:
    """
    Validates request payloads, caching compiled validators per key.
    """

    def __init__(self, debug: bool = False):
        """
        Args:
            debug: Log raw schema violations before normalization
        """
        self.debug = debug
        self._validators: Dict[str, Any] = {}

    def get_validator(self, key: str, schema: Dict[str, Any]):
        """Get or compile the validator cached under `key`."""
        validator = self._validators.get(key)
        if validator is None:
            prepared = prepare_schema(schema)
            cls = validator_for(prepared, default=Draft202012Validator)
            validator = cls(prepared, format_checker=FormatChecker())
            self._validators[key] = validator
        return validator

    def validate(self, data: Any, schema: Optional[Dict[str, Any]], key: str) -> ValidationResult:
        """
        Validate data against a schema.

        Args:
            data: Decoded request body
            schema: JSON Schema, or None to accept anything
            key: Cache key, e.g. "persons-create"

        Returns:
            ValidationResult with normalized, deduplicated errors
        """
        if not schema:
            return ValidationResult(valid=True)

        raw_errors = list(self.get_validator(key, schema).iter_errors(data))
        if not raw_errors:
            return ValidationResult(valid=True)

        if self.debug:
            logger.debug(
                "Validation failed for %s: %s", key,
                [(list(e.absolute_path), e.validator, e.message) for e in raw_errors],
            )

        errors = []
        for error in raw_errors:
            errors.extend(normalize_error(error))

        return ValidationResult(valid=False, errors=deduplicate_errors(errors))

    def clear(self):
        """Forget compiled validators."""
        self._validators.clear()
