"""
Schema-driven request validation.
"""

from .validator import (
    RequestValidator,
    ValidationResult,
    create_error_response,
    deduplicate_errors,
    normalize_error,
    parse_json_body,
    prepare_schema,
)

__all__ = [
    'RequestValidator',
    'ValidationResult',
    'create_error_response',
    'deduplicate_errors',
    'normalize_error',
    'parse_json_body',
    'prepare_schema',
]
