"""
Search query language for list endpoints.

The `q` parameter is parsed into tokens and compiled into SQLite WHERE
fragments over JSON documents.

Example usage:
    from mock_api.query import parse_query_string, SQLiteQueryBackend

    tokens = parse_query_string('john status:active income:>=1000')
    clauses, params = SQLiteQueryBackend().convert(tokens, ['name.firstName', 'email'])
"""

from .base import (
    TokenType,
    QueryToken,
    QueryBackend,
    parse_term,
    parse_query_string,
    split_query_terms,
)

from .sqlite_backend import SQLiteQueryBackend, is_valid_field_path
from .search import (
    CompiledQuery,
    build_exact_filters,
    build_search_conditions,
    parse_pagination,
)

__all__ = [
    # Parsing
    'TokenType',
    'QueryToken',
    'parse_term',
    'parse_query_string',
    'split_query_terms',

    # Backends
    'QueryBackend',
    'SQLiteQueryBackend',
    'is_valid_field_path',

    # Search assembly
    'CompiledQuery',
    'build_exact_filters',
    'build_search_conditions',
    'parse_pagination',
]
