#!/usr/bin/env python3
"""
SQLite backend for the search query language.
Converts parsed tokens to WHERE fragments over a JSON document column.
"""

import logging
import re
from typing import Any, List, Optional, Tuple

from .base import QueryBackend, QueryToken, TokenType
from ..exceptions import QueryCompilationError

logger = logging.getLogger(__name__)

# Field paths are the only caller-supplied text spliced into SQL
FIELD_PATH_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+(\.[A-Za-z0-9_\-]+)*$")


def is_valid_field_path(field: Any) -> bool:
    """Check that a dotted field path is safe to embed in a JSON path literal."""
    return isinstance(field, str) and bool(FIELD_PATH_PATTERN.match(field))


class SQLiteQueryBackend(QueryBackend):
    """
    Converts query tokens to SQLite WHERE clauses.
    Documents live as JSON text in a single column and are addressed with
    json_extract(); every value is bound as a positional parameter.
    """

    COMPARISON_OPERATORS = {
        TokenType.GREATER_THAN: ">",
        TokenType.GREATER_THAN_OR_EQUAL: ">=",
        TokenType.LESS_THAN: "<",
        TokenType.LESS_THAN_OR_EQUAL: "<=",
    }

    LIKE_PATTERNS = {
        TokenType.FULL_TEXT_CONTAINS: "%{}%",
        TokenType.FULL_TEXT_STARTS_WITH: "{}%",
        TokenType.FULL_TEXT_ENDS_WITH: "%{}",
        TokenType.CONTAINS: "%{}%",
        TokenType.STARTS_WITH: "{}%",
        TokenType.ENDS_WITH: "%{}",
    }

    def __init__(self, data_column: str = "data"):
        """
        Initialize SQLite backend.

        Args:
            data_column: Name of the JSON document column
        """
        self.data_column = data_column
        self.params: List[Any] = []

    def convert(self, tokens: List[QueryToken],
                searchable_fields: Optional[List[str]] = None) -> Tuple[List[str], List[Any]]:
        """
        Convert tokens to WHERE clauses.

        Args:
            tokens: Parsed query tokens
            searchable_fields: Field paths searched by full-text terms

        Returns:
            Tuple of (where_clauses, params); clauses are meant to be AND-ed

        Raises:
            QueryCompilationError: If a token cannot be compiled
        """
        searchable = [f for f in (searchable_fields or []) if is_valid_field_path(f)]
        clauses = []
        self.params = []

        for token in tokens:
            try:
                clause = self._convert_token(token, searchable)
            except (TypeError, ValueError, AttributeError) as e:
                raise QueryCompilationError(f"Cannot compile query term on {token.field!r}: {e}") from e
            if clause:
                clauses.append(clause)

        return clauses, self.params

    def supports_token_type(self, token_type: TokenType) -> bool:
        """Every token type has an SQLite rendering."""
        return isinstance(token_type, TokenType)

    def field_reference(self, field: str) -> str:
        """json_extract() expression for a dotted field path."""
        return f"json_extract({self.data_column}, '$.{field}')"

    def element_source(self, field: str) -> str:
        """json_each() source over the value at a path; a scalar yields one row."""
        return f"json_each({self.data_column}, '$.{field}')"

    def _text_reference(self, field: str) -> str:
        return f"LOWER(COALESCE({self.field_reference(field)}, ''))"

    def _convert_token(self, token: QueryToken, searchable: List[str]) -> Optional[str]:
        """Convert a single token; returns None for tokens that match nothing useful."""
        token_type = token.type

        if token_type.is_full_text:
            return self._build_full_text(token_type, token.value, searchable)

        if not is_valid_field_path(token.field):
            logger.debug("Dropping query term with unusable field path %r", token.field)
            return None

        field_ref = self.field_reference(token.field)
        value = token.value

        if token_type == TokenType.EXACT:
            self.params.append(value)
            return f"{field_ref} = ?"

        elif token_type == TokenType.NOT_EQUAL:
            self.params.append(value)
            return f"({field_ref} IS NULL OR {field_ref} != ?)"

        elif token_type in self.COMPARISON_OPERATORS:
            self.params.append(value)
            return f"CAST({field_ref} AS REAL) {self.COMPARISON_OPERATORS[token_type]} ?"

        elif token_type in self.LIKE_PATTERNS:
            self.params.append(self.LIKE_PATTERNS[token_type].format(value))
            return f"{self._text_reference(token.field)} LIKE LOWER(?)"

        elif token_type == TokenType.IN:
            return self._build_in(field_ref, self.element_source(token.field), value)

        elif token_type == TokenType.NOT_IN:
            return self._build_not_in(field_ref, self.element_source(token.field), value)

        elif token_type == TokenType.EXISTS:
            return f"{field_ref} IS NOT NULL"

        elif token_type == TokenType.NOT_EXISTS:
            return f"{field_ref} IS NULL"

        return None

    def _build_full_text(self, token_type: TokenType, value: Any, searchable: List[str]) -> Optional[str]:
        """OR the same condition across all searchable fields."""
        if not searchable:
            return None

        if token_type == TokenType.FULL_TEXT:
            parts = [f"{self._text_reference(f)} = LOWER(?)" for f in searchable]
            param = value
        else:
            parts = [f"{self._text_reference(f)} LIKE LOWER(?)" for f in searchable]
            param = self.LIKE_PATTERNS[token_type].format(value)

        self.params.extend([param] * len(searchable))
        return f"({' OR '.join(parts)})"

    def _build_in(self, field_ref: str, elements: str, values: List[Any]) -> Optional[str]:
        """
        Match scalar fields by direct equality and array fields by any element.
        """
        if not isinstance(values, list):
            values = [values]
        if not values:
            return "0=1"

        placeholders = ", ".join("?" for _ in values)
        direct = f"{field_ref} IN ({placeholders})"
        element = " OR ".join(
            f"EXISTS (SELECT 1 FROM {elements} WHERE value = ?)"
            for _ in values
        )

        self.params.extend(values)
        self.params.extend(values)
        return f"({direct} OR {element})"

    def _build_not_in(self, field_ref: str, elements: str, values: List[Any]) -> Optional[str]:
        """
        Exclude scalar fields equal to a value and array fields holding one.
        Missing fields count as not being a member.
        """
        if not isinstance(values, list):
            values = [values]
        if not values:
            return None

        placeholders = ", ".join("?" for _ in values)
        self.params.extend(values)
        self.params.extend(values)
        return (
            f"({field_ref} IS NULL OR ({field_ref} NOT IN ({placeholders}) AND "
            f"NOT EXISTS (SELECT 1 FROM {elements} WHERE value IN ({placeholders}))))"
        )
