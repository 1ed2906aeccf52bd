#!/usr/bin/env python3
"""
Query string parser for the `q` search parameter.

Supports an Elasticsearch-style syntax:
    term                 full-text exact match
    *term*               full-text contains
    term*                full-text starts with
    *term                full-text ends with
    field:value          exact match
    field:*value*        contains (case-insensitive)
    field:value*         starts with
    field:*value         ends with
    field:>value         greater than (also >=, <, <=)
    field:val1,val2      match any
    -field:value         exclude
    field:*              field exists
    -field:*             field does not exist
    term1 term2          all terms must match
    field.nested:value   nested field (dot notation)

Parsing never raises: malformed or empty terms are dropped.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple, Union


class TokenType(Enum):
    """Kinds of parsed search terms."""
    FULL_TEXT = "fullText"
    FULL_TEXT_CONTAINS = "fullTextContains"
    FULL_TEXT_STARTS_WITH = "fullTextStartsWith"
    FULL_TEXT_ENDS_WITH = "fullTextEndsWith"
    EXACT = "exact"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    IN = "in"
    NOT_EQUAL = "neq"
    NOT_IN = "notIn"
    EXISTS = "exists"
    NOT_EXISTS = "notExists"

    @property
    def is_full_text(self) -> bool:
        return self in FULL_TEXT_TYPES


FULL_TEXT_TYPES = frozenset({
    TokenType.FULL_TEXT,
    TokenType.FULL_TEXT_CONTAINS,
    TokenType.FULL_TEXT_STARTS_WITH,
    TokenType.FULL_TEXT_ENDS_WITH,
})

# Types whose values are opportunistically parsed as numbers
NUMERIC_TYPES = frozenset({
    TokenType.EXACT,
    TokenType.NOT_EQUAL,
    TokenType.GREATER_THAN,
    TokenType.GREATER_THAN_OR_EQUAL,
    TokenType.LESS_THAN,
    TokenType.LESS_THAN_OR_EQUAL,
})

# Longest prefix first
COMPARISON_PREFIXES = (
    (">=", TokenType.GREATER_THAN_OR_EQUAL),
    (">", TokenType.GREATER_THAN),
    ("<=", TokenType.LESS_THAN_OR_EQUAL),
    ("<", TokenType.LESS_THAN),
)


@dataclass
class QueryToken:
    """
    One parsed search term.
    """
    type: TokenType
    field: Optional[str]  # None for full-text terms
    value: Any

    def __repr__(self):
        if self.field:
            return f"{self.field} {self.type.value} {self.value!r}"
        return f"{self.type.value}: {self.value!r}"


def parse_numeric_value(value: Any) -> Optional[Union[int, float]]:
    """Return `value` as an int or float when it looks numeric, else None."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _parse_wildcard(value: str, full_text: bool) -> Tuple[TokenType, str]:
    leading = value.startswith("*")
    trailing = value.endswith("*")

    clean = value
    if leading:
        clean = clean[1:]
    if trailing and clean.endswith("*"):
        clean = clean[:-1]

    if leading and trailing:
        return (TokenType.FULL_TEXT_CONTAINS if full_text else TokenType.CONTAINS), clean
    if leading:
        return (TokenType.FULL_TEXT_ENDS_WITH if full_text else TokenType.ENDS_WITH), clean
    if trailing:
        return (TokenType.FULL_TEXT_STARTS_WITH if full_text else TokenType.STARTS_WITH), clean
    return (TokenType.FULL_TEXT if full_text else TokenType.EXACT), clean


def parse_term(term: Any) -> Optional[QueryToken]:
    """
    Parse a single search term such as `status:approved` or `-email:*`.

    Args:
        term: One whitespace-free (or previously quoted) term

    Returns:
        QueryToken, or None when the term is empty or not a string
    """
    if not isinstance(term, str):
        return None

    term = term.strip()
    if not term:
        return None

    negated = term.startswith("-")
    if negated:
        term = term[1:]
        if not term:
            return None

    colon = term.find(":")

    if colon == -1:
        # Negated full text keeps the marker in the value; the compiler
        # does not interpret it.
        token_type, value = _parse_wildcard(term, full_text=True)
        return QueryToken(token_type, None, f"-{value}" if negated else value)

    field = term[:colon]
    value = term[colon + 1:]
    if not field:
        return None

    if value == "*":
        return QueryToken(TokenType.NOT_EXISTS if negated else TokenType.EXISTS, field, None)

    token_type = TokenType.EXACT
    for prefix, comparison in COMPARISON_PREFIXES:
        if value.startswith(prefix):
            token_type = comparison
            value = value[len(prefix):]
            break

    if "," in value:
        values = [v.strip() for v in value.split(",") if v.strip()]
        if not values:
            return None
        return QueryToken(TokenType.NOT_IN if negated else TokenType.IN, field, values)

    if token_type == TokenType.EXACT:
        token_type, value = _parse_wildcard(value, full_text=False)
        if negated and token_type == TokenType.EXACT:
            token_type = TokenType.NOT_EQUAL

    if token_type in NUMERIC_TYPES:
        number = parse_numeric_value(value)
        if number is not None:
            value = number

    return QueryToken(token_type, field, value)


def split_query_terms(query_string: str) -> List[str]:
    """Split on spaces, keeping single- or double-quoted runs together."""
    terms = []
    current = []
    quote_char = None

    for char in query_string:
        if quote_char is None and char in ('"', "'"):
            quote_char = char
        elif char == quote_char:
            quote_char = None
        elif char == " " and quote_char is None:
            if "".join(current).strip():
                terms.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    if "".join(current).strip():
        terms.append("".join(current).strip())

    return terms


def parse_query_string(query_string: Any) -> List[QueryToken]:
    """
    Parse a full `q` value into tokens that are AND-ed together.

    Args:
        query_string: Raw query text

    Returns:
        List of tokens; malformed terms are silently dropped
    """
    if not isinstance(query_string, str) or not query_string:
        return []

    tokens = []
    for term in split_query_terms(query_string):
        token = parse_term(term)
        if token is not None:
            tokens.append(token)
    return tokens


class QueryBackend(ABC):
    """
    Abstract base class for query backends.
    Each storage engine implements this to turn parsed tokens into its
    native predicate format.
    """

    @abstractmethod
    def convert(self, tokens: List[QueryToken], searchable_fields: List[str]) -> Any:
        """
        Convert tokens to the backend's native format.

        Args:
            tokens: Parsed query tokens
            searchable_fields: Field paths eligible for full-text terms

        Returns:
            Backend-specific query object
        """
        pass

    @abstractmethod
    def supports_token_type(self, token_type: TokenType) -> bool:
        """Check if this backend can compile a token type."""
        pass
