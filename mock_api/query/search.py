"""
Search and filter assembly for list endpoints.

Combines the `q` query language, the legacy `search` parameter and plain
`field=value` filters into one compiled query, and parses pagination.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from .base import parse_query_string
from .sqlite_backend import SQLiteQueryBackend, is_valid_field_path
from ..models import PaginationDefaults

logger = logging.getLogger(__name__)

RESERVED_PARAMETERS = frozenset({"search", "q", "limit", "offset", "page"})


@dataclass
class CompiledQuery:
    """WHERE fragments (AND-ed) plus their positional parameters."""
    where_clauses: List[str] = field(default_factory=list)
    params: List[Any] = field(default_factory=list)

    @property
    def where_sql(self) -> str:
        if not self.where_clauses:
            return ""
        return "WHERE " + " AND ".join(self.where_clauses)

    def extend(self, clauses: List[str], params: List[Any]) -> None:
        self.where_clauses.extend(clauses)
        self.params.extend(params)


def build_exact_filters(filters: Mapping[str, Any],
                        backend: Optional[SQLiteQueryBackend] = None) -> CompiledQuery:
    """
    Exact-match filters, one per key.

    List values match when any element of the stored array equals one of
    them. None and empty-string values are ignored.
    """
    backend = backend or SQLiteQueryBackend()
    compiled = CompiledQuery()

    for key, value in filters.items():
        if key.endswith("[]"):
            key = key[:-2]
        if not is_valid_field_path(key):
            logger.debug("Ignoring filter on unusable field path %r", key)
            continue

        if isinstance(value, (list, tuple)):
            values = [v for v in value if v is not None and v != ""]
            if not values:
                continue
            source = backend.element_source(key)
            parts = [f"EXISTS (SELECT 1 FROM {source} WHERE value = ?)" for _ in values]
            compiled.extend([f"({' OR '.join(parts)})"], values)
        elif value is not None and value != "":
            compiled.extend([f"{backend.field_reference(key)} = ?"], [value])

    return compiled


def build_search_conditions(query_params: Optional[Mapping[str, Any]],
                            searchable_fields: Optional[List[str]] = None) -> CompiledQuery:
    """
    Build search conditions for a list request.

    Args:
        query_params: Request query parameters; repeated keys as lists
        searchable_fields: Fields covered by full-text and `search` terms

    Returns:
        CompiledQuery

    Raises:
        QueryCompilationError: If the `q` expression cannot be compiled
    """
    compiled = CompiledQuery()
    if not isinstance(query_params, Mapping):
        return compiled

    searchable = [f for f in (searchable_fields or []) if is_valid_field_path(f)]
    backend = SQLiteQueryBackend()
    q = _single(query_params.get("q"))

    if q:
        tokens = parse_query_string(q)
        clauses, params = backend.convert(tokens, searchable)
        compiled.extend(clauses, params)
        return compiled

    # `search` and plain field filters only apply when `q` is absent
    search = _single(query_params.get("search"))
    if search and searchable:
        parts = [
            f"LOWER(COALESCE({backend.field_reference(f)}, '')) LIKE LOWER(?)"
            for f in searchable
        ]
        compiled.extend([f"({' OR '.join(parts)})"], [f"%{search}%"] * len(searchable))

    filters = {k: v for k, v in query_params.items() if k not in RESERVED_PARAMETERS}
    exact = build_exact_filters(filters, backend)
    compiled.extend(exact.where_clauses, exact.params)

    return compiled


def _single(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(str(_single(value)).strip())
    except (TypeError, ValueError):
        return None


def parse_pagination(query_params: Optional[Mapping[str, Any]],
                     defaults: Optional[PaginationDefaults] = None) -> Tuple[int, int]:
    """
    Parse `limit` and `offset`.

    Missing, zero or non-numeric values fall back to the defaults; limit is
    clamped to [1, limit_max] and offset to >= 0.

    Returns:
        Tuple of (limit, offset)
    """
    defaults = defaults or PaginationDefaults()
    query_params = query_params if isinstance(query_params, Mapping) else {}

    limit = _to_int(query_params.get("limit")) or defaults.limit_default
    offset = _to_int(query_params.get("offset")) or defaults.offset_default

    limit = max(1, min(limit, defaults.limit_max))
    offset = max(0, offset)
    return limit, offset
