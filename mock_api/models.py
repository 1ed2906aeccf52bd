"""
Data models for resource specifications, endpoints and list results.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

PATH_PARAM_PATTERN = re.compile(r"\{([^}]+)\}")

# Used when a list endpoint declares a search parameter but the resource spec does
# not name its searchable fields.
DEFAULT_SEARCHABLE_FIELDS = ["name.firstName", "name.lastName", "email"]

SEARCH_PARAMETERS = ("search", "q")


class EndpointKind(Enum):
    """The generic behaviors an endpoint can be synthesized into."""
    LIST = "list"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def description(self) -> str:
        return {
            EndpointKind.LIST: "List/search resources",
            EndpointKind.GET: "Get resource by ID",
            EndpointKind.CREATE: "Create resource",
            EndpointKind.UPDATE: "Update resource",
            EndpointKind.DELETE: "Delete resource",
        }[self]


@dataclass
class PaginationDefaults:
    """Pagination settings declared by a resource spec."""
    limit_default: int = 25
    limit_max: int = 100
    offset_default: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PaginationDefaults":
        data = data or {}
        return cls(
            limit_default=int(data.get("limitDefault") or data.get("limit") or 25),
            limit_max=int(data.get("limitMax") or 100),
            offset_default=int(data.get("offsetDefault") or data.get("offset") or 0),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "limitDefault": self.limit_default,
            "limitMax": self.limit_max,
            "offsetDefault": self.offset_default,
        }


@dataclass
class EndpointDescriptor:
    """
    One declared endpoint of a resource, with schemas already dereferenced.
    """
    path: str
    method: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    request_schema: Optional[Dict[str, Any]] = None
    response_schema: Optional[Dict[str, Any]] = None
    error_schemas: Dict[str, Any] = field(default_factory=dict)
    parameters: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndpointDescriptor":
        return cls(
            path=data["path"],
            method=str(data["method"]).upper(),
            operation_id=data.get("operationId"),
            summary=data.get("summary"),
            request_schema=data.get("requestSchema"),
            response_schema=data.get("responseSchema"),
            error_schemas=data.get("errorSchemas") or {},
            parameters=data.get("parameters") or [],
        )

    @property
    def has_path_parameter(self) -> bool:
        return "{" in self.path and "}" in self.path

    @property
    def path_parameter(self) -> Optional[str]:
        """Name of the first path parameter, e.g. `personId` in `/persons/{personId}`."""
        match = PATH_PARAM_PATTERN.search(self.path)
        return match.group(1) if match else None

    @property
    def query_parameter_names(self) -> List[str]:
        return [p.get("name") for p in self.parameters if p.get("in") == "query"]


@dataclass
class ResourceSpec:
    """
    Resolved specification of one resource (one API).
    """
    name: str
    title: str
    endpoints: List[EndpointDescriptor] = field(default_factory=list)
    pagination: PaginationDefaults = field(default_factory=PaginationDefaults)
    searchable_fields: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceSpec":
        """
        Build a spec from dereferenced metadata.

        Expected keys: `name`, `title`, `endpoints`, optional `pagination`
        and `searchableFields`.
        """
        endpoints = [EndpointDescriptor.from_dict(e) for e in data.get("endpoints") or []]

        searchable = data.get("searchableFields")
        if searchable is None:
            searchable = []
            for endpoint in endpoints:
                if endpoint.method == "GET" and not endpoint.has_path_parameter and \
                        any(p in SEARCH_PARAMETERS for p in endpoint.query_parameter_names):
                    searchable = list(DEFAULT_SEARCHABLE_FIELDS)
                    break

        return cls(
            name=data["name"],
            title=data.get("title") or data["name"],
            endpoints=endpoints,
            pagination=PaginationDefaults.from_dict(data.get("pagination")),
            searchable_fields=list(searchable),
            metadata=dict(data),
        )

    def to_manifest(self) -> Dict[str, Any]:
        """Metadata served from the manifest endpoint."""
        manifest = dict(self.metadata)
        manifest.update({
            "name": self.name,
            "title": self.title,
            "pagination": self.pagination.to_dict(),
            "searchableFields": list(self.searchable_fields),
        })
        return manifest


@dataclass
class ListResult:
    """One page of a list/search query."""
    items: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int

    @property
    def has_next(self) -> bool:
        return self.offset + self.limit < self.total

    @classmethod
    def empty(cls, limit: int, offset: int) -> "ListResult":
        return cls(items=[], total=0, limit=limit, offset=offset)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "hasNext": self.has_next,
        }


@dataclass
class RegisteredRoute:
    """A route the synthesizer registered, kept for the startup manifest."""
    kind: EndpointKind
    method: str
    path: str
    router_path: str
    operation_id: Optional[str] = None

    @property
    def description(self) -> str:
        return self.kind.description

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "routerPath": self.router_path,
            "description": self.description,
            "operationId": self.operation_id,
        }
