"""
Contract-driven Mock API Engine
Synthesizes REST CRUD+search backends from resolved resource specifications.
"""

from .engine import MockApi
from .models import EndpointDescriptor, EndpointKind, ListResult, PaginationDefaults, ResourceSpec
from .exceptions import (
    MockApiError,
    MalformedRequestError,
    ValidationError,
    NotFoundError,
    UnsupportedEndpointError,
    QueryCompilationError,
    StorageError,
)
from .config import Config
from .server import create_app

__version__ = "1.0.0"

__all__ = [
    "MockApi",
    "create_app",
    "Config",
    "EndpointDescriptor",
    "EndpointKind",
    "ListResult",
    "PaginationDefaults",
    "ResourceSpec",
    "MockApiError",
    "MalformedRequestError",
    "ValidationError",
    "NotFoundError",
    "UnsupportedEndpointError",
    "QueryCompilationError",
    "StorageError",
]
