"""
Exception classes for the mock API engine.
"""

from typing import Any, Dict, List, Optional


class MockApiError(Exception):
    """Base exception for all mock API errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_response(self) -> Dict[str, Any]:
        """Render the error in the shared `{code, message, details}` shape."""
        body = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class MalformedRequestError(MockApiError):
    """Raised when a request body or parameter cannot be parsed."""

    status_code = 400
    code = "BAD_REQUEST"


class ValidationError(MockApiError):
    """Raised when a well-formed payload violates the resource schema."""

    status_code = 422
    code = "VALIDATION_ERROR"


class NotFoundError(MockApiError):
    """Raised when a document id is absent."""

    status_code = 404
    code = "NOT_FOUND"


class UnsupportedEndpointError(MockApiError):
    """Raised when an endpoint descriptor matches none of the generic behaviors."""
    pass


class QueryCompilationError(MockApiError):
    """Raised when a query cannot be compiled to storage predicates."""
    pass


class StorageError(MockApiError):
    """Raised when storage operations fail."""
    pass
