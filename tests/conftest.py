"""
Shared pytest fixtures for mock API tests.
Provides common test infrastructure for all test suites.
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from mock_api import Config, MockApi, create_app
from mock_api.db import StoreRegistry

# Keep test output quiet
import logging
logging.basicConfig(level=logging.CRITICAL)


WIDGET_PROPERTIES = {
    "id": {"type": "string", "readOnly": True},
    "name": {"type": "string"},
    "status": {"type": "string", "enum": ["active", "inactive"]},
    "price": {"type": "number"},
    "tags": {"type": "array", "items": {"type": "string"}},
    "dimensions": {
        "type": "object",
        "properties": {
            "width": {"type": "number"},
            "height": {"type": "number"},
        },
    },
    "createdAt": {"type": "string", "format": "date-time", "readOnly": True},
    "updatedAt": {"type": "string", "format": "date-time", "readOnly": True},
}


def widget_spec_dict():
    """Resolved metadata for a `widgets` resource."""
    create_schema = {
        "type": "object",
        "required": ["id", "name"],
        "properties": WIDGET_PROPERTIES,
        "additionalProperties": False,
    }
    update_schema = {
        "type": "object",
        "properties": WIDGET_PROPERTIES,
        "additionalProperties": False,
    }
    return {
        "name": "widgets",
        "title": "Widgets API",
        "pagination": {"limitDefault": 25, "limitMax": 100, "offsetDefault": 0},
        "searchableFields": ["name", "status"],
        "endpoints": [
            {"path": "/widgets", "method": "get", "operationId": "listWidgets",
             "parameters": [{"name": "q", "in": "query"}]},
            {"path": "/widgets", "method": "post", "operationId": "createWidget",
             "requestSchema": create_schema},
            {"path": "/widgets/{widgetId}", "method": "get", "operationId": "getWidget"},
            {"path": "/widgets/{widgetId}", "method": "patch", "operationId": "updateWidget",
             "requestSchema": update_schema},
            {"path": "/widgets/{widgetId}", "method": "delete", "operationId": "deleteWidget"},
            {"path": "/widgets/{widgetId}", "method": "put", "operationId": "replaceWidget"},
            {"path": "/widgets/{widgetId}/archive", "method": "post", "operationId": "archiveWidget"},
        ],
    }


@pytest.fixture
def widget_spec():
    return widget_spec_dict()


@pytest.fixture
def registry():
    """Provide an in-memory StoreRegistry."""
    registry = StoreRegistry()
    yield registry
    registry.close_all()


@pytest.fixture
def store(registry):
    """Provide an empty in-memory store."""
    return registry.get("widgets", index_paths=["name"])


@pytest.fixture
def api(widget_spec):
    """Provide a MockApi serving widgets from in-memory stores."""
    api_instance = MockApi(specs=[widget_spec], **Config.for_testing())
    yield api_instance
    api_instance.close()


@pytest.fixture
def client(api):
    """Provide a TestClient with the app lifespan running."""
    with TestClient(create_app(api)) as test_client:
        yield test_client
