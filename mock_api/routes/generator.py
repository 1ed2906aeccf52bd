"""
Dynamic route generator.
Registers FastAPI routes for resource specifications.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from fastapi import FastAPI

from .handlers import (
    create_create_handler,
    create_delete_handler,
    create_get_handler,
    create_list_handler,
    create_update_handler,
)
from ..exceptions import UnsupportedEndpointError
from ..models import EndpointDescriptor, EndpointKind, RegisteredRoute, ResourceSpec

if TYPE_CHECKING:
    from ..engine import MockApi

logger = logging.getLogger(__name__)

# (method, has path parameter) -> kind
ENDPOINT_KINDS = {
    ("GET", False): EndpointKind.LIST,
    ("GET", True): EndpointKind.GET,
    ("POST", False): EndpointKind.CREATE,
    ("PATCH", True): EndpointKind.UPDATE,
    ("DELETE", True): EndpointKind.DELETE,
}

HANDLER_FACTORIES = {
    EndpointKind.LIST: create_list_handler,
    EndpointKind.GET: create_get_handler,
    EndpointKind.CREATE: create_create_handler,
    EndpointKind.UPDATE: create_update_handler,
    EndpointKind.DELETE: create_delete_handler,
}

# Display order for the startup table
METHOD_ORDER = ("GET", "POST", "PATCH", "DELETE")

OPENAPI_PARAM = re.compile(r"\{([^}]+)\}")


def classify_endpoint(endpoint: EndpointDescriptor) -> EndpointKind:
    """
    Map an endpoint to its generic behavior.

    Raises:
        UnsupportedEndpointError: For PUT, actions, POST on an item path, etc.
    """
    kind = ENDPOINT_KINDS.get((endpoint.method.upper(), endpoint.has_path_parameter))
    if kind is None:
        raise UnsupportedEndpointError(f"Unsupported endpoint {endpoint.method.upper()} {endpoint.path}")
    return kind


def _param_identifier(name: str) -> str:
    ident = re.sub(r"\W", "_", name.strip())
    if not ident or ident[0].isdigit():
        ident = f"p_{ident}"
    return ident


def convert_path_format(path: str) -> Tuple[str, Optional[str]]:
    """
    Convert an OpenAPI path template to the router's syntax.

    Starlette uses `{name}` too but requires identifier names, so
    `/persons/{person-id}` becomes `/persons/{person_id}`.

    Returns:
        Tuple of (router_path, first parameter name or None)
    """
    names: List[str] = []

    def replace(match):
        ident = _param_identifier(match.group(1))
        names.append(ident)
        return "{" + ident + "}"

    router_path = OPENAPI_PARAM.sub(replace, path)
    return router_path, (names[0] if names else None)


def register_routes(app: FastAPI, api: "MockApi", spec: ResourceSpec) -> List[RegisteredRoute]:
    """
    Register routes for one resource specification.

    Args:
        app: FastAPI application
        api: Engine supplying storage and validation
        spec: Resolved resource specification

    Returns:
        The routes that were registered
    """
    registered = []
    logger.info(f"  Registering routes for {spec.title}...")

    for endpoint in spec.endpoints:
        try:
            kind = classify_endpoint(endpoint)
        except UnsupportedEndpointError as e:
            logger.warning(f"    Warning: {e.message}")
            continue

        router_path, param_name = convert_path_format(endpoint.path)
        handler = HANDLER_FACTORIES[kind](api, spec, endpoint, param_name)

        app.add_api_route(
            router_path,
            handler,
            methods=[endpoint.method.upper()],
            name=endpoint.operation_id or f"{spec.name}-{kind.value}",
            summary=endpoint.summary or kind.description,
        )

        route = RegisteredRoute(
            kind=kind,
            method=endpoint.method.upper(),
            path=endpoint.path,
            router_path=router_path,
            operation_id=endpoint.operation_id,
        )
        registered.append(route)
        logger.info(f"    {route.method:<6} {router_path} - {route.description}")

    return registered


def register_all_routes(app: FastAPI, api: "MockApi", specs: List[ResourceSpec]) -> List[Dict[str, Any]]:
    """
    Register routes for every specification.

    Returns:
        Registered endpoints grouped by API, for the startup manifest
    """
    logger.info("Registering API routes...")

    manifest = []
    for spec in specs:
        routes = register_routes(app, api, spec)
        manifest.append({
            "apiName": spec.name,
            "title": spec.title,
            "endpoints": [route.to_dict() for route in routes],
        })

    logger.info("All routes registered")
    return manifest


def format_route_table(manifest: List[Dict[str, Any]], base_url: str = "") -> str:
    """Human-readable endpoint listing grouped by API and method."""
    lines = []
    for api_routes in manifest:
        lines.append(f"{api_routes['title']}:")
        for method in METHOD_ORDER:
            for endpoint in api_routes["endpoints"]:
                if endpoint["method"] == method:
                    lines.append(f"  {method:<6} {base_url}{endpoint['path']}")
    return "\n".join(lines)
