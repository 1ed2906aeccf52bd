"""
Request handlers for the five generic endpoint kinds.

Each factory closes over the resource spec and endpoint it serves and
returns an async Starlette handler. Only the body read is awaited; the
validation, query and storage work runs synchronously.
"""

import logging
from typing import Any, Dict, Optional, TYPE_CHECKING

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from ..exceptions import NotFoundError, QueryCompilationError, ValidationError
from ..models import EndpointDescriptor, ListResult, ResourceSpec
from ..query import build_search_conditions, parse_pagination
from ..validation import create_error_response, parse_json_body

if TYPE_CHECKING:
    from ..engine import MockApi

logger = logging.getLogger(__name__)


def query_params_to_dict(query_params) -> Dict[str, Any]:
    """Flatten Starlette query params; repeated keys become lists."""
    result: Dict[str, Any] = {}
    for key, value in query_params.multi_items():
        if key in result:
            current = result[key]
            result[key] = current + [value] if isinstance(current, list) else [current, value]
        elif key.endswith("[]"):
            result[key] = [value]
        else:
            result[key] = value
    return result


def not_found_label(param_name: Optional[str]) -> str:
    """`personId` -> `Person`."""
    if not param_name:
        return "Resource"
    label = param_name[:-2] if param_name.endswith("Id") and len(param_name) > 2 else param_name
    return label[:1].upper() + label[1:]


def _path_value(request: Request, param_name: Optional[str]) -> str:
    if param_name and param_name in request.path_params:
        return request.path_params[param_name]
    return request.path_params.get("id", "")


def _validate_body(api: "MockApi", spec: ResourceSpec, endpoint: EndpointDescriptor,
                   body: Dict[str, Any], operation: str):
    if not endpoint.request_schema:
        return
    result = api.validator.validate(body, endpoint.request_schema, f"{spec.name}-{operation}")
    if not result.valid:
        payload = create_error_response(result.errors, 422)
        raise ValidationError(payload["message"], payload["details"])


def create_list_handler(api: "MockApi", spec: ResourceSpec, endpoint: EndpointDescriptor,
                        param_name: Optional[str] = None):
    """GET /resources"""
    async def handler(request: Request) -> Response:
        params = query_params_to_dict(request.query_params)
        limit, offset = parse_pagination(params, spec.pagination)

        try:
            compiled = build_search_conditions(params, spec.searchable_fields)
        except QueryCompilationError as e:
            logger.warning(f"Query for {spec.name} could not be compiled: {e}")
            return JSONResponse(ListResult.empty(limit, offset).to_dict())

        result = api.store_for(spec).search(compiled, limit=limit, offset=offset)
        return JSONResponse(result.to_dict())

    return handler


def create_get_handler(api: "MockApi", spec: ResourceSpec, endpoint: EndpointDescriptor,
                       param_name: Optional[str] = None):
    """GET /resources/{id}"""
    label = not_found_label(endpoint.path_parameter)

    async def handler(request: Request) -> Response:
        document = api.store_for(spec).find_by_id(_path_value(request, param_name))
        if document is None:
            raise NotFoundError(f"{label} not found")
        return JSONResponse(document)

    return handler


def create_create_handler(api: "MockApi", spec: ResourceSpec, endpoint: EndpointDescriptor,
                          param_name: Optional[str] = None):
    """POST /resources"""
    async def handler(request: Request) -> Response:
        body = parse_json_body(await request.body())
        _validate_body(api, spec, endpoint, body, "create")

        document = api.store_for(spec).create(body)

        base_url = api.base_url or str(request.base_url).rstrip("/")
        location = f"{base_url}{endpoint.path.rstrip('/')}/{document['id']}"
        return JSONResponse(document, status_code=201, headers={"Location": location})

    return handler


def create_update_handler(api: "MockApi", spec: ResourceSpec, endpoint: EndpointDescriptor,
                          param_name: Optional[str] = None):
    """PATCH /resources/{id}"""
    label = not_found_label(endpoint.path_parameter)

    async def handler(request: Request) -> Response:
        doc_id = _path_value(request, param_name)
        body = parse_json_body(await request.body())
        _validate_body(api, spec, endpoint, body, "update")

        document = api.store_for(spec).update(doc_id, body)
        if document is None:
            raise NotFoundError(f"{label} not found")
        return JSONResponse(document)

    return handler


def create_delete_handler(api: "MockApi", spec: ResourceSpec, endpoint: EndpointDescriptor,
                          param_name: Optional[str] = None):
    """DELETE /resources/{id}"""
    label = not_found_label(endpoint.path_parameter)

    async def handler(request: Request) -> Response:
        if not api.store_for(spec).delete(_path_value(request, param_name)):
            raise NotFoundError(f"{label} not found")
        return Response(status_code=204)

    return handler
