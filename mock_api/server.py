"""
FastAPI application factory for the mock API engine.

The app exposes the synthesized resource routes plus:
1. /health for liveness checks
2. /_manifest with resolved resource metadata and registered routes
3. JSON error bodies in the shared `{code, message, details}` shape
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .engine import MockApi
from .exceptions import MockApiError
from .routes import format_route_table, register_all_routes

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    404: ("NOT_FOUND", "The requested endpoint does not exist"),
    405: ("METHOD_NOT_ALLOWED", "The requested method is not supported for this endpoint"),
}


def create_app(api: MockApi) -> FastAPI:
    """
    Build the application for an engine.

    Routes are registered immediately; seeding runs on startup and every
    store is closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Mock API Server...")
        summary = api.initialize()
        for name, count in summary.items():
            logger.info(f"  {name}: {count} resources")
        logger.info("Server ready to accept requests")

        yield

        logger.info("Shutting down Mock API Server...")
        api.close()
        logger.info("Databases closed")

    app = FastAPI(
        title="Mock API Server",
        description="REST mock backend synthesized from resource specifications",
        lifespan=lifespan,
    )
    app.state.api = api

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Location"],
    )

    @app.exception_handler(MockApiError)
    async def mock_api_error_handler(request: Request, exc: MockApiError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(exc.to_response(), status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code, message = HTTP_ERROR_CODES.get(exc.status_code, ("ERROR", str(exc.detail)))
        return JSONResponse({"code": code, "message": message}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": [{"message": str(exc)}],
            },
            status_code=500,
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "apis": [spec.name for spec in api.specs]}

    @app.get("/_manifest")
    async def manifest():
        """Full API metadata for dynamic discovery"""
        return {
            "apis": [spec.to_manifest() for spec in api.specs],
            "routes": app.state.routes,
        }

    app.state.routes = register_all_routes(app, api, api.specs)
    logger.info("Available Endpoints:\n" + format_route_table(app.state.routes, api.base_url or ""))

    return app
