"""
Endpoint synthesis: classification, path conversion and route registration.
"""

from .generator import (
    classify_endpoint,
    convert_path_format,
    format_route_table,
    register_all_routes,
    register_routes,
)

__all__ = [
    'classify_endpoint',
    'convert_path_format',
    'format_route_table',
    'register_all_routes',
    'register_routes',
]
