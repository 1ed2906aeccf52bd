"""
Configuration helpers for the mock API engine.
Supports environment variables for easy deployment configuration.
"""

import os
from typing import Optional, Dict, Any


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


class Config:
    """
    Configuration helper that reads from environment variables.

    Environment variables:
        MOCK_API_DATA_DIR: Directory holding one SQLite file per resource
        MOCK_API_SPECS_DIR: Directory of resolved resource specifications
        MOCK_SERVER_HOST: Bind host (default: localhost)
        MOCK_SERVER_PORT: Bind port (default: 1080)
        MOCK_API_BASE_URL: Base URL used in Location headers
        MOCK_API_SKIP_SEED: Skip loading example data on startup
        MOCK_API_DEBUG_VALIDATION: Log raw schema violations
    """

    DEFAULT_HOST = "localhost"
    DEFAULT_PORT = 1080
    DEFAULT_DATA_DIR = os.path.join("generated", "mock-data")

    @staticmethod
    def from_env() -> Dict[str, Any]:
        """
        Create configuration from environment variables.

        Returns:
            Dict with configuration parameters for MockApi

        Example:
            from mock_api import MockApi
            from mock_api.config import Config

            config = Config.from_env()
            api = MockApi(**config)
        """
        host = os.getenv("MOCK_SERVER_HOST", Config.DEFAULT_HOST)
        port = int(os.getenv("MOCK_SERVER_PORT", str(Config.DEFAULT_PORT)))

        config = {
            "data_dir": os.getenv("MOCK_API_DATA_DIR", Config.DEFAULT_DATA_DIR),
            "specs_dir": os.getenv("MOCK_API_SPECS_DIR"),
            "base_url": os.getenv("MOCK_API_BASE_URL", f"http://{host}:{port}"),
            "seed": not _env_flag("MOCK_API_SKIP_SEED"),
            "debug_validation": _env_flag("MOCK_API_DEBUG_VALIDATION"),
        }

        return config

    @staticmethod
    def server_address() -> Dict[str, Any]:
        """Host and port the development server binds to."""
        return {
            "host": os.getenv("MOCK_SERVER_HOST", Config.DEFAULT_HOST),
            "port": int(os.getenv("MOCK_SERVER_PORT", str(Config.DEFAULT_PORT))),
        }

    @staticmethod
    def for_testing(data_dir: Optional[str] = None) -> Dict[str, Any]:
        """
        Configuration for tests.

        Args:
            data_dir: Directory for database files (default: in-memory databases)

        Returns:
            Configuration dict with seeding disabled
        """
        return {
            "data_dir": data_dir,
            "specs_dir": None,
            "base_url": None,
            "seed": False,
            "debug_validation": False,
        }
