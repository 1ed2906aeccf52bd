#!/usr/bin/env python3
"""
FastAPI Server for the mock API engine
Serves every resolved resource spec found in MOCK_API_SPECS_DIR.

This server:
1. Loads resolved resource specs and seeds their stores from examples
2. Registers list/get/create/update/delete routes per resource
3. Keeps one SQLite database per resource under MOCK_API_DATA_DIR
"""

import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from mock_api import Config, MockApi, create_app

logging.basicConfig(
    level=os.getenv("MOCK_API_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app(MockApi.from_env())


# ==============================================================================
# Development Helpers
# ==============================================================================

if __name__ == "__main__":
    import uvicorn

    address = Config.server_address()
    uvicorn.run(
        "mock_server:app",
        host=address["host"],
        port=address["port"],
        reload=False,
        log_level="info"
    )
