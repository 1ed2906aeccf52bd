#!/usr/bin/env python3
"""
Registry of open document stores, one SQLite database per resource.
"""

import logging
import os
from typing import Dict, Iterable, List, Optional

from .db_helpers import MEMORY_DB, open_connection
from .document_store import DEFAULT_INDEX_PATHS, DocumentStore

logger = logging.getLogger(__name__)


class StoreRegistry:
    """
    Owns every open store.

    Construct once and pass to the components that need storage; call
    close_all() on shutdown.
    """

    def __init__(self, data_dir: Optional[str] = None):
        """
        Args:
            data_dir: Directory for `<resource>.db` files; None keeps
                      every database in memory
        """
        self.data_dir = data_dir
        self._stores: Dict[str, DocumentStore] = {}

    def db_path(self, name: str) -> str:
        if self.data_dir is None:
            return MEMORY_DB
        return os.path.join(self.data_dir, f"{name}.db")

    def get(self, name: str, index_paths: Iterable[str] = ()) -> DocumentStore:
        """
        Get the store for a resource, provisioning it on first use.

        Args:
            name: Resource name
            index_paths: Extra dotted paths to index when provisioning
        """
        store = self._stores.get(name)
        if store is not None:
            return store

        if self.data_dir is not None:
            os.makedirs(self.data_dir, exist_ok=True)

        conn = open_connection(self.db_path(name))
        store = DocumentStore(name, conn, index_paths=[*DEFAULT_INDEX_PATHS, *index_paths])
        try:
            store.provision()
        except Exception:
            conn.close()
            raise

        self._stores[name] = store
        logger.debug(f"Opened store {name} at {self.db_path(name)}")
        return store

    @property
    def names(self) -> List[str]:
        return list(self._stores)

    def close_all(self):
        """Close every open connection."""
        for name, store in list(self._stores.items()):
            try:
                store.conn.close()
            finally:
                del self._stores[name]
        logger.debug("Closed all stores")
