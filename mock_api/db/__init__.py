"""
Database module for the mock API engine
Handles per-resource SQLite document storage
"""

from .document_store import DocumentStore
from .merge import deep_merge
from .registry import StoreRegistry

__all__ = ['DocumentStore', 'StoreRegistry', 'deep_merge']
