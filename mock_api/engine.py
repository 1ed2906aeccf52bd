"""
Mock API engine that ties storage, validation and resource specs together.
This is the main entry point for serving resources without per-resource code.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import Config
from .db import DocumentStore, StoreRegistry
from .loader import load_resource_specs
from .models import ResourceSpec
from .seeder import reset_databases, seed_all_databases
from .validation import RequestValidator

logger = logging.getLogger(__name__)


class MockApi:
    """
    Brings together the components that back the synthesized endpoints.

    This class provides a single interface for:
    - Per-resource document stores (via an explicit StoreRegistry)
    - Cached request validators
    - The resolved resource specifications being served
    - Seeding from example files
    """

    def __init__(self,
                 specs: Optional[Iterable[Union[ResourceSpec, Dict[str, Any]]]] = None,
                 data_dir: Optional[str] = None,
                 specs_dir: Optional[str] = None,
                 base_url: Optional[str] = None,
                 seed: bool = True,
                 debug_validation: bool = False):
        """
        Initialize the engine.

        Args:
            specs: Resolved resource specs (objects or metadata dicts)
            data_dir: Directory for SQLite files (None keeps data in memory)
            specs_dir: Directory to load specs and examples from when
                       `specs` is not given
            base_url: Prefix for Location headers (default: request base URL)
            seed: Seed stores from `<name>-examples.yaml` on initialize()
            debug_validation: Log raw schema violations
        """
        self.data_dir = data_dir
        self.specs_dir = specs_dir
        self.base_url = base_url.rstrip("/") if base_url else None
        self.seed = seed

        if specs is None:
            specs = load_resource_specs(specs_dir) if specs_dir else []
        self.specs: List[ResourceSpec] = [
            s if isinstance(s, ResourceSpec) else ResourceSpec.from_dict(s) for s in specs
        ]

        self.registry = StoreRegistry(data_dir)
        self.validator = RequestValidator(debug=debug_validation)

    @classmethod
    def from_env(cls, specs: Optional[Iterable[Union[ResourceSpec, Dict[str, Any]]]] = None):
        """
        Create an engine from environment variables.

        Uses Config helper to read environment variables.
        """
        return cls(specs=specs, **Config.from_env())

    def initialize(self) -> Dict[str, int]:
        """
        Provision every store and seed it from examples when enabled.

        Returns:
            Summary of {resource name: document count}
        """
        if self.seed and self.specs_dir:
            return seed_all_databases(self, self.specs_dir)
        return {spec.name: self.store_for(spec).count() for spec in self.specs}

    def reset(self) -> Dict[str, int]:
        """Clear every store, then reseed from examples if a specs dir is known."""
        if self.specs_dir:
            return reset_databases(self, self.specs_dir)
        for spec in self.specs:
            self.store_for(spec).clear()
        return {spec.name: 0 for spec in self.specs}

    def close(self):
        """Close all connections."""
        self.registry.close_all()

    def get_spec(self, name: str) -> Optional[ResourceSpec]:
        for spec in self.specs:
            if spec.name == name:
                return spec
        return None

    def store_for(self, spec: Union[ResourceSpec, str]) -> DocumentStore:
        """Store backing a resource; searchable fields are indexed on first use."""
        if isinstance(spec, str):
            spec = self.get_spec(spec) or ResourceSpec(name=spec, title=spec)
        return self.registry.get(spec.name, index_paths=spec.searchable_fields)
