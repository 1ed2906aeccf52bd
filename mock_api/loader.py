"""
Reads resolved resource specifications from disk.

Each `*.yaml`, `*.yml` or `*.json` file in the specs directory holds one
already-dereferenced resource spec (or a list of them). Files named
`<name>-examples.*` hold seed data and are skipped here.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Union

import yaml

from .models import ResourceSpec

logger = logging.getLogger(__name__)

SPEC_SUFFIXES = (".yaml", ".yml", ".json")
EXAMPLES_MARKER = "-examples"


def read_document(path: Union[str, Path]) -> Any:
    """Parse a YAML or JSON file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def examples_path(specs_dir: Union[str, Path], resource_name: str) -> Path:
    """Location of the seed examples for a resource."""
    specs_dir = Path(specs_dir)
    for suffix in SPEC_SUFFIXES:
        candidate = specs_dir / f"{resource_name}{EXAMPLES_MARKER}{suffix}"
        if candidate.exists():
            return candidate
    return specs_dir / f"{resource_name}{EXAMPLES_MARKER}.yaml"


def load_resource_specs(specs_dir: Union[str, Path]) -> List[ResourceSpec]:
    """
    Load every resource spec in a directory, sorted by file name.

    Files that do not look like resource specs (no `name` or `endpoints`)
    are logged and skipped.
    """
    specs_dir = Path(specs_dir)
    if not specs_dir.is_dir():
        raise FileNotFoundError(f"Specs directory not found: {specs_dir}")

    specs = []
    for path in sorted(specs_dir.iterdir()):
        if path.suffix not in SPEC_SUFFIXES or path.stem.endswith(EXAMPLES_MARKER):
            continue

        content = read_document(path)
        entries = content if isinstance(content, list) else [content]
        for entry in entries:
            if not isinstance(entry, dict) or "name" not in entry or "endpoints" not in entry:
                logger.warning(f"Skipping {path.name}: not a resolved resource spec")
                continue
            specs.append(ResourceSpec.from_dict(entry))

    return specs
