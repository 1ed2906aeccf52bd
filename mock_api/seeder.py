"""
Data seeder - loads example documents from YAML files into the stores.
"""

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .db.document_store import DocumentStore
from .exceptions import StorageError
from .loader import examples_path, read_document
from .utils.time_utils import format_timestamp

logger = logging.getLogger(__name__)

SEED_BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)
PAYLOAD_MARKERS = ("payload", "create", "update")


def extract_individual_resources(examples: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Pick seedable documents out of an examples mapping.

    List examples (with an `items` list), request payload examples and
    entries without an id are skipped. Results are ordered by example name.
    """
    valid = []
    for key, value in (examples or {}).items():
        if not isinstance(value, dict):
            continue
        if isinstance(value.get("items"), list):
            continue
        lower_key = str(key).lower()
        if any(marker in lower_key for marker in PAYLOAD_MARKERS):
            continue
        if value.get("id"):
            valid.append((str(key), value))

    valid.sort(key=lambda pair: pair[0])
    return [value for _, value in valid]


def seed_database(store: DocumentStore, path: Union[str, Path]) -> int:
    """
    Seed a store from an examples file unless it already has data.

    The first example gets the newest timestamp so it lists first.

    Returns:
        Number of documents in the store after seeding
    """
    existing = store.count()
    if existing > 0:
        logger.info(f"  {store.name} already has {existing} records, skipping seed")
        return existing

    path = Path(path)
    if not path.exists():
        logger.info(f"  No examples file found for {store.name}, store will be empty")
        return 0

    resources = extract_individual_resources(read_document(path) or {})
    if not resources:
        logger.info(f"  No valid resources found in {path.name}")
        return 0

    seeded = 0
    for i, resource in enumerate(resources):
        timestamp = format_timestamp(SEED_BASE_TIME + timedelta(minutes=len(resources) - 1 - i))
        document = dict(resource)
        document["createdAt"] = timestamp
        document["updatedAt"] = timestamp
        try:
            store.insert_with_id(document)
            seeded += 1
        except (StorageError, sqlite3.Error) as e:
            logger.warning(f"  Could not seed {store.name} {resource.get('id')}: {e}")

    logger.info(f"  Seeded {seeded} {store.name} from examples")
    return seeded


def seed_all_databases(api, specs_dir: Union[str, Path]) -> Dict[str, int]:
    """
    Seed every resource the engine serves.

    Returns:
        Summary of {resource name: document count}
    """
    logger.info("Seeding databases from example files...")

    summary = {}
    for spec in api.specs:
        try:
            summary[spec.name] = seed_database(api.store_for(spec), examples_path(specs_dir, spec.name))
        except (OSError, ValueError, yaml.YAMLError, sqlite3.Error, StorageError) as e:
            logger.warning(f"  Could not seed {spec.name}: {e}")
            summary[spec.name] = 0

    logger.info("Database seeding complete")
    return summary


def reset_databases(api, specs_dir: Union[str, Path]) -> Dict[str, int]:
    """Clear every store and seed it again."""
    for spec in api.specs:
        api.store_for(spec).clear()
    return seed_all_databases(api, specs_dir)
