#!/usr/bin/env python3
"""
Document store for one resource.
Each resource lives in its own SQLite database as JSON documents keyed by id.
"""

import json
import logging
import sqlite3
import uuid
from typing import Any, Dict, Iterable, Mapping, Optional

from .db_helpers import with_connection
from .merge import READ_ONLY_FIELDS, deep_merge
from ..exceptions import StorageError
from ..models import ListResult
from ..query.search import CompiledQuery, build_exact_filters
from ..utils.time_utils import next_timestamp, now_timestamp

logger = logging.getLogger(__name__)

# Paths commonly filtered on across resources
DEFAULT_INDEX_PATHS = ("name.firstName", "name.lastName", "status", "email", "createdAt")

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS resources (
        id TEXT PRIMARY KEY,
        data TEXT NOT NULL
    )
"""

# Missing timestamps sort last; id breaks ties so pages are stable
ORDER_SQL = "ORDER BY COALESCE(json_extract(data, '$.createdAt'), '') DESC, id ASC"


class DocumentStore:
    """Persists JSON documents for a single resource."""

    def __init__(self, name: str, conn: sqlite3.Connection,
                 index_paths: Iterable[str] = DEFAULT_INDEX_PATHS):
        """
        Args:
            name: Resource name (e.g. "persons")
            conn: Open connection owned by the registry
            index_paths: Dotted paths to index at provisioning time
        """
        self.name = name
        self.conn = conn
        self.index_paths = list(dict.fromkeys(index_paths))

    def provision(self):
        """Create the resources table and best-effort secondary indexes."""
        try:
            self.conn.execute(SCHEMA_SQL)
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to create resources table for {self.name}: {e}")
            raise StorageError(f"Cannot provision store for {self.name}") from e

        for path in self.index_paths:
            index_name = "idx_" + "".join(c if c.isalnum() else "_" for c in path)
            try:
                self.conn.execute(
                    f"CREATE INDEX IF NOT EXISTS {index_name} "
                    f"ON resources(json_extract(data, '$.{path}'))"
                )
            except sqlite3.Error as e:
                logger.warning(f"Could not create index {index_name} for {self.name}: {e}")
        self.conn.commit()

    # ============================================================================
    # Reads
    # ============================================================================

    @with_connection(writer=False)
    def find_by_id(self, conn, doc_id: str) -> Optional[Dict[str, Any]]:
        """Get a document by id, or None if absent."""
        row = conn.execute("SELECT data FROM resources WHERE id = ?", (str(doc_id),)).fetchone()
        if not row:
            return None
        return json.loads(row[0])

    def find_all(self, filters: Optional[Mapping[str, Any]] = None,
                 limit: int = 25, offset: int = 0) -> ListResult:
        """
        List documents matching exact field filters.

        Args:
            filters: Mapping of dotted path to required value
            limit: Page size
            offset: Rows to skip
        """
        return self.search(build_exact_filters(filters or {}), limit=limit, offset=offset)

    def search(self, compiled: CompiledQuery, limit: int = 25, offset: int = 0) -> ListResult:
        """
        Run a compiled query with pagination.

        Execution errors are logged and reported as an empty page so one bad
        filter cannot fail the request.
        """
        try:
            return self._execute_search(compiled, limit, offset)
        except sqlite3.Error as e:
            logger.warning(
                f"Search on {self.name} failed: {e} "
                f"(where={compiled.where_sql!r}, params={compiled.params!r})"
            )
            return ListResult.empty(limit, offset)

    @with_connection(writer=False)
    def _execute_search(self, conn, compiled: CompiledQuery, limit: int, offset: int) -> ListResult:
        where = compiled.where_sql

        total = conn.execute(
            f"SELECT COUNT(*) FROM resources {where}", compiled.params
        ).fetchone()[0]

        rows = conn.execute(
            f"SELECT data FROM resources {where} {ORDER_SQL} LIMIT ? OFFSET ?",
            [*compiled.params, limit, offset],
        ).fetchall()

        items = []
        for row in rows:
            try:
                items.append(json.loads(row[0]))
            except (TypeError, ValueError) as e:
                logger.error(f"Skipping unreadable document in {self.name}: {e}")

        return ListResult(items=items, total=total, limit=limit, offset=offset)

    @with_connection(writer=False)
    def count(self, conn) -> int:
        """Number of stored documents."""
        return conn.execute("SELECT COUNT(*) FROM resources").fetchone()[0]

    # ============================================================================
    # Writes
    # ============================================================================

    @with_connection(writer=True)
    def create(self, conn, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create a document.

        The id and both timestamps are always assigned here; client
        supplied values for them are discarded.
        """
        now = now_timestamp()
        document = dict(data)
        document.update({
            "id": str(uuid.uuid4()),
            "createdAt": now,
            "updatedAt": now,
        })

        conn.execute(
            "INSERT INTO resources (id, data) VALUES (?, ?)",
            (document["id"], json.dumps(document)),
        )
        return document

    @with_connection(writer=True)
    def update(self, conn, doc_id: str, partial: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Deep-merge a partial update into an existing document.

        Returns:
            The merged document, or None if the id does not exist
        """
        row = conn.execute("SELECT data FROM resources WHERE id = ?", (str(doc_id),)).fetchone()
        if not row:
            return None

        existing = json.loads(row[0])
        merged = deep_merge(existing, dict(partial), READ_ONLY_FIELDS)
        merged["updatedAt"] = next_timestamp(existing.get("updatedAt"))

        conn.execute(
            "UPDATE resources SET data = ? WHERE id = ?",
            (json.dumps(merged), str(doc_id)),
        )
        return merged

    @with_connection(writer=True)
    def delete(self, conn, doc_id: str) -> bool:
        """Delete by id; returns False when nothing was removed."""
        cursor = conn.execute("DELETE FROM resources WHERE id = ?", (str(doc_id),))
        return cursor.rowcount > 0

    @with_connection(writer=True)
    def clear(self, conn):
        """Remove every document."""
        conn.execute("DELETE FROM resources")

    @with_connection(writer=True)
    def insert_with_id(self, conn, document: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Upsert a complete document by its own id (used for seeding).

        Missing timestamps are filled in; `updatedAt` defaults to `createdAt`.
        """
        if not document.get("id"):
            raise StorageError(f"Cannot insert a {self.name} document without an id")

        record = dict(document)
        record["id"] = str(record["id"])
        if not record.get("createdAt"):
            record["createdAt"] = now_timestamp()
        if not record.get("updatedAt"):
            record["updatedAt"] = record["createdAt"]

        conn.execute(
            "INSERT OR REPLACE INTO resources (id, data) VALUES (?, ?)",
            (record["id"], json.dumps(record, default=str)),
        )
        return record
