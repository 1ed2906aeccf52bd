#!/usr/bin/env python3
"""
Database connection helpers for the document stores.
Provides connection setup and a decorator for transactional methods.
"""

import functools
import sqlite3
from contextlib import contextmanager

MEMORY_DB = ":memory:"


def open_connection(db_path: str) -> sqlite3.Connection:
    """
    Open a long-lived SQLite connection.

    Args:
        db_path: Path to the SQLite database, or ":memory:"
    """
    conn = sqlite3.connect(str(db_path), timeout=5.0, check_same_thread=False)
    if db_path != MEMORY_DB:
        # Enable WAL mode for better concurrency
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection, writer: bool = False):
    """
    Scope a unit of work on an open connection.

    Args:
        conn: Open connection
        writer: If True, commits changes on exit and rolls back on error
    """
    try:
        yield conn

        if writer:
            conn.commit()
    except Exception:
        if writer:
            conn.rollback()
        raise


def with_connection(writer: bool = False):
    """
    Decorator that passes the store's connection to the decorated method.

    Args:
        writer: If True, commits changes after successful execution
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            with transaction(self.conn, writer=writer) as conn:
                return fn(self, conn, *args, **kwargs)
        return wrapper
    return decorator
