"""Component store: one collection of JSON product documents per category.

The store is an SQLite file built by scripts/build_database.py from the
catalog's document exports. The service opens it read-only and never
writes to it.
"""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Iterator

from ..categories import CATEGORIES
from ..config import DB_PATH
from ..errors import QueryExecutionFailure
from ..search.plan import QueryPlan
from ..search.query_builder import build_select, quote_identifier
from .connection import open_store, write_collections

logger = logging.getLogger(__name__)

__all__ = [
    "ComponentStore",
    "get_store",
    "close_store",
    "write_collections",
]


class ComponentStore:
    """Read-only access to the catalog collections.

    Thread safety: one connection opened with check_same_thread=False and
    shared by all requests; the store is never written, so concurrent
    reads need no coordination. The _conn_lock only guards lazy opening.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path or DB_PATH)
        self._conn: sqlite3.Connection | None = None
        self._conn_lock = threading.Lock()

    def _ensure_conn(self) -> sqlite3.Connection:
        """Open the store on first use. Raises StoreUnavailable."""
        if self._conn is not None:
            return self._conn
        with self._conn_lock:
            if self._conn is None:
                self._conn = open_store(self.db_path)
                logger.info(f"Opened component store at {self.db_path}")
        return self._conn

    def close(self) -> None:
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def has_collection(self, name: str) -> bool:
        conn = self._ensure_conn()
        try:
            row = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", [name]
            ).fetchone()
        except sqlite3.Error as e:
            raise QueryExecutionFailure(str(e)) from e
        return row is not None

    def find(self, plan: QueryPlan, limit: int | None = None) -> Iterator[dict[str, Any]]:
        """Yield documents matching the plan, in natural order.

        A collection absent from the store yields nothing, the way a
        document store treats a collection that was never created.

        Raises:
            StoreUnavailable: the store cannot be opened
            QueryExecutionFailure: the statement fails or a document is not JSON
        """
        if not self.has_collection(plan.collection):
            logger.warning(f"Collection {plan.collection} does not exist in {self.db_path}")
            return
        sql, params = build_select(plan, limit=limit)
        conn = self._ensure_conn()
        try:
            cursor = conn.execute(sql, params)
            for (doc,) in cursor:
                yield json.loads(doc)
        # ValueError: a stored document that is not valid JSON
        except (sqlite3.Error, ValueError) as e:
            logger.error(f"Query on {plan.collection} failed: {e}")
            raise QueryExecutionFailure(str(e)) from e

    def sample(self, category: str, collection: str) -> dict[str, Any] | None:
        """First unfiltered document of a collection, or None if it is empty."""
        for doc in self.find(QueryPlan(category, collection), limit=1):
            return doc
        return None

    def count(self, collection: str) -> int:
        if not self.has_collection(collection):
            return 0
        conn = self._ensure_conn()
        try:
            (total,) = conn.execute(f"SELECT count(*) FROM {quote_identifier(collection)}").fetchone()
        except sqlite3.Error as e:
            raise QueryExecutionFailure(str(e)) from e
        return total

    def get_stats(self) -> dict[str, Any]:
        """Document counts per category."""
        counts = {slug: self.count(c.collection) for slug, c in CATEGORIES.items()}
        return {"total_components": sum(counts.values()), "categories": counts}


# Global store instance
_store: ComponentStore | None = None
_store_lock = threading.Lock()


def get_store() -> ComponentStore:
    """Get or create the global store instance."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = ComponentStore()
    return _store


def close_store() -> None:
    global _store
    with _store_lock:
        if _store is not None:
            _store.close()
            _store = None
