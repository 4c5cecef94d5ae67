"""Connection management for the component store."""

import json
import logging
import re
import sqlite3
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Mapping

from ..errors import StoreUnavailable
from ..parsers import coerce_number
from ..search.query_builder import DOC_COLUMN, quote_identifier

logger = logging.getLogger(__name__)


# =============================================================================
# STORE FUNCTIONS
# =============================================================================
# Registered on every connection. Arguments come from json_type/json_extract,
# so arrays arrive as JSON text and booleans as integers.

@lru_cache(maxsize=512)
def _compile_pattern(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def text_match(json_type: str | None, value: Any, pattern: str) -> int:
    """1 if a string value, or any string element of an array, matches pattern."""
    if json_type == "text":
        return 1 if _compile_pattern(pattern).search(value) else 0
    if json_type == "array":
        regex = _compile_pattern(pattern)
        items = json.loads(value)
        return 1 if any(isinstance(item, str) and regex.search(item) for item in items) else 0
    return 0


def register_functions(conn: sqlite3.Connection) -> None:
    conn.create_function("text_match", 3, text_match, deterministic=True)
    conn.create_function("coerce_number", 2, coerce_number, deterministic=True)


def open_store(db_path: Path) -> sqlite3.Connection:
    """Open the store read-only.

    Raises:
        StoreUnavailable: if the database file cannot be opened
    """
    try:
        uri = Path(db_path).resolve().as_uri() + "?mode=ro"
        conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        # Opening is lazy in SQLite; touch the schema so a bad file fails here
        conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
    except sqlite3.Error as e:
        logger.error(f"Cannot open component store at {db_path}: {e}")
        raise StoreUnavailable(str(e)) from e
    register_functions(conn)
    return conn


# =============================================================================
# LOADING
# =============================================================================

def write_collections(
    db_path: Path,
    collections: Mapping[str, Iterable[dict[str, Any]]],
) -> dict[str, int]:
    """Write documents into collection tables, replacing existing ones.

    Documents keep their input order, which becomes the natural order of
    the collection.

    Args:
        db_path: Store path (created if missing)
        collections: Collection name -> documents

    Returns:
        Collection name -> number of documents written
    """
    counts: dict[str, int] = {}
    conn = sqlite3.connect(db_path)
    try:
        for name, documents in collections.items():
            table = quote_identifier(name)
            conn.execute(f"DROP TABLE IF EXISTS {table}")
            conn.execute(f"CREATE TABLE {table} (id INTEGER PRIMARY KEY, {DOC_COLUMN} TEXT NOT NULL)")
            rows = [(json.dumps(doc, ensure_ascii=False),) for doc in documents]
            conn.executemany(f"INSERT INTO {table} ({DOC_COLUMN}) VALUES (?)", rows)
            counts[name] = len(rows)
        conn.commit()
    finally:
        conn.close()
    return counts
