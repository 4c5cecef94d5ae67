#!/usr/bin/env python3
"""
Build the SQLite component store from catalog document exports.

Reads one export file per category from the data directory and writes one
collection table per category. Files are named after the collection
(processor_productos.json) or the category slug (cpu.json); JSON arrays and
JSON Lines are accepted, optionally gzipped, so plain mongoexport output
works as-is.

Usage:
    python scripts/build_database.py [--data-dir PATH] [--output PATH]
"""

import argparse
import gzip
import json
import os
import sys
import time
from pathlib import Path
from typing import Any

# Add parent directory to path for imports when running as script
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pcbuild_catalog.categories import CATEGORIES
from pcbuild_catalog.db import write_collections

EXPORT_SUFFIXES = (".json", ".jsonl", ".json.gz", ".jsonl.gz")

# Extended-JSON wrappers mongoexport emits -> plain value
_EXTENDED_JSON_CONVERTERS = {
    "$oid": str,
    "$numberInt": int,
    "$numberLong": int,
    "$numberDouble": float,
    "$numberDecimal": float,
    "$date": lambda v: v,
}


def flatten_extended_json(value: Any) -> Any:
    """Replace single-key extended-JSON wrappers with plain values.

    {"_id": {"$oid": "65f..."}} becomes {"_id": "65f..."}, the form the
    API serialized ids in. {"$date": {"$numberLong": "..."}} unwraps twice.
    """
    if isinstance(value, dict):
        if len(value) == 1:
            key, inner = next(iter(value.items()))
            converter = _EXTENDED_JSON_CONVERTERS.get(key)
            if converter is not None:
                return converter(flatten_extended_json(inner))
        return {k: flatten_extended_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [flatten_extended_json(v) for v in value]
    return value


def read_export(path: Path) -> list[dict[str, Any]]:
    """Read a JSON array or JSON Lines export file."""
    opener = gzip.open if path.suffix == ".gz" else open
    with opener(path, "rt", encoding="utf-8") as f:
        text = f.read()
    stripped = text.lstrip()
    if stripped.startswith("["):
        documents = json.loads(stripped)
    else:
        documents = [json.loads(line) for line in text.splitlines() if line.strip()]
    return [flatten_extended_json(doc) for doc in documents if isinstance(doc, dict)]


def find_export(data_dir: Path, slug: str) -> Path | None:
    """Export file for a category, by collection name first, then by slug."""
    collection = CATEGORIES[slug].collection
    for stem in (collection, slug):
        for suffix in EXPORT_SUFFIXES:
            candidate = data_dir / f"{stem}{suffix}"
            if candidate.exists():
                return candidate
    return None


def build_database(data_dir: Path, db_path: Path, verbose: bool = True) -> dict:
    """
    Build the component store from export files.

    Builds to a temp file and atomically renames on success.
    Returns stats dict with counts and timing.
    """
    start_time = time.time()

    if verbose:
        print(f"Building component store from {data_dir}")
        print(f"Output: {db_path}")

    collections: dict[str, list[dict[str, Any]]] = {}
    missing: list[str] = []
    for slug, info in CATEGORIES.items():
        export = find_export(data_dir, slug)
        if export is None:
            missing.append(slug)
            continue
        collections[info.collection] = read_export(export)

    # Build to temp path, rename on success (atomic replacement)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = db_path.with_suffix(".db.tmp")
    if tmp_path.exists():
        tmp_path.unlink()

    counts = write_collections(tmp_path, collections)

    if db_path.exists():
        db_path.unlink()
    os.rename(tmp_path, db_path)

    elapsed = time.time() - start_time
    stats = {
        "total_components": sum(counts.values()),
        "collections": counts,
        "missing_categories": missing,
        "elapsed_seconds": round(elapsed, 2),
    }

    if verbose:
        for name, count in counts.items():
            print(f"  {name}: {count:,} components")
        if missing:
            print(f"No export found for: {', '.join(missing)}")
        print(f"Total components loaded: {stats['total_components']:,} in {elapsed:.1f}s")

    return stats


def main():
    parser = argparse.ArgumentParser(description="Build component store")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data/exports"),
        help="Directory with one export file per category (default: data/exports/)",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=Path("data/catalog.db"),
        help="Output database path (default: data/catalog.db)",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress output",
    )
    args = parser.parse_args()

    if not args.data_dir.exists():
        print(f"Error: Data directory not found: {args.data_dir}")
        return 1

    build_database(args.data_dir, args.output, verbose=not args.quiet)
    return 0


if __name__ == "__main__":
    exit(main())
