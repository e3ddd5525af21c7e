"""Load a directory of SEND domain CSV files into the data store.

Expects files named after the domains, e.g. ts.csv, dm.csv, ex.csv,
pooldef.csv. The schema is created first when TS does not exist yet.

Usage:
    uv run python scripts/load_all.py path/to/csv_dir
"""

import sys
from pathlib import Path

import polars as pl

from send_select.db import init_schema, load_domain, table_exists
from send_select.db.schema import DOMAINS


def load_all(csv_dir: Path) -> None:
    """Load every domain CSV found in csv_dir."""
    if not table_exists("TS"):
        print("Creating schema")
        init_schema()

    for domain in DOMAINS:
        path = csv_dir / f"{domain.lower()}.csv"
        if not path.exists():
            print(f"  {domain}: no file, skipped")
            continue
        count = load_domain(domain, pl.read_csv(path, infer_schema=False))
        print(f"  {domain}: {count:,} rows")


if __name__ == "__main__":
    load_all(Path(sys.argv[1] if len(sys.argv) > 1 else "data/csv"))
