"""DuckDB helpers for running SQL over Polars frames.

The input frame is registered as "_input" on a fresh in-memory connection,
which is closed again once the query has been fetched.
"""

from __future__ import annotations

from typing import Any

import duckdb
import polars as pl


def quote(identifier: str) -> str:
    """Double-quote a SQL identifier."""
    return '"' + identifier.replace('"', '""') + '"'


def fetch_rows(sql: str, df: pl.DataFrame) -> list[tuple[Any, ...]]:
    """Run `sql` against `df` (as "_input") and return Python rows.

    Values come back as Python objects: HUGEINT sums as int, DECIMAL as
    Decimal, dates as datetime.date.
    """
    conn = duckdb.connect(":memory:")
    try:
        conn.register("_input", df)
        return conn.execute(sql).fetchall()
    finally:
        conn.close()
