"""Anti-join and duplicate handling over keyed row sets.

anti_join() follows NOT EXISTS semantics, not NOT IN: a right-hand key that
contains a null can never equal anything, so it suppresses nothing. Treating
a null as a wildcard (or letting it empty the result, as NOT IN does) is a
correctness bug. Polars joins leave null keys unmatched, which is exactly
that rule.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import polars as pl

from window_duck.constants import POSITION_COLUMN, ROW_COLUMN
from window_duck.exceptions import TypeMismatch
from window_duck.index import PartitionIndex
from window_duck.keys import OrderKey, normalize_partition_by
from window_duck.table import NUMERIC_TYPES, ColumnType, Table

logger = logging.getLogger(__name__)


def _key_dtype(left: Table, left_col: str, right: Table, right_col: str) -> pl.DataType:
    """Common dtype both sides of a join key are cast to."""
    left_dtype = left.frame.schema[left_col]
    right_dtype = right.frame.schema[right_col]
    if left_dtype == right_dtype:
        return left_dtype

    left_type = left.column_type(left_col)
    right_type = right.column_type(right_col)
    if right_type == ColumnType.NULL:
        return left_dtype
    if left_type == ColumnType.NULL:
        return right_dtype
    if left_type == right_type == ColumnType.INTEGER:
        return pl.Int64
    if left_type in NUMERIC_TYPES and right_type in NUMERIC_TYPES:
        return pl.Float64
    if left_type == right_type == ColumnType.TEXT:
        return pl.String
    if left_type == right_type:
        return left_dtype
    raise TypeMismatch("anti_join", right_col, right_type, [left_type.value])


def anti_join(
    left: Table,
    right: Table,
    left_on: str | Sequence[str],
    right_on: str | Sequence[str] | None = None,
) -> Table:
    """Rows of `left` whose key has no match in `right`, in input order.

    Args:
        left: Rows to filter.
        right: Rows whose keys suppress matching left rows.
        left_on: Key columns of `left`.
        right_on: Key columns of `right` (default: same names as left_on).

    Raises:
        InvalidKey: If a key column is missing from either table.
        TypeMismatch: If a pair of key columns cannot be compared.
        ValueError: If the key lists differ in length.

    Example:
        >>> # A-keys {1, 2, 3}, B-keys {2, null} -> {1, 3}
        >>> anti_join(customers, orders, "id", "customer_id")
    """
    left_cols = normalize_partition_by(left_on)
    right_cols = normalize_partition_by(right_on) if right_on is not None else left_cols
    if len(left_cols) != len(right_cols):
        raise ValueError(
            f"left_on has {len(left_cols)} columns but right_on has {len(right_cols)}"
        )
    left.require("anti_join", *left_cols)
    right.require("anti_join", *right_cols)

    # Join on positional aliases so left and right names never collide
    aliases = [f"__key_{i}" for i in range(len(left_cols))]
    dtypes = [_key_dtype(left, lc, right, rc) for lc, rc in zip(left_cols, right_cols)]
    left_keys = left.frame.with_row_index(ROW_COLUMN).select(
        ROW_COLUMN,
        *(pl.col(c).cast(d).alias(a) for c, d, a in zip(left_cols, dtypes, aliases)),
    )
    right_keys = right.frame.select(
        pl.col(c).cast(d).alias(a) for c, d, a in zip(right_cols, dtypes, aliases)
    ).unique()

    kept = (
        left_keys.join(right_keys, on=aliases, how="anti")
        .get_column(ROW_COLUMN)
        .sort()
        .to_list()
    )
    logger.debug(f"anti_join kept {len(kept):,} of {len(left):,} rows")
    return left.take(kept)


def deduplicate(
    table: Table,
    key: str | Sequence[str],
    order_by: OrderKey | Sequence[OrderKey],
) -> Table:
    """Keep one row per distinct key: the first under `order_by`.

    Equivalent to ``ROW_NUMBER() OVER (PARTITION BY key ORDER BY ...) = 1``;
    ties keep the earliest input row. Null keys form one group, as in
    GROUP BY. Kept rows are returned in input order.

    Raises:
        InvalidKey: If a key or order column does not exist.
    """
    index = PartitionIndex.build(table, key, order_by, operation="deduplicate")
    kept = index.positions_where(pl.col(POSITION_COLUMN) == 0)
    logger.debug(f"deduplicate kept {len(kept):,} of {len(table):,} rows")
    return table.take(kept)


def find_duplicates(table: Table, key: str | Sequence[str]) -> Table:
    """Rows whose key occurs more than once, in input order.

    Null keys count as equal to each other, as in GROUP BY.
    """
    key_cols = normalize_partition_by(key)
    table.require("find_duplicates", *key_cols)
    repeated = (
        table.frame.with_row_index(ROW_COLUMN)
        .filter(pl.len().over(list(key_cols)) > 1)
        .get_column(ROW_COLUMN)
        .to_list()
    )
    return table.take(repeated)
