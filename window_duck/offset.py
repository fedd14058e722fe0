"""Offset window functions: LAG, LEAD, FIRST_VALUE and LAST_VALUE.

An offset that falls outside the partition is a boundary, not a fault: it
yields the caller's default.
"""

from __future__ import annotations

from typing import Any

import polars as pl

from window_duck.constants import PARTITION_COLUMN
from window_duck.index import PartitionIndex
from window_duck.table import Table


def _check_offset(offset: int) -> None:
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise ValueError(f"offset must be a non-negative integer, got: {offset!r}")


def _shift(
    table: Table, index: PartitionIndex, column: str, shift: int, default: Any
) -> list[Any]:
    # shift() only fills the rows shifted in from outside the partition;
    # nulls read from inside it stay null
    shifted = pl.col(column).shift(shift, fill_value=default).over(PARTITION_COLUMN)
    return index.evaluate(shifted, index.with_values(table, column))


def lag(
    table: Table,
    index: PartitionIndex,
    column: str,
    offset: int = 1,
    default: Any = None,
) -> list[Any]:
    """Value of `column` `offset` rows before the current row.

    Args:
        table: Input table.
        index: Partition index built for `table`.
        column: Column to read.
        offset: Non-negative row distance; 0 returns the current value.
        default: Returned when the offset leaves the partition.

    Raises:
        InvalidKey: If `column` does not exist.
        ValueError: If offset is negative or not an integer.
    """
    _check_offset(offset)
    table.require("lag", column)
    index.check(table, "lag")
    return _shift(table, index, column, offset, default)


def lead(
    table: Table,
    index: PartitionIndex,
    column: str,
    offset: int = 1,
    default: Any = None,
) -> list[Any]:
    """Value of `column` `offset` rows after the current row. See lag()."""
    _check_offset(offset)
    table.require("lead", column)
    index.check(table, "lead")
    return _shift(table, index, column, -offset, default)


def first_value(table: Table, index: PartitionIndex, column: str) -> list[Any]:
    """Value of `column` at the first row of each ordered partition."""
    table.require("first_value", column)
    index.check(table, "first_value")
    return index.evaluate(
        pl.col(column).first().over(PARTITION_COLUMN), index.with_values(table, column)
    )


def last_value(table: Table, index: PartitionIndex, column: str) -> list[Any]:
    """Value of `column` at the last row of each ordered partition.

    Covers the whole partition, not the SQL default frame that stops at
    the current row.
    """
    table.require("last_value", column)
    index.check(table, "last_value")
    return index.evaluate(
        pl.col(column).last().over(PARTITION_COLUMN), index.with_values(table, column)
    )
