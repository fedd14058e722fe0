"""Gap-and-islands grouping over ordered partitions.

An island is a maximal run of consecutive rows (in index order) where an
adjacency predicate holds between every neighbouring pair. Two predicates
are built in:

- SameValue: the value did not change (stuck-sensor detection)
- Consecutive: the value advanced by exactly one step (consecutive days)

Both compile to Polars expressions over the index frame. Any callable
``adjacent(prev_row, curr_row) -> bool`` works too; it is called row by
row. Filtering by minimum run length is left to the caller:

    >>> runs = find_islands(table, index, SameValue("reading"), value_column="reading")
    >>> stuck = [island for island in runs if island.row_count >= 3]
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import polars as pl

from window_duck.constants import (
    ISLAND_END_PREFIX,
    ISLAND_ROW_COUNT_COLUMN,
    ISLAND_START_PREFIX,
    ISLAND_VALUE_COLUMN,
    LABEL_COLUMN,
    PARTITION_COLUMN,
    POSITION_COLUMN,
    ROW_COLUMN,
)
from window_duck.exceptions import TypeMismatch
from window_duck.index import PartitionIndex
from window_duck.table import NUMERIC_TYPES, ColumnType, Row, Table, time_since_midnight

Adjacency = Callable[[Row, Row], bool]

_MICROSECOND = dt.timedelta(microseconds=1)


class SameValue:
    """Adjacent when `column` is unchanged from the previous row (null == null)."""

    def __init__(self, column: str):
        self.column = column

    def validate(self, table: Table) -> None:
        table.require("islands", self.column)

    def expr(self, dtype: pl.DataType) -> pl.Expr:
        """True where a row continues the previous row's run."""
        column = pl.col(self.column)
        return column.eq_missing(column.shift(1))

    def __call__(self, prev: Row, curr: Row) -> bool:
        return prev[self.column] == curr[self.column]

    def __repr__(self) -> str:
        return f"SameValue({self.column!r})"


class Consecutive:
    """Adjacent when `column` advances by exactly `step` from the previous row.

    For date, datetime and duration values an integer step is read as days,
    so the default step of 1 detects consecutive calendar days. Time-of-day
    values take a timedelta step (``Consecutive("at", timedelta(hours=1))``).
    Nulls always break a run.
    """

    def __init__(self, column: str, step: int | float | dt.timedelta = 1):
        self.column = column
        self.step = step
        if isinstance(step, dt.timedelta):
            self._temporal_step = step
        elif isinstance(step, (int, float)):
            self._temporal_step = dt.timedelta(days=step)
        else:
            self._temporal_step = None

    def validate(self, table: Table) -> None:
        table.require("islands", self.column)
        column_type = table.column_type(self.column)
        if column_type not in (*NUMERIC_TYPES, ColumnType.TEMPORAL, ColumnType.NULL):
            raise TypeMismatch(
                "islands", self.column, column_type, ["integer", "decimal", "temporal"]
            )

    def expr(self, dtype: pl.DataType) -> pl.Expr:
        """True where a row continues the previous row's run."""
        column = pl.col(self.column)
        if dtype == pl.Time:
            # Time of day has no subtraction; compare nanoseconds since midnight
            column = column.cast(pl.Int64)
            step: Any = self._temporal_step // _MICROSECOND * 1000
        elif dtype.is_temporal():
            if dtype == pl.Date:
                column = column.cast(pl.Datetime("us"))
            difference = (column - column.shift(1)).cast(pl.Duration("us"))
            return (difference == self._temporal_step).fill_null(False)
        else:
            step = self.step
        return ((column - column.shift(1)) == step).fill_null(False)

    def __call__(self, prev: Row, curr: Row) -> bool:
        a, b = prev[self.column], curr[self.column]
        if a is None or b is None:
            return False
        if isinstance(a, dt.time):
            return time_since_midnight(b) - time_since_midnight(a) == self._temporal_step
        if isinstance(a, (dt.date, dt.timedelta)):
            return b - a == self._temporal_step
        return b - a == self.step

    def __repr__(self) -> str:
        return f"Consecutive({self.column!r}, step={self.step!r})"


@dataclass(frozen=True)
class Island:
    """One maximal run within a partition.

    Attributes:
        partition: Partition key values, in partition_by order.
        start: Order-key values of the first row.
        end: Order-key values of the last row.
        row_count: Rows in the run.
        value: Represented value for value runs (value_column), else None.
        positions: Input row positions of the run, in index order.
    """

    partition: tuple
    start: tuple
    end: tuple
    row_count: int
    value: Any = None
    positions: tuple[int, ...] = field(default=(), repr=False)


def _runs(table: Table, positions: Sequence[int], adjacent: Adjacency) -> list[list[int]]:
    runs: list[list[int]] = []
    for position in positions:
        if runs and adjacent(table[runs[-1][-1]], table[position]):
            runs[-1].append(position)
        else:
            runs.append([position])
    return runs


def _validate(table: Table, index: PartitionIndex, adjacent: Adjacency, operation: str) -> None:
    validate = getattr(adjacent, "validate", None)
    if validate is not None:
        validate(table)
    index.check(table, operation)


def _labelled(
    table: Table,
    index: PartitionIndex,
    adjacent: Adjacency,
    columns: Sequence[str] = (),
    max_workers: int = 1,
) -> pl.DataFrame:
    """Index frame plus LABEL_COLUMN: 1-based island number within the partition."""
    if isinstance(adjacent, (SameValue, Consecutive)):
        frame = index.with_values(table, adjacent.column, *columns)
        starts = (pl.col(POSITION_COLUMN) == 0) | ~adjacent.expr(frame.schema[adjacent.column])
        return frame.with_columns(
            starts.cast(pl.UInt32).cum_sum().over(PARTITION_COLUMN).alias(LABEL_COLUMN)
        )

    def _labels(_, positions):
        labels = []
        for number, run in enumerate(_runs(table, positions, adjacent), start=1):
            labels.extend([number] * len(run))
        return labels

    labels = pl.Series(index.map_partitions(_labels, max_workers), dtype=pl.UInt32)
    frame = index.with_values(table, *columns)
    return frame.with_columns(labels.gather(frame.get_column(ROW_COLUMN)).alias(LABEL_COLUMN))


def find_islands(
    table: Table,
    index: PartitionIndex,
    adjacent: Adjacency,
    value_column: str | None = None,
    max_workers: int = 1,
) -> list[Island]:
    """Group each ordered partition into maximal islands.

    Args:
        table: Input table.
        index: Partition index built for `table`.
        adjacent: SameValue, Consecutive, or any callable
                  adjacent(previous_row, current_row).
        value_column: Column whose first value represents each island.
        max_workers: Threads for evaluating a plain callable per partition.

    Returns:
        Islands in partition order (first appearance), then index order.

    Raises:
        InvalidKey: If a predicate or value column does not exist.
        TypeMismatch: If Consecutive is used on a non-numeric, non-temporal column.
    """
    _validate(table, index, adjacent, "islands")
    if value_column is not None:
        table.require("islands", value_column)

    partition_cols = list(index.partition_by)
    order_cols = [key.column for key in index.order_by]
    value = pl.col(value_column).first() if value_column else pl.lit(None)
    summary = (
        _labelled(table, index, adjacent, [value_column] if value_column else [], max_workers)
        .group_by(PARTITION_COLUMN, LABEL_COLUMN, maintain_order=True)
        .agg(
            *(pl.col(c).first().alias(f"__partition_{i}") for i, c in enumerate(partition_cols)),
            *(pl.col(c).first().alias(f"__start_{i}") for i, c in enumerate(order_cols)),
            *(pl.col(c).last().alias(f"__end_{i}") for i, c in enumerate(order_cols)),
            pl.len().alias("__row_count"),
            value.alias("__value"),
            pl.col(ROW_COLUMN).alias("__positions"),
        )
    )

    keys = 2 + len(partition_cols)
    islands = []
    for row in summary.iter_rows():
        *bounds, row_count, island_value, positions = row[keys:]
        islands.append(
            Island(
                partition=tuple(row[2:keys]),
                start=tuple(bounds[: len(order_cols)]),
                end=tuple(bounds[len(order_cols) :]),
                row_count=row_count,
                value=island_value,
                positions=tuple(positions),
            )
        )
    return islands


def label_islands(
    table: Table, index: PartitionIndex, adjacent: Adjacency, max_workers: int = 1
) -> list[int]:
    """1-based island number of every row within its partition, in row order."""
    _validate(table, index, adjacent, "label_islands")
    frame = _labelled(table, index, adjacent, max_workers=max_workers)
    return index.evaluate(pl.col(LABEL_COLUMN).cast(pl.Int64), frame)


def islands_to_table(
    islands: Sequence[Island], index: PartitionIndex, table: Table
) -> Table:
    """Flatten islands into a summary table.

    Columns: partition columns, start_<order col>, end_<order col>,
    row_count, value.
    """
    order_cols = [key.column for key in index.order_by]
    schema: dict[str, ColumnType] = {c: table.column_type(c) for c in index.partition_by}
    for c in order_cols:
        schema[ISLAND_START_PREFIX + c] = table.column_type(c)
    for c in order_cols:
        schema[ISLAND_END_PREFIX + c] = table.column_type(c)
    schema[ISLAND_ROW_COUNT_COLUMN] = ColumnType.INTEGER

    values = [island.value for island in islands]
    rows = [
        (*island.partition, *island.start, *island.end, island.row_count)
        for island in islands
    ]
    summary = Table.from_rows(schema, rows)
    return summary.with_column(ISLAND_VALUE_COLUMN, values)
