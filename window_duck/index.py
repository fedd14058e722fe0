"""Partition & order index shared by all window evaluators.

The index is a Polars frame holding every row's input position, sorted by
partition (in order of first appearance) and then by the order keys. Ties
keep input order, so repeated runs always produce the same sequence. Build
it once and pass it to every evaluator that uses the same
(partition_by, order_by) pair.

Evaluators add their own window expressions on top of the sorted frame
(``.over(PARTITION_COLUMN)``) and read the result back in input row order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import cached_property
from typing import Any

import polars as pl

from window_duck.constants import (
    PARTITION_COLUMN,
    POSITION_COLUMN,
    RESULT_COLUMN,
    ROW_COLUMN,
)
from window_duck.keys import NullOrder, OrderKey, normalize_order_by, normalize_partition_by
from window_duck.table import Table

logger = logging.getLogger(__name__)

PartitionFn = Callable[[tuple, tuple[int, ...]], Sequence[Any]]


class PartitionIndex:
    """Sorted partition frame plus the keys it was built from.

    Example:
        >>> index = PartitionIndex.build(
        ...     table,
        ...     partition_by=["dept"],
        ...     order_by=[OrderKey("salary", "desc", "last")],
        ... )
        >>> index.partitions[(1,)]
        (1, 4, 0)
    """

    def __init__(
        self,
        lineage: int,
        row_count: int,
        partition_by: tuple[str, ...],
        order_by: tuple[OrderKey, ...],
        frame: pl.DataFrame,
    ):
        self.lineage = lineage
        self.row_count = row_count
        self.partition_by = partition_by
        self.order_by = order_by
        self.frame = frame

    @classmethod
    def build(
        cls,
        table: Table,
        partition_by: str | Sequence[str] | None = None,
        order_by: OrderKey | Sequence[OrderKey] | None = None,
        operation: str = "partition",
    ) -> PartitionIndex:
        """Group and sort the rows of `table`.

        Args:
            table: Input table.
            partition_by: Partition columns. None or () puts every row in one partition.
            order_by: Order keys applied within each partition.
            operation: Operation name used in error messages.

        Raises:
            InvalidKey: If a partition or order column is not in the schema.
        """
        partition_cols = normalize_partition_by(partition_by)
        order_keys = normalize_order_by(order_by)
        order_cols = [k.column for k in order_keys]
        table.require(operation, *partition_cols, *order_cols)

        key_cols = list(dict.fromkeys([*partition_cols, *order_cols]))
        # Partitions are numbered by the input position of their first row
        if partition_cols:
            partition = pl.col(ROW_COLUMN).min().over(list(partition_cols))
        else:
            partition = pl.lit(0, dtype=pl.UInt32)

        frame = (
            table.frame.with_row_index(ROW_COLUMN)
            .select(ROW_COLUMN, *(_sortable(table.frame, c) for c in key_cols))
            .with_columns(partition.alias(PARTITION_COLUMN))
            .sort(
                [PARTITION_COLUMN, *order_cols],
                descending=[False, *(k.descending for k in order_keys)],
                nulls_last=[False, *(k.nulls == NullOrder.LAST for k in order_keys)],
                maintain_order=True,
            )
            .with_columns(
                pl.int_range(pl.len(), dtype=pl.UInt32)
                .over(PARTITION_COLUMN)
                .alias(POSITION_COLUMN)
            )
        )
        index = cls(table.lineage, len(table), partition_cols, order_keys, frame)
        logger.debug(
            f"Indexed {len(table):,} rows into {len(index):,} partitions "
            f"(partition_by={list(partition_cols)}, order_by={[str(k) for k in order_keys]})"
        )
        return index

    @cached_property
    def partitions(self) -> dict[tuple, tuple[int, ...]]:
        """{partition key: input row positions in index order}, in partition order."""
        grouped = self.frame.group_by(PARTITION_COLUMN, maintain_order=True).agg(
            *(pl.col(c).first() for c in self.partition_by),
            pl.col(ROW_COLUMN),
        )
        return {
            tuple(row[1:-1]): tuple(row[-1])
            for row in grouped.iter_rows()
        }

    def __len__(self) -> int:
        return self.frame.get_column(PARTITION_COLUMN).n_unique()

    def __iter__(self) -> Iterator[tuple]:
        return iter(self.partitions)

    def check(self, table: Table, operation: str = "evaluate") -> None:
        """Ensure this index was built for `table` (or a column-derived copy of it)."""
        if table.lineage != self.lineage or len(table) != self.row_count:
            raise ValueError(
                f"[{operation}] Partition index was built for a different table; "
                "rebuild it with PartitionIndex.build()"
            )

    # --- Expressions over the sorted frame ---

    def with_values(self, table: Table, *columns: str) -> pl.DataFrame:
        """The index frame with `columns` of `table` aligned to index order."""
        rows = self.frame.get_column(ROW_COLUMN)
        return self.frame.with_columns(
            [table.frame.get_column(c).gather(rows) for c in dict.fromkeys(columns)]
        )

    def peer_id(self) -> pl.Expr:
        """Increasing id shared by rows with equal order-key values.

        Partitions are contiguous in the index frame, so a new partition
        always starts a new peer group.
        """
        start = pl.col(POSITION_COLUMN) == 0
        for key in self.order_by:
            column = pl.col(key.column)
            start = start | column.ne_missing(column.shift(1))
        return start.cast(pl.UInt32).cum_sum()

    def evaluate(self, expr: pl.Expr, frame: pl.DataFrame | None = None) -> list[Any]:
        """Evaluate `expr` over the index frame; one value per row, in input row order."""
        frame = self.frame if frame is None else frame
        return (
            frame.select(ROW_COLUMN, expr.alias(RESULT_COLUMN))
            .sort(ROW_COLUMN)
            .get_column(RESULT_COLUMN)
            .to_list()
        )

    def positions_where(self, predicate: pl.Expr) -> list[int]:
        """Input row positions satisfying `predicate`, in input row order."""
        return self.frame.filter(predicate).get_column(ROW_COLUMN).sort().to_list()

    # --- Python callables ---

    def map_partitions(self, fn: PartitionFn, max_workers: int = 1) -> list[Any]:
        """Evaluate `fn(key, positions)` per partition and scatter to row order.

        For logic that cannot be written as a Polars expression, such as a
        user-supplied adjacency callable. `fn` returns one value per
        position, aligned with `positions`. With max_workers > 1 partitions
        run on a thread pool. Output order is input row order either way.
        """
        items = list(self.partitions.items())
        if max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                results = list(executor.map(lambda item: fn(*item), items))
        else:
            results = [fn(key, positions) for key, positions in items]

        output: list[Any] = [None] * self.row_count
        for (_, positions), values in zip(items, results):
            for position, value in zip(positions, values):
                output[position] = value
        return output

    def __repr__(self) -> str:
        return (
            f"PartitionIndex({len(self)} partitions, "
            f"partition_by={list(self.partition_by)}, order_by={[str(k) for k in self.order_by]})"
        )


def _sortable(frame: pl.DataFrame, column: str) -> pl.Expr:
    # Categoricals sort by their physical encoding; order them as text
    if frame.schema[column] in (pl.Categorical, pl.Enum):
        return pl.col(column).cast(pl.String)
    return pl.col(column)
