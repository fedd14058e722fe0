"""Gap-and-islands processor."""

from __future__ import annotations

from collections.abc import Sequence

from window_duck import islands
from window_duck.config import EngineConfig
from window_duck.islands import Adjacency
from window_duck.keys import OrderKey
from window_duck.processors.base import IndexCache, WindowProcessor
from window_duck.table import ColumnType, Table


class IslandProcessor(WindowProcessor):
    """Detect runs of adjacent rows.

    Two output shapes:
    - summary (default): one row per island with partition columns,
      start_/end_ order values, row_count and value
    - label: the input rows with an island number column appended

    Example (three or more consecutive days of high traffic):
        >>> IslandProcessor(
        ...     Consecutive("visit_date"),
        ...     partition_by=None,
        ...     order_by=[OrderKey("visit_date", "asc", "last")],
        ...     min_length=3,
        ... ).process(high_traffic_df)
    """

    def __init__(
        self,
        adjacent: Adjacency,
        partition_by: str | Sequence[str] | None,
        order_by: OrderKey | Sequence[OrderKey],
        value_column: str | None = None,
        min_length: int | None = None,
        label_column: str | None = None,
    ):
        """
        Args:
            adjacent: SameValue, Consecutive, or any adjacent(prev, curr) callable.
            partition_by: Partition columns (None for the whole table).
            order_by: Order keys within each partition.
            value_column: Column whose value represents each island (summary only).
            min_length: Drop islands shorter than this (summary only).
            label_column: If set, append island numbers under this name
                          instead of returning a summary.
        """
        if label_column is not None and (min_length is not None or value_column is not None):
            raise ValueError("min_length and value_column only apply to summary output")
        self.adjacent = adjacent
        self.partition_by = partition_by
        self.order_by = order_by
        self.value_column = value_column
        self.min_length = min_length
        self.label_column = label_column

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        index = cache.get(table, self.partition_by, self.order_by, "islands")
        if self.label_column is not None:
            labels = islands.label_islands(table, index, self.adjacent, config.max_workers)
            return table.with_column(self.label_column, labels, ColumnType.INTEGER)

        found = islands.find_islands(
            table, index, self.adjacent, self.value_column, config.max_workers
        )
        if self.min_length is not None:
            found = [island for island in found if island.row_count >= self.min_length]
        return islands.islands_to_table(found, index, table)

    def __repr__(self) -> str:
        return f"IslandProcessor({self.adjacent!r})"
