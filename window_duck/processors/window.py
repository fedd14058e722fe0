"""Window processors for ranking, offsets and running aggregations.

Each processor appends one derived column and leaves every input row in
place and in order.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from window_duck import frames, offset, ranking
from window_duck.config import EngineConfig
from window_duck.frames import Aggregate, Frame
from window_duck.keys import OrderKey
from window_duck.processors.base import IndexCache, WindowProcessor
from window_duck.ranking import RankMethod
from window_duck.table import ColumnType, Table

RANK_FUNCTIONS = ("row_number", "rank", "dense_rank", "ntile", "percent_rank", "cume_dist")
OFFSET_FUNCTIONS = ("lag", "lead", "first_value", "last_value")


class RankProcessor(WindowProcessor):
    """Append a ranking column.

    Example:
        >>> processor = RankProcessor(
        ...     "salary_rank",
        ...     "dense_rank",
        ...     partition_by="department_id",
        ...     order_by=[OrderKey("salary", "desc", "last")],
        ... )
        >>> ranked = processor.process(employees_df)
    """

    def __init__(
        self,
        output: str,
        function: str,
        partition_by: str | Sequence[str] | None,
        order_by: OrderKey | Sequence[OrderKey],
        buckets: int | None = None,
    ):
        """
        Args:
            output: Name of the new column.
            function: One of row_number, rank, dense_rank, ntile, percent_rank, cume_dist.
            partition_by: Partition columns (None for the whole table).
            order_by: Order keys within each partition.
            buckets: Bucket count, required for ntile.
        """
        if function not in RANK_FUNCTIONS:
            raise ValueError(f"Unknown ranking function: {function}. Use one of {RANK_FUNCTIONS}")
        if function == "ntile" and buckets is None:
            raise ValueError("ntile requires buckets")
        self.output = output
        self.function = function
        self.partition_by = partition_by
        self.order_by = order_by
        self.buckets = buckets

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        index = cache.get(table, self.partition_by, self.order_by, self.function)
        if self.function == "ntile":
            values = ranking.ntile(index, self.buckets)
        elif self.function == "percent_rank":
            values = ranking.percent_rank(index)
        elif self.function == "cume_dist":
            values = ranking.cume_dist(index)
        else:
            values = ranking.evaluate_rank(index, self.function)

        if self.function in ("percent_rank", "cume_dist"):
            return table.with_column(self.output, values, ColumnType.DECIMAL)
        return table.with_column(self.output, values, ColumnType.INTEGER)

    def __repr__(self) -> str:
        return f"RankProcessor({self.output} = {self.function.upper()})"


class TopNProcessor(WindowProcessor):
    """Keep rows ranked within the first `n` of their partition.

    Example (top three distinct salaries per department):
        >>> TopNProcessor(
        ...     3,
        ...     partition_by="department_id",
        ...     order_by=[OrderKey("salary", "desc", "last")],
        ... ).process(employees_df)
    """

    def __init__(
        self,
        n: int,
        partition_by: str | Sequence[str] | None,
        order_by: OrderKey | Sequence[OrderKey],
        method: RankMethod | str = RankMethod.DENSE_RANK,
    ):
        self.n = n
        self.partition_by = partition_by
        self.order_by = order_by
        self.method = RankMethod(method)

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        index = cache.get(table, self.partition_by, self.order_by, "top_n")
        return ranking.top_n(table, index, self.n, self.method)

    def __repr__(self) -> str:
        return f"TopNProcessor({self.method.value.upper()} <= {self.n})"


class OffsetProcessor(WindowProcessor):
    """Append LAG/LEAD/FIRST_VALUE/LAST_VALUE of a column.

    Example (previous day's temperature):
        >>> OffsetProcessor(
        ...     "prev_temp", "temperature", "lag",
        ...     partition_by=None,
        ...     order_by=[OrderKey("record_date", "asc", "last")],
        ... ).process(weather_df)
    """

    def __init__(
        self,
        output: str,
        column: str,
        function: str,
        partition_by: str | Sequence[str] | None,
        order_by: OrderKey | Sequence[OrderKey],
        offset: int = 1,
        default: Any = None,
    ):
        if function not in OFFSET_FUNCTIONS:
            raise ValueError(f"Unknown offset function: {function}. Use one of {OFFSET_FUNCTIONS}")
        self.output = output
        self.column = column
        self.function = function
        self.partition_by = partition_by
        self.order_by = order_by
        self.offset = offset
        self.default = default

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        index = cache.get(table, self.partition_by, self.order_by, self.function)
        if self.function == "lag":
            values = offset.lag(table, index, self.column, self.offset, self.default)
        elif self.function == "lead":
            values = offset.lead(table, index, self.column, self.offset, self.default)
        elif self.function == "first_value":
            values = offset.first_value(table, index, self.column)
        else:
            values = offset.last_value(table, index, self.column)

        # A non-null default may widen the type (int column, 0.0 default)
        column_type = table.column_type(self.column) if self.default is None else None
        return table.with_column(self.output, values, column_type)

    def __repr__(self) -> str:
        if self.function in ("lag", "lead"):
            return f"OffsetProcessor({self.output} = {self.function.upper()}({self.column}, {self.offset}))"
        return f"OffsetProcessor({self.output} = {self.function.upper()}({self.column}))"


class FrameAggregateProcessor(WindowProcessor):
    """Append a running or sliding aggregate.

    Example (7-day moving average and running total):
        >>> by_day = [OrderKey("visited_on", "asc", "last")]
        >>> Chain([
        ...     FrameAggregateProcessor("avg_7d", "amount", "avg", None, by_day, Frame.trailing(6)),
        ...     FrameAggregateProcessor("total", "amount", "sum", None, by_day, Frame.running()),
        ... ]).process(visits_df)
    """

    def __init__(
        self,
        output: str,
        column: str | None,
        aggregate: Aggregate | str,
        partition_by: str | Sequence[str] | None,
        order_by: OrderKey | Sequence[OrderKey] | None,
        frame: Frame,
    ):
        """
        Args:
            output: Name of the new column.
            column: Column to aggregate (None with "count" for COUNT(*)).
            aggregate: sum, avg, count, min or max.
            partition_by: Partition columns (None for the whole table).
            order_by: Order keys within each partition.
            frame: Row bounds, e.g. Frame.running() or Frame.trailing(6).
        """
        self.output = output
        self.column = column
        self.aggregate = Aggregate(aggregate)
        self.partition_by = partition_by
        self.order_by = order_by
        self.frame = frame

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        index = cache.get(table, self.partition_by, self.order_by, self.aggregate.value)
        values = frames.aggregate(table, index, self.column, self.aggregate, self.frame)
        return table.with_column(self.output, values)

    def __repr__(self) -> str:
        return (
            f"FrameAggregateProcessor({self.output} = "
            f"{self.aggregate.value.upper()}({self.column or '*'}) {self.frame})"
        )
