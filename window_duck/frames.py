"""Frame aggregation: running and sliding SUM, AVG, COUNT, MIN and MAX.

A Frame is a pair of row bounds relative to the current row. Running totals
(UNBOUNDED PRECEDING to CURRENT ROW) and moving windows (6 PRECEDING to
CURRENT ROW) use the same code path; only the bounds differ.

Frames are evaluated by DuckDB as ROWS window aggregates over the index
frame, ordered by each row's position in its partition. DuckDB aggregates
every frame from its own rows (segment tree), so a large value leaving a
sliding window never cancels the small values still inside it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from window_duck.constants import PARTITION_COLUMN, POSITION_COLUMN, ROW_COLUMN
from window_duck.exceptions import TypeMismatch
from window_duck.index import PartitionIndex
from window_duck.sql import fetch_rows, quote
from window_duck.table import NUMERIC_TYPES, ColumnType, Table

logger = logging.getLogger(__name__)


class BoundKind(str, Enum):
    UNBOUNDED_PRECEDING = "unbounded preceding"
    PRECEDING = "preceding"
    CURRENT_ROW = "current row"
    FOLLOWING = "following"
    UNBOUNDED_FOLLOWING = "unbounded following"


@dataclass(frozen=True)
class Bound:
    """One side of a frame, relative to the current row."""

    kind: BoundKind
    offset: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", BoundKind(self.kind))
        if isinstance(self.offset, bool) or not isinstance(self.offset, int) or self.offset < 0:
            raise ValueError(f"Frame offset must be a non-negative integer, got: {self.offset!r}")
        if self.offset and self.kind not in (BoundKind.PRECEDING, BoundKind.FOLLOWING):
            raise ValueError(f"{self.kind.value.upper()} does not take an offset")

    @classmethod
    def unbounded_preceding(cls) -> Bound:
        return cls(BoundKind.UNBOUNDED_PRECEDING)

    @classmethod
    def preceding(cls, offset: int) -> Bound:
        return cls(BoundKind.PRECEDING, offset)

    @classmethod
    def current_row(cls) -> Bound:
        return cls(BoundKind.CURRENT_ROW)

    @classmethod
    def following(cls, offset: int) -> Bound:
        return cls(BoundKind.FOLLOWING, offset)

    @classmethod
    def unbounded_following(cls) -> Bound:
        return cls(BoundKind.UNBOUNDED_FOLLOWING)

    def resolve(self, current: int, size: int) -> int:
        """Unclamped row index within a partition of `size` rows."""
        if self.kind == BoundKind.UNBOUNDED_PRECEDING:
            return 0
        if self.kind == BoundKind.PRECEDING:
            return current - self.offset
        if self.kind == BoundKind.CURRENT_ROW:
            return current
        if self.kind == BoundKind.FOLLOWING:
            return current + self.offset
        return size - 1

    @property
    def relative(self) -> float:
        """Signed row distance from the current row; infinite when unbounded."""
        if self.kind == BoundKind.UNBOUNDED_PRECEDING:
            return -math.inf
        if self.kind == BoundKind.PRECEDING:
            return -self.offset
        if self.kind == BoundKind.FOLLOWING:
            return self.offset
        if self.kind == BoundKind.UNBOUNDED_FOLLOWING:
            return math.inf
        return 0

    def __str__(self) -> str:
        if self.kind in (BoundKind.PRECEDING, BoundKind.FOLLOWING):
            return f"{self.offset} {self.kind.value.upper()}"
        return self.kind.value.upper()


@dataclass(frozen=True)
class Frame:
    """ROWS BETWEEN start AND end.

    Example:
        >>> Frame.running()                       # running total
        >>> Frame.trailing(6)                     # 7-row moving window
        >>> Frame(Bound.preceding(1), Bound.following(1))
    """

    start: Bound
    end: Bound

    def __post_init__(self) -> None:
        if self.start.kind == BoundKind.UNBOUNDED_FOLLOWING:
            raise ValueError("Frame start cannot be UNBOUNDED FOLLOWING")
        if self.end.kind == BoundKind.UNBOUNDED_PRECEDING:
            raise ValueError("Frame end cannot be UNBOUNDED PRECEDING")

    @classmethod
    def running(cls) -> Frame:
        return cls(Bound.unbounded_preceding(), Bound.current_row())

    @classmethod
    def trailing(cls, preceding: int) -> Frame:
        return cls(Bound.preceding(preceding), Bound.current_row())

    @classmethod
    def whole_partition(cls) -> Frame:
        return cls(Bound.unbounded_preceding(), Bound.unbounded_following())

    def resolve(self, current: int, size: int) -> tuple[int, int] | None:
        """Inclusive (first, last) row indexes clamped to the partition, or None if empty."""
        first = max(self.start.resolve(current, size), 0)
        last = min(self.end.resolve(current, size), size - 1)
        if first > last:
            return None
        return first, last

    @property
    def is_empty(self) -> bool:
        """True when the frame holds no rows for any row of any partition."""
        return self.start.relative > self.end.relative

    def __str__(self) -> str:
        return f"ROWS BETWEEN {self.start} AND {self.end}"



class Aggregate(str, Enum):
    """Closed set of frame aggregates."""

    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MIN = "min"
    MAX = "max"


# Types each aggregate accepts; NULL columns are always accepted and yield nulls
_ACCEPTED_TYPES = {
    Aggregate.SUM: NUMERIC_TYPES,
    Aggregate.AVG: NUMERIC_TYPES,
    Aggregate.COUNT: tuple(ColumnType),
    Aggregate.MIN: tuple(ColumnType),
    Aggregate.MAX: tuple(ColumnType),
}


def aggregate(
    table: Table,
    index: PartitionIndex,
    column: str | None,
    kind: Aggregate | str,
    frame: Frame,
) -> list[Any]:
    """Aggregate `column` over each row's frame.

    Args:
        table: Input table.
        index: Partition index built for `table`.
        column: Column to aggregate. None is only valid for COUNT (COUNT(*)).
        kind: SUM, AVG, COUNT, MIN or MAX.
        frame: Row bounds relative to the current row.

    Returns:
        One aggregate per input row, in input row order. Empty frames give
        null (0 for COUNT), never an error.

    Raises:
        InvalidKey: If `column` does not exist.
        TypeMismatch: If SUM/AVG is requested over a non-numeric column.
    """
    kind = Aggregate(kind)
    operation = kind.value

    if column is None:
        if kind != Aggregate.COUNT:
            raise ValueError(f"{operation.upper()} requires a column")
    else:
        table.require(operation, column)
        column_type = table.column_type(column)
        if column_type != ColumnType.NULL and column_type not in _ACCEPTED_TYPES[kind]:
            raise TypeMismatch(
                operation, column, column_type, [t.value for t in _ACCEPTED_TYPES[kind]]
            )
    index.check(table, operation)
    logger.debug(f"Evaluating {operation.upper()}({column or '*'}) {frame}")

    empty = 0 if kind == Aggregate.COUNT else None
    if frame.is_empty or (column is not None and table.column_type(column) == ColumnType.NULL):
        return [empty] * len(table)

    if column is None:
        argument, data = "*", index.frame
    else:
        argument, data = quote(column), index.with_values(table, column)
    sql = (
        f"SELECT {operation.upper()}({argument}) OVER ("
        f"PARTITION BY {quote(PARTITION_COLUMN)} ORDER BY {quote(POSITION_COLUMN)} {frame}) "
        f"FROM _input ORDER BY {quote(ROW_COLUMN)}"
    )
    return [value for (value,) in fetch_rows(sql, data)]
