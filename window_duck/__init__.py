"""Windowed analytics over in-memory tables.

This package evaluates SQL-style window analytics (ranking, LAG/LEAD,
running and sliding aggregates, gap-and-islands, quantiles, anti-joins)
over already-loaded rows, without a SQL engine.

Structure:
    window_duck/
    ├── table.py       - Row model (Table, Row, ColumnType)
    ├── keys.py        - OrderKey with explicit direction and null placement
    ├── index.py       - PartitionIndex shared by all evaluators
    ├── ranking.py     - ROW_NUMBER, RANK, DENSE_RANK, NTILE, top-N
    ├── offset.py      - LAG, LEAD, FIRST_VALUE, LAST_VALUE
    ├── frames.py      - SUM/AVG/COUNT/MIN/MAX over row frames
    ├── islands.py     - Gap-and-islands grouping
    ├── quantiles.py   - Exact and approximate quantiles
    ├── dedup.py       - Anti-join and deduplication
    ├── processors/    - DataFrame processors and Chain
    └── compat/        - SQL engine null defaults, DuckDB reference

Example:
    >>> from window_duck import OrderKey, PartitionIndex, Table, dense_rank
    >>> table = Table.from_polars(employees_df)
    >>> index = PartitionIndex.build(
    ...     table, "department_id", [OrderKey("salary", "desc", "last")]
    ... )
    >>> table = table.with_column("salary_rank", dense_rank(index))
"""

from window_duck.config import EngineConfig
from window_duck.dedup import anti_join, deduplicate, find_duplicates
from window_duck.exceptions import (
    ConfigurationError,
    EvaluationError,
    InvalidKey,
    PrecisionUnavailable,
    TypeMismatch,
    WindowError,
)
from window_duck.frames import Aggregate, Bound, BoundKind, Frame, aggregate
from window_duck.index import PartitionIndex
from window_duck.islands import (
    Consecutive,
    Island,
    SameValue,
    find_islands,
    islands_to_table,
    label_islands,
)
from window_duck.keys import Direction, NullOrder, OrderKey
from window_duck.offset import first_value, lag, last_value, lead
from window_duck.quantiles import QuantileMode, median, quantile, quantile_table
from window_duck.ranking import (
    RankMethod,
    cume_dist,
    dense_rank,
    evaluate_rank,
    nth_highest,
    ntile,
    percent_rank,
    rank,
    row_number,
    top_n,
)
from window_duck.table import ColumnType, Row, Table

__all__ = [
    # Row model
    "ColumnType",
    "Row",
    "Table",
    # Keys and index
    "Direction",
    "NullOrder",
    "OrderKey",
    "PartitionIndex",
    # Ranking
    "RankMethod",
    "cume_dist",
    "dense_rank",
    "evaluate_rank",
    "nth_highest",
    "ntile",
    "percent_rank",
    "rank",
    "row_number",
    "top_n",
    # Offsets
    "first_value",
    "lag",
    "last_value",
    "lead",
    # Frames
    "Aggregate",
    "Bound",
    "BoundKind",
    "Frame",
    "aggregate",
    # Islands
    "Consecutive",
    "Island",
    "SameValue",
    "find_islands",
    "islands_to_table",
    "label_islands",
    # Order statistics
    "QuantileMode",
    "median",
    "quantile",
    "quantile_table",
    # Anti-join / dedup
    "anti_join",
    "deduplicate",
    "find_duplicates",
    # Config and errors
    "EngineConfig",
    "ConfigurationError",
    "EvaluationError",
    "InvalidKey",
    "PrecisionUnavailable",
    "TypeMismatch",
    "WindowError",
]
