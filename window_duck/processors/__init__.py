"""DataFrame processors for windowed analytics.

Processor Selection Guide
-------------------------

┌──────────────────────────────┬─────────────────────────────────────────────┐
│ Use case                     │ Processor                                   │
├──────────────────────────────┼─────────────────────────────────────────────┤
│ ROW_NUMBER / RANK / NTILE    │ RankProcessor                               │
│ Top N per group, ties kept   │ TopNProcessor (DENSE_RANK <= n)             │
│ Previous / next row value    │ OffsetProcessor (lag, lead)                 │
│ Running total, moving avg    │ FrameAggregateProcessor + Frame             │
│ Consecutive days, stuck runs │ IslandProcessor + Consecutive / SameValue   │
│ Median, percentiles          │ QuantileProcessor                           │
│ Rows with no match elsewhere │ AntiJoinProcessor                           │
│ One row per key              │ DedupProcessor                              │
│ Keep rows by a comparison    │ FilterProcessor (>, <, >=, ==, etc.)        │
│ Several steps, one sort      │ Chain([...])                                │
└──────────────────────────────┴─────────────────────────────────────────────┘

Return Types:
    - Every processor accepts pandas, Polars, or a list of dicts
    - Every processor returns a Polars DataFrame

Examples
--------

Highest salary per department (ties all kept):

    from window_duck import OrderKey
    from window_duck.processors import Chain, FilterProcessor, RankProcessor

    by_salary = OrderKey("salary", "desc", "last")
    result = Chain([
        RankProcessor("rnk", "rank", partition_by="department_id", order_by=by_salary),
        FilterProcessor("rnk", 1, "=="),
    ]).process(employees_df)

Running total per account:

    from window_duck import Frame
    from window_duck.processors import FrameAggregateProcessor

    result = FrameAggregateProcessor(
        "balance", "amount", "sum",
        partition_by="account_id",
        order_by=OrderKey("posted_at", "asc", "last"),
        frame=Frame.running(),
    ).process(transactions_df)
"""

from .base import IndexCache, WindowProcessor
from .chain import Chain
from .dedup import AntiJoinProcessor, DedupProcessor
from .filter import FilterProcessor
from .islands import IslandProcessor
from .quantile import QuantileProcessor
from .window import FrameAggregateProcessor, OffsetProcessor, RankProcessor, TopNProcessor

__all__ = [
    "AntiJoinProcessor",
    "Chain",
    "DedupProcessor",
    "FilterProcessor",
    "FrameAggregateProcessor",
    "IndexCache",
    "IslandProcessor",
    "OffsetProcessor",
    "QuantileProcessor",
    "RankProcessor",
    "TopNProcessor",
    "WindowProcessor",
]
