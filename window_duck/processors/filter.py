"""Filter processor for row selection on derived or input columns.

Typically chained after a window processor: rank, then keep rank == 1.
"""

from __future__ import annotations

import operator
from typing import Any

from window_duck.config import EngineConfig
from window_duck.processors.base import IndexCache, WindowProcessor
from window_duck.table import Table

_OPERATORS = {
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}


class FilterProcessor(WindowProcessor):
    """Keep rows where `column <operator> value`.

    Null column values never pass, as in a SQL WHERE clause.

    Example:
        >>> processor = FilterProcessor("salary_rank", 3, "<=")
        >>> top_three = processor.process(ranked_df)

        # Chained after ranking:
        >>> Chain([
        ...     RankProcessor("rnk", "rank", "dept", [by_salary]),
        ...     FilterProcessor("rnk", 1, "=="),
        ... ]).process(df)
    """

    def __init__(self, column: str, value: Any, operator: str = ">="):
        if operator not in _OPERATORS:
            raise ValueError(f"Unknown operator: {operator}. Use <, <=, >, >=, ==, or !=")
        self.column = column
        self.value = value
        self.operator = operator

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        table.require("filter", self.column)
        compare = _OPERATORS[self.operator]
        values = table.column(self.column)
        return table.take(
            position
            for position, v in enumerate(values)
            if v is not None and compare(v, self.value)
        )

    def __repr__(self) -> str:
        return f"FilterProcessor({self.column} {self.operator} {self.value})"
