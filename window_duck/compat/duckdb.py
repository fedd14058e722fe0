"""DuckDB compatibility shim.

window-duck never picks a null ordering for you. Code migrating from a SQL
engine can ask this module for that engine's default, render window specs
as DuckDB SQL, and run the SQL through DuckDB as a reference:

    >>> key = OrderKey("salary", "desc", engine_null_order("postgres", "desc"))
    >>> render_window(["dept"], [key])
    'OVER (PARTITION BY "dept" ORDER BY "salary" DESC NULLS FIRST)'
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import pandas as pd
import polars as pl

from window_duck.exceptions import ConfigurationError
from window_duck.frames import Frame
from window_duck.keys import Direction, NullOrder, OrderKey, normalize_order_by, normalize_partition_by
from window_duck.sql import quote

if TYPE_CHECKING:
    import duckdb

# Default null placement per engine: (ascending, descending)
ENGINE_NULL_DEFAULTS: dict[str, tuple[NullOrder, NullOrder]] = {
    "duckdb": (NullOrder.LAST, NullOrder.LAST),
    "postgres": (NullOrder.LAST, NullOrder.FIRST),
    "oracle": (NullOrder.LAST, NullOrder.FIRST),
    "snowflake": (NullOrder.LAST, NullOrder.FIRST),
    "mysql": (NullOrder.FIRST, NullOrder.LAST),
    "sqlite": (NullOrder.FIRST, NullOrder.LAST),
    "sqlserver": (NullOrder.FIRST, NullOrder.LAST),
}

_ROW_ID = "__window_duck_row_id"


def engine_null_order(engine: str, direction: Direction | str) -> NullOrder:
    """Null placement `engine` uses when ORDER BY does not specify one.

    Raises:
        ConfigurationError: If the engine is not known.
    """
    defaults = ENGINE_NULL_DEFAULTS.get(engine.lower())
    if defaults is None:
        raise ConfigurationError(
            f"Unknown engine '{engine}'. Known engines: {sorted(ENGINE_NULL_DEFAULTS)}"
        )
    ascending, descending = defaults
    return descending if Direction(direction) == Direction.DESC else ascending


def engine_order_key(engine: str, column: str, direction: Direction | str) -> OrderKey:
    """OrderKey reproducing `engine`'s implicit null placement."""
    return OrderKey(column, direction, engine_null_order(engine, direction))


def render_order_by(order_by: OrderKey | Sequence[OrderKey]) -> str:
    """ORDER BY list with explicit direction and null placement."""
    return ", ".join(
        f"{quote(key.column)} {key.direction.value.upper()} NULLS {key.nulls.value.upper()}"
        for key in normalize_order_by(order_by)
    )


def render_frame(frame: Frame) -> str:
    return str(frame)


def render_window(
    partition_by: str | Sequence[str] | None,
    order_by: OrderKey | Sequence[OrderKey] | None,
    frame: Frame | None = None,
) -> str:
    """OVER (...) clause for a window spec."""
    parts = []
    partition_cols = normalize_partition_by(partition_by)
    if partition_cols:
        parts.append("PARTITION BY " + ", ".join(quote(c) for c in partition_cols))
    if normalize_order_by(order_by):
        parts.append("ORDER BY " + render_order_by(order_by))
    if frame is not None:
        parts.append(render_frame(frame))
    return f"OVER ({' '.join(parts)})"


class DuckDBWindowProcessor:
    """Execute SQL window functions in DuckDB and return a DataFrame with added columns.

    Used as a reference implementation to cross-check window-duck results.
    Input row order is preserved.

    Example:
        ```python
        processor = DuckDBWindowProcessor(
            exprs={
                "rank_in_dept": "DENSE_RANK() " + render_window("dept", [by_salary]),
                "dept_total": "SUM(salary) OVER (PARTITION BY dept)",
            }
        )
        df_with_windows = processor.process(input_df)
        ```
    """

    def __init__(self, exprs: dict[str, str]):
        """Initialize window processor.

        Args:
            exprs: Dict of {output_col: window_expression}.
                   Each expression should be a valid SQL window function.
        """
        self.exprs = exprs

    def _generate_sql(self) -> str:
        """Generate SQL with window expressions."""
        window_exprs = ", ".join(f"{expr} AS {quote(name)}" for name, expr in self.exprs.items())
        return (
            f"SELECT * EXCLUDE ({_ROW_ID}), {window_exprs} "
            f"FROM _input ORDER BY {_ROW_ID}"
        )

    def process(
        self,
        df: pl.DataFrame | pd.DataFrame,
        conn: "duckdb.DuckDBPyConnection | None" = None,
    ) -> pl.DataFrame:
        """Apply window functions to DataFrame.

        Args:
            df: Input DataFrame.
            conn: Optional DuckDB connection. If not provided, uses in-memory connection.

        Returns:
            Polars DataFrame with window columns added.
        """
        import duckdb as ddb

        if isinstance(df, pd.DataFrame):
            df = pl.from_pandas(df)
        numbered = df.with_row_index(_ROW_ID)

        # Always in-memory unless a connection is given: the input is a
        # DataFrame, not a persistent table
        should_close = conn is None
        conn = conn or ddb.connect(":memory:")

        try:
            conn.register("_input", numbered)
            return conn.sql(self._generate_sql()).pl()
        finally:
            if should_close:
                conn.close()

    def __repr__(self) -> str:
        return f"DuckDBWindowProcessor({list(self.exprs.keys())})"


def reference_values(df: Any, expr: str) -> list[Any]:
    """Evaluate one window expression in DuckDB; values in input row order."""
    result = DuckDBWindowProcessor({"_value": expr}).process(df)
    return result["_value"].to_list()
