"""Quantile processor for per-partition medians and percentiles."""

from __future__ import annotations

from collections.abc import Sequence

from window_duck import quantiles
from window_duck.config import EngineConfig
from window_duck.processors.base import IndexCache, WindowProcessor
from window_duck.quantiles import QuantileMode
from window_duck.table import Table


class QuantileProcessor(WindowProcessor):
    """Compute one quantile per partition.

    Returns one row per partition: the partition columns plus `output`.
    Exact mode honours EngineConfig.max_exact_rows and raises
    PrecisionUnavailable instead of approximating.

    Example (median salary per company):
        >>> QuantileProcessor("salary", 0.5, partition_by="company", output="median_salary")
    """

    def __init__(
        self,
        column: str,
        q: float,
        partition_by: str | Sequence[str] | None,
        mode: QuantileMode | str = QuantileMode.EXACT,
        output: str = "quantile",
    ):
        self.column = column
        self.q = q
        self.partition_by = partition_by
        self.mode = QuantileMode(mode)
        self.output = output

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        index = cache.get(table, self.partition_by, None, "quantile")
        return quantiles.quantile_table(
            table,
            index,
            self.column,
            self.q,
            self.mode,
            config.max_exact_rows,
            self.output,
        )

    def __repr__(self) -> str:
        return f"QuantileProcessor({self.output} = q{self.q}({self.column}), {self.mode.value})"
