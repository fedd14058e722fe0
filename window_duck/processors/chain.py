"""Processor chaining with a shared partition index cache.

Chain multiple processors together - each (partition_by, order_by) pair is
sorted once per table and reused by every processor that needs it.
"""

from typing import Any

import polars as pl

from window_duck.config import EngineConfig
from window_duck.processors.base import IndexCache, timing_level
from window_duck.table import Table
from window_duck.timing import track_timing


class Chain:
    """Chain window processors over one table.

    All processors in the chain must have an
    `_apply(Table, IndexCache, EngineConfig) -> Table` method. The output of
    each processor is the input of the next, so derived columns can feed
    later steps (rank, then filter).

    Example:
        from window_duck.processors import Chain, FilterProcessor, RankProcessor

        chain = Chain([
            RankProcessor("rnk", "rank", partition_by="dept", order_by=[by_salary]),
            FilterProcessor("rnk", 1, "=="),
        ])
        result = chain.process(df)  # highest paid per department
    """

    def __init__(self, processors: list, config: EngineConfig | None = None):
        if not processors:
            raise ValueError("Chain requires at least one processor")

        # Validate all processors work on Tables
        for p in processors:
            if not hasattr(p, "_apply"):
                raise TypeError(
                    f"{type(p).__name__} does not support chaining. "
                    "Processors must have an _apply(Table, IndexCache, EngineConfig) method."
                )

        self.processors = processors
        self.config = config
        self.index_builds = 0

    def process(self, df: Any) -> pl.DataFrame:
        """Execute the processor chain.

        Args:
            df: Input data (pandas DataFrame, Polars DataFrame/LazyFrame,
                list of dicts, or Table)

        Returns:
            Processed Polars DataFrame
        """
        config = self.config or EngineConfig.from_env()
        table = Table.from_frame(df)
        cache = IndexCache()

        with track_timing(repr(self), level=timing_level(config)):
            for processor in self.processors:
                table = processor._apply(table, cache, config)

        self.index_builds = cache.builds
        return table.to_polars()

    def __repr__(self) -> str:
        names = [type(p).__name__ for p in self.processors]
        return f"Chain([{', '.join(names)}])"
