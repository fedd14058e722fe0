"""Base processor class and the per-run index cache."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import polars as pl

from window_duck.config import EngineConfig
from window_duck.index import PartitionIndex
from window_duck.keys import OrderKey, normalize_order_by, normalize_partition_by
from window_duck.table import Table
from window_duck.timing import track_timing


class IndexCache:
    """Partition indexes built during one processor or Chain run.

    Keyed by table lineage and (partition_by, order_by), so processors that
    share a window reuse one sort. Discarded when the run returns.
    """

    def __init__(self):
        self._indexes: dict[tuple, PartitionIndex] = {}
        self.builds = 0

    def get(
        self,
        table: Table,
        partition_by: str | Sequence[str] | None,
        order_by: OrderKey | Sequence[OrderKey] | None,
        operation: str = "partition",
    ) -> PartitionIndex:
        key = (table.lineage, normalize_partition_by(partition_by), normalize_order_by(order_by))
        index = self._indexes.get(key)
        if index is None:
            index = PartitionIndex.build(table, partition_by, order_by, operation=operation)
            self._indexes[key] = index
            self.builds += 1
        return index


def timing_level(config: EngineConfig) -> int:
    return logging.INFO if config.log_timings else logging.DEBUG


class WindowProcessor(ABC):
    """Base processor - takes a DataFrame, returns a Polars DataFrame.

    Subclasses implement `_apply(Table, IndexCache, EngineConfig) -> Table`,
    which is also what Chain calls.
    """

    @abstractmethod
    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        pass

    def process(self, df: Any, config: EngineConfig | None = None) -> pl.DataFrame:
        """Apply the processor.

        Args:
            df: Input data (pandas DataFrame, Polars DataFrame/LazyFrame,
                list of dicts, or Table)
            config: Engine configuration (default: EngineConfig.from_env())

        Returns:
            Polars DataFrame
        """
        config = config or EngineConfig.from_env()
        table = Table.from_frame(df)
        with track_timing(repr(self), level=timing_level(config)):
            result = self._apply(table, IndexCache(), config)
        return result.to_polars()
