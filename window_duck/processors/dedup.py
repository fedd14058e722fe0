"""Anti-join and deduplication processors."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from window_duck import dedup
from window_duck.config import EngineConfig
from window_duck.keys import OrderKey
from window_duck.processors.base import IndexCache, WindowProcessor
from window_duck.table import Table


class AntiJoinProcessor(WindowProcessor):
    """Keep input rows whose key does not appear in `right`.

    Example (customers who never ordered):
        >>> AntiJoinProcessor(orders_df, left_on="id", right_on="customer_id").process(customers_df)
    """

    def __init__(
        self,
        right: Any,
        left_on: str | Sequence[str],
        right_on: str | Sequence[str] | None = None,
    ):
        """
        Args:
            right: Rows whose keys suppress matches (any input process() accepts).
            left_on: Key columns of the processed input.
            right_on: Key columns of `right` (default: same as left_on).
        """
        self.right = right
        self.left_on = left_on
        self.right_on = right_on

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        return dedup.anti_join(table, Table.from_frame(self.right), self.left_on, self.right_on)

    def __repr__(self) -> str:
        return f"AntiJoinProcessor({self.left_on} NOT EXISTS right.{self.right_on or self.left_on})"


class DedupProcessor(WindowProcessor):
    """Keep one row per key, chosen by `order_by`.

    Example (latest login per user):
        >>> DedupProcessor("user_id", [OrderKey("login_at", "desc", "last")]).process(logins_df)
    """

    def __init__(self, key: str | Sequence[str], order_by: OrderKey | Sequence[OrderKey]):
        self.key = key
        self.order_by = order_by

    def _apply(self, table: Table, cache: IndexCache, config: EngineConfig) -> Table:
        return dedup.deduplicate(table, self.key, self.order_by)

    def __repr__(self) -> str:
        return f"DedupProcessor({self.key})"
