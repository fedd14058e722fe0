"""Partition and order key definitions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"


class NullOrder(str, Enum):
    FIRST = "first"
    LAST = "last"


@dataclass(frozen=True)
class OrderKey:
    """A sort column with an explicit direction and null placement.

    Null placement has no default: SQL engines disagree on it, so every
    caller states it. See window_duck.compat.duckdb.engine_null_order for
    engine-compatible choices.

    Example:
        >>> OrderKey("salary", Direction.DESC, NullOrder.LAST)
        >>> OrderKey("salary", "desc", "last")  # strings are coerced
    """

    column: str
    direction: Direction
    nulls: NullOrder

    def __post_init__(self) -> None:
        # Accept plain strings ("desc", "last") for convenience
        object.__setattr__(self, "direction", Direction(self.direction))
        object.__setattr__(self, "nulls", NullOrder(self.nulls))

    @property
    def descending(self) -> bool:
        return self.direction == Direction.DESC

    def __str__(self) -> str:
        return f"{self.column} {self.direction.value.upper()} NULLS {self.nulls.value.upper()}"


def normalize_partition_by(partition_by: str | Sequence[str] | None) -> tuple[str, ...]:
    """Coerce a partition spec to a tuple of column names."""
    if partition_by is None:
        return ()
    if isinstance(partition_by, str):
        return (partition_by,)
    return tuple(partition_by)


def normalize_order_by(order_by: OrderKey | Sequence[OrderKey] | None) -> tuple[OrderKey, ...]:
    """Coerce an order spec to a tuple of OrderKeys."""
    if order_by is None:
        return ()
    if isinstance(order_by, OrderKey):
        return (order_by,)
    keys = tuple(order_by)
    for key in keys:
        if not isinstance(key, OrderKey):
            raise TypeError(
                f"order_by entries must be OrderKey, got {type(key).__name__}"
            )
    return keys
